"""
Processor configuration
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Processor settings"""

    # Install layout (GNUInstallDirs defaults)
    INSTALL_LIBDIR: str = "lib"
    INSTALL_BINDIR: str = "bin"
    INSTALL_INCLUDEDIR: str = "include"

    # Orchestrator directories
    SOURCE_DIR: str = "."
    BINARY_DIR: str = "build"
    OUTPUT_DIR: str = "build/descriptor"

    # Marker definitions injected for shared-library builds
    EXPORT_DEFINITION: str = "GTEST_CREATE_SHARED_LIBRARY=1"
    IMPORT_DEFINITION: str = "GTEST_LINKED_AS_SHARED_LIBRARY=1"

    # Package metadata
    CONFIG_TEMPLATE: str = "cmake/Config.cmake.in"
    VERSION_COMPATIBILITY: str = "SameMajorVersion"

    PYTHON_EXECUTABLE: str = "python"

    LOG_LEVEL: str = "INFO"

    @property
    def generated_dir(self) -> str:
        """Directory for generated package descriptors"""
        return f"{self.BINARY_DIR}/generated"

    class Config:
        env_prefix = "BUILD_DESCRIPTOR_"
        env_file = ".env"
        case_sensitive = True


settings = Settings()

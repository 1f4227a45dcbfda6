"""
Shared pytest fixtures for build_descriptor tests.

All fixtures are pure-Python — no compiler, no CMake.  Toolchain contexts
are declared directly; the orchestrator only records calls.
"""
import pytest

from build_descriptor.config import Settings
from build_descriptor.core.descriptor import TargetDescriptor, TargetKind
from build_descriptor.core.processor import BuildDescriptorProcessor
from build_descriptor.core.profile import resolve_compiler_profile
from build_descriptor.core.toolchain import Toolchain, ToolchainContext


# ── Toolchain contexts ──────────────────────────────────────────────────────

@pytest.fixture
def gnu_context():
    return ToolchainContext(toolchain=Toolchain.GNU, compiler_version="12.2.0")


@pytest.fixture
def msvc_context():
    """Visual Studio 2019, single-config Debug build."""
    return ToolchainContext(
        toolchain=Toolchain.MSVC,
        compiler_version="19.29.30133",
        msvc_version=1929,
        threads_found=False,
        use_pthreads=False,
        config_flags={
            "Debug": ("/MDd", "/Zi", "/Ob0", "/Od", "/RTC1"),
            "Release": ("/MD", "/O2", "/Ob2", "/DNDEBUG"),
        },
        build_type="Debug",
    )


@pytest.fixture
def settings():
    return Settings(
        INSTALL_LIBDIR="lib",
        INSTALL_BINDIR="bin",
        INSTALL_INCLUDEDIR="include",
        SOURCE_DIR="src",
        BINARY_DIR="build",
        PYTHON_EXECUTABLE="python3",
    )


@pytest.fixture
def processor_for(settings):
    """Factory: a fresh processor for a given context."""
    def _make(context, external_libraries=()):
        profile = resolve_compiler_profile(context)
        return BuildDescriptorProcessor(
            profile, context, settings=settings, external_libraries=external_libraries,
        )
    return _make


@pytest.fixture
def gnu_processor(gnu_context, processor_for):
    return processor_for(gnu_context)


@pytest.fixture
def msvc_processor(msvc_context, processor_for):
    return processor_for(msvc_context)


# ── Descriptors ─────────────────────────────────────────────────────────────

@pytest.fixture
def core_static():
    return TargetDescriptor(name="core", kind=TargetKind.STATIC_LIBRARY, sources=("core.src",))


@pytest.fixture
def core_shared():
    return TargetDescriptor(name="core", kind=TargetKind.SHARED_LIBRARY, sources=("core.src",))


@pytest.fixture
def gtest_descriptor_doc():
    """A gtest-shaped descriptor document (decoded JSON)."""
    return {
        "package": {"name": "GTest", "version": "1.8.0"},
        "toolchain": {
            "compiler_id": "GNU",
            "compiler_version": "12.2.0",
            "cxx_flags": "-O2",
        },
        "external_libraries": ["rt"],
        "targets": [
            {
                "name": "gtest",
                "kind": "library",
                "sources": ["src/gtest-all.cc"],
                "flags": "cxx_strict",
            },
            {
                "name": "gtest_main",
                "kind": "library",
                "sources": ["src/gtest_main.cc"],
                "dependencies": ["gtest"],
                "flags": "cxx_strict",
            },
            {
                "name": "gtest_unittest",
                "kind": "test-executable",
                "dependencies": ["gtest_main", "rt"],
            },
            {
                "name": "gtest_no_rtti_unittest",
                "kind": "test-executable",
                "main_source": "test/gtest_unittest.cc",
                "dependencies": ["gtest_main_no_rtti"],
                "flags": "cxx_no_rtti",
            },
            {
                "name": "sample1_unittest",
                "kind": "executable",
                "source_dir": "samples",
                "sources": ["samples/sample1.cc"],
                "dependencies": ["gtest_main"],
            },
            {
                "name": "gtest_help_test",
                "kind": "python-test",
            },
        ],
        "install": {"targets": ["gtest", "gtest_main"]},
    }

"""
Processor — turns target descriptors into orchestrator registrations.

One ``BuildDescriptorProcessor`` lives for one configuration run.  It owns
the target registry (name → handle); the compiler profile and toolchain
context are immutable and threaded through every call.

Every check on a descriptor happens before the first call for that target
is recorded, so a rejected declaration leaves no partial registration.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

from build_descriptor.config import Settings
from build_descriptor.core.descriptor import TargetDescriptor, TargetKind, resolve_sources
from build_descriptor.core.flags import Flags, flag_string, flags_contain_debug_flags, join_flags
from build_descriptor.core.orchestrator import Orchestrator
from build_descriptor.core.profile import CompilerProfile
from build_descriptor.core.toolchain import ToolchainContext
from build_descriptor.errors import (
    NameCollisionError,
    UnknownConfigurationError,
    UnresolvedDependencyError,
)

logger = logging.getLogger(__name__)


# ── Handles & install rules ──────────────────────────────────────────────────

@dataclass(frozen=True)
class TargetHandle:
    """A registered target as the orchestrator sees it."""
    name: str
    kind: TargetKind
    target_type: str  # STATIC_LIBRARY | SHARED_LIBRARY | MODULE_LIBRARY | EXECUTABLE
    compile_flags: Flags = ()
    postfixes: Tuple[Tuple[str, str], ...] = ()

    def postfix(self, config: str) -> str:
        return dict(self.postfixes).get(config, "")


@dataclass(frozen=True)
class RegisteredTest:
    """A test registered with the orchestrator's test runner."""
    name: str
    command: Tuple[str, ...]
    executable: Optional[TargetHandle] = None


@dataclass(frozen=True)
class InstallRule:
    """Maps a built artifact (or package file) to its install destination."""
    category: str  # library | archive | runtime | include | config | export | compiler-symbols | linker-symbols
    destination: str
    target: Optional[str] = None
    files: Tuple[str, ...] = ()
    configurations: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PackageLayout:
    """Paths and names of one installable package."""
    package: str
    config_install_dir: str
    generated_dir: str
    version_config: str
    project_config: str
    targets_export_name: str
    namespace: str


_LINKER_PDB_TYPES = frozenset({"SHARED_LIBRARY", "MODULE_LIBRARY", "EXECUTABLE"})


class BuildDescriptorProcessor:
    """Registers targets, tests and install rules for one configuration run."""

    def __init__(
        self,
        profile: CompilerProfile,
        context: ToolchainContext,
        orchestrator: Optional[Orchestrator] = None,
        settings: Optional[Settings] = None,
        external_libraries: Iterable[str] = (),
    ):
        self.profile = profile
        self.context = context
        self.orchestrator = orchestrator if orchestrator is not None else Orchestrator()
        self.settings = settings if settings is not None else Settings()
        self.external_libraries: FrozenSet[str] = frozenset(external_libraries) | frozenset(profile.thread_libs)

        self.targets: Dict[str, TargetHandle] = {}
        self.tests: Dict[str, RegisteredTest] = {}
        self.install_rules: List[InstallRule] = []

    # ── Validation ──────────────────────────────────────────────────────

    def _check_name(self, name: str) -> None:
        if name in self.targets or name in self.tests:
            raise NameCollisionError(name)

    def _check_dependencies(self, name: str, dependencies: Sequence[str]) -> None:
        for dep in dependencies:
            if dep not in self.targets and dep not in self.external_libraries:
                raise UnresolvedDependencyError(name, dep)

    def resolve_flags(self, descriptor: TargetDescriptor, profile: Optional[CompilerProfile] = None) -> Flags:
        """Named configuration flags followed by the descriptor's own overrides."""
        profile = profile or self.profile
        try:
            flags = profile.flags(descriptor.flags)
        except KeyError:
            raise UnknownConfigurationError(descriptor.name, descriptor.flags) from None
        return join_flags(flags, descriptor.extra_flags)

    # ── Libraries ───────────────────────────────────────────────────────

    def _library_type(self, kind: TargetKind) -> Tuple[str, str]:
        """(add_library TYPE argument, resulting target type)."""
        if kind == TargetKind.SHARED_LIBRARY:
            return "SHARED", "SHARED_LIBRARY"
        if kind == TargetKind.MODULE_LIBRARY:
            return "MODULE", "MODULE_LIBRARY"
        if kind == TargetKind.STATIC_LIBRARY:
            return "STATIC", "STATIC_LIBRARY"
        # LIBRARY: let the orchestrator apply BUILD_SHARED_LIBS
        return "", "SHARED_LIBRARY" if self.context.build_shared_libs else "STATIC_LIBRARY"

    def register_library(
        self, descriptor: TargetDescriptor, profile: Optional[CompilerProfile] = None,
    ) -> TargetHandle:
        """
        Register a library target.

        Shared libraries get the export-marker compile definition; under
        MSVC they also publish the import marker on their interface.
        """
        profile = profile or self.profile
        if not descriptor.kind.is_library:
            raise ValueError(f"Target '{descriptor.name}' is not a library ({descriptor.kind.value})")

        self._check_name(descriptor.name)
        self._check_dependencies(descriptor.name, descriptor.dependencies)
        flags = self.resolve_flags(descriptor, profile)

        type_arg, target_type = self._library_type(descriptor.kind)
        orch = self.orchestrator
        orch.add_library(descriptor.name, type_arg, resolve_sources(descriptor))
        orch.set_target_properties(descriptor.name, "COMPILE_FLAGS", flag_string(flags))
        if self.context.build_shared_libs or type_arg == "SHARED":
            orch.set_target_properties(
                descriptor.name, "COMPILE_DEFINITIONS", self.settings.EXPORT_DEFINITION,
            )
        if profile.has_pthread:
            orch.target_link_libraries(descriptor.name, *profile.thread_libs)
        for dep in descriptor.dependencies:
            orch.target_link_libraries(descriptor.name, dep)

        handle = TargetHandle(
            name=descriptor.name,
            kind=descriptor.kind,
            target_type=target_type,
            compile_flags=flags,
            postfixes=tuple(sorted(descriptor.postfixes.items())),
        )
        self.targets[handle.name] = handle
        self.add_export_macro_interface_definition(handle, self.settings.IMPORT_DEFINITION, profile)
        logger.info("Registered %s %s", target_type.lower(), handle.name)
        return handle

    def register_shared_library(
        self, descriptor: TargetDescriptor, profile: Optional[CompilerProfile] = None,
    ) -> TargetHandle:
        if descriptor.kind != TargetKind.SHARED_LIBRARY:
            descriptor = replace(descriptor, kind=TargetKind.SHARED_LIBRARY)
        return self.register_library(descriptor, profile)

    def add_export_macro_interface_definition(
        self, handle: TargetHandle, definition: str, profile: Optional[CompilerProfile] = None,
    ) -> bool:
        """Publish *definition* to dependents of an MSVC shared library."""
        profile = profile or self.profile
        if profile.is_msvc and handle.target_type == "SHARED_LIBRARY":
            self.orchestrator.target_compile_definitions(handle.name, "INTERFACE", definition)
            return True
        return False

    # ── Executables & tests ─────────────────────────────────────────────

    def register_executable(
        self,
        descriptor: TargetDescriptor,
        profile: Optional[CompilerProfile] = None,
        dependencies: Optional[Sequence[str]] = None,
    ) -> TargetHandle:
        """
        Register an executable.

        Each dependency is linked with its own call, so static and shared
        dependencies can be mixed without their flags interfering.
        """
        profile = profile or self.profile
        deps = list(descriptor.dependencies if dependencies is None else dependencies)

        self._check_name(descriptor.name)
        self._check_dependencies(descriptor.name, deps)
        flags = self.resolve_flags(descriptor, profile)
        if profile.is_msvc and profile.msvc_version is not None and profile.msvc_version >= 1700:
            # big object files in tests
            flags = join_flags(flags, ("-bigobj",))

        orch = self.orchestrator
        orch.add_executable(descriptor.name, resolve_sources(descriptor))
        if flags:
            orch.set_target_properties(descriptor.name, "COMPILE_FLAGS", flag_string(flags))
        if self.context.build_shared_libs:
            orch.set_target_properties(
                descriptor.name, "COMPILE_DEFINITIONS", self.settings.IMPORT_DEFINITION,
            )
        for dep in deps:
            orch.target_link_libraries(descriptor.name, dep)

        handle = TargetHandle(
            name=descriptor.name,
            kind=descriptor.kind,
            target_type="EXECUTABLE",
            compile_flags=flags,
            postfixes=tuple(sorted(descriptor.postfixes.items())),
        )
        self.targets[handle.name] = handle
        logger.info("Registered executable %s", handle.name)
        return handle

    def register_test(
        self, descriptor: TargetDescriptor, profile: Optional[CompilerProfile] = None,
    ) -> RegisteredTest:
        """Register a test executable and add it to the test runner."""
        executable = self.register_executable(descriptor, profile)
        self.orchestrator.add_test(executable.name, executable.name)
        test = RegisteredTest(name=executable.name, command=(executable.name,), executable=executable)
        self.tests[test.name] = test
        return test

    def register_python_test(self, name: str) -> Optional[RegisteredTest]:
        """
        Register ``test/<name>.py`` as a test, given a Python interpreter.

        Multi-configuration generators keep outputs in per-config
        subdirectories of the binary dir, so the build dir is suffixed
        with the configuration.
        """
        if not self.context.python_found:
            logger.info("No Python interpreter; skipping python test %s", name)
            return None
        self._check_name(name)

        script = f"{self.settings.SOURCE_DIR}/test/{name}.py"
        binary_dir = self.settings.BINARY_DIR
        orch = self.orchestrator
        if self.context.orchestrator_at_least("3.2"):
            if self.context.configuration_types:
                build_dir = f"--build_dir={binary_dir}/$<CONFIG>"
            else:
                build_dir = f"--build_dir={binary_dir}"
            command = (self.settings.PYTHON_EXECUTABLE, script, build_dir)
            orch.add_named_test(name, *command)
        else:
            # resolved by ctest at run time
            build_dir = f"--build_dir={binary_dir}/${{CTEST_CONFIGURATION_TYPE}}"
            command = (self.settings.PYTHON_EXECUTABLE, script, build_dir)
            orch.add_test(name, *command)

        test = RegisteredTest(name=name, command=command)
        self.tests[name] = test
        return test

    # ── Install rules ───────────────────────────────────────────────────

    def package_layout(self, package: str) -> PackageLayout:
        config_install_dir = f"{self.settings.INSTALL_LIBDIR}/cmake/{package}"
        generated_dir = self.settings.generated_dir
        return PackageLayout(
            package=package,
            config_install_dir=config_install_dir,
            generated_dir=generated_dir,
            version_config=f"{generated_dir}/{package}ConfigVersion.cmake",
            project_config=f"{generated_dir}/{package}Config.cmake",
            targets_export_name=f"{package}Targets",
            namespace=f"{package}::",
        )

    def register_install_rules(
        self, package_name: str, target_handles: Sequence[TargetHandle],
    ) -> List[InstallRule]:
        """
        Emit install destinations, package config files and, under MSVC,
        the .pdb debug-symbol companions of every target.
        """
        for handle in target_handles:
            if self.targets.get(handle.name) != handle:
                raise UnresolvedDependencyError(package_name, handle.name)

        s = self.settings
        layout = self.package_layout(package_name)
        names = [h.name for h in target_handles]
        orch = self.orchestrator
        rules: List[InstallRule] = []

        orch.write_basic_package_version_file(layout.version_config, s.VERSION_COMPATIBILITY)
        orch.configure_package_config_file(s.CONFIG_TEMPLATE, layout.project_config, layout.config_install_dir)

        orch.install(
            "TARGETS", *names,
            "EXPORT", layout.targets_export_name,
            "LIBRARY", "DESTINATION", s.INSTALL_LIBDIR,
            "ARCHIVE", "DESTINATION", s.INSTALL_LIBDIR,
            "RUNTIME", "DESTINATION", s.INSTALL_BINDIR,
            "INCLUDES", "DESTINATION", s.INSTALL_INCLUDEDIR,
        )
        for name in names:
            rules.append(InstallRule("library", s.INSTALL_LIBDIR, target=name))
            rules.append(InstallRule("archive", s.INSTALL_LIBDIR, target=name))
            rules.append(InstallRule("runtime", s.INSTALL_BINDIR, target=name))

        header_dir = f"{s.SOURCE_DIR}/include/{package_name.lower()}"
        orch.install(
            "DIRECTORY", header_dir,
            "DESTINATION", s.INSTALL_INCLUDEDIR,
            "FILES_MATCHING", "PATTERN", "*.h",
        )
        rules.append(InstallRule("include", s.INSTALL_INCLUDEDIR, files=(header_dir,)))

        orch.install(
            "FILES", layout.project_config, layout.version_config,
            "DESTINATION", layout.config_install_dir,
        )
        rules.append(InstallRule(
            "config", layout.config_install_dir,
            files=(layout.project_config, layout.version_config),
        ))

        orch.install(
            "EXPORT", layout.targets_export_name,
            "NAMESPACE", layout.namespace,
            "DESTINATION", layout.config_install_dir,
        )
        rules.append(InstallRule("export", layout.config_install_dir, files=(layout.targets_export_name,)))

        for handle in target_handles:
            rules.extend(self.install_pdb_files(handle))

        self.install_rules.extend(rules)
        logger.info("Registered %d install rules for package %s", len(rules), package_name)
        return rules

    def target_has_pdb_compile_output(self, handle: TargetHandle, config: str) -> bool:
        """Compiler .pdb output: MSVC with a debug-info flag in the effective flags."""
        if not self.profile.is_msvc:
            return False
        effective = join_flags(self.profile.default_flags_for(config), handle.compile_flags)
        return flags_contain_debug_flags(effective)

    def target_has_pdb_linker_output(self, handle: TargetHandle, config: str) -> bool:
        """Linker .pdb output: compiler output plus a linked target type."""
        return (
            self.target_has_pdb_compile_output(handle, config)
            and handle.target_type in _LINKER_PDB_TYPES
        )

    def install_pdb_files(self, handle: TargetHandle) -> List[InstallRule]:
        """Install rules for the compiler- and linker-generated .pdb files."""
        rules: List[InstallRule] = []
        if not self.profile.is_msvc:
            return rules
        if not self.context.orchestrator_at_least("3.1"):
            # COMPILE_PDB_* properties need CMake 3.1
            logger.debug("Orchestrator %s too old for pdb rules", self.context.orchestrator_version)
            return rules

        s = self.settings
        orch = self.orchestrator
        for config in self.context.configurations:
            suffix = config.upper()
            postfix = handle.postfix(config)
            output_dir = f"{s.BINARY_DIR}/{config}"

            if self.target_has_pdb_compile_output(handle, config):
                output_name = f"{handle.name}{postfix}-compiler"
                orch.set_property(handle.name, f"COMPILE_PDB_NAME_{suffix}", output_name)
                orch.set_property(handle.name, f"COMPILE_PDB_OUTPUT_DIRECTORY_{suffix}", output_dir)
                pdb = f"{output_dir}/{output_name}.pdb"
                orch.install("FILES", pdb, "DESTINATION", s.INSTALL_LIBDIR, "CONFIGURATIONS", config)
                rules.append(InstallRule(
                    "compiler-symbols", s.INSTALL_LIBDIR,
                    target=handle.name, files=(pdb,), configurations=(config,),
                ))

            if self.target_has_pdb_linker_output(handle, config):
                output_name = f"{handle.name}{postfix}-linker"
                orch.set_property(handle.name, f"PDB_NAME_{suffix}", output_name)
                orch.set_property(handle.name, f"PDB_OUTPUT_DIRECTORY_{suffix}", output_dir)
                pdb = f"{output_dir}/{output_name}.pdb"
                orch.install("FILES", pdb, "DESTINATION", s.INSTALL_BINDIR, "CONFIGURATIONS", config)
                rules.append(InstallRule(
                    "linker-symbols", s.INSTALL_BINDIR,
                    target=handle.name, files=(pdb,), configurations=(config,),
                ))
        return rules

    # ── Dispatch ────────────────────────────────────────────────────────

    def register(self, descriptor: TargetDescriptor) -> Optional[Union[TargetHandle, RegisteredTest]]:
        """Register *descriptor* according to its kind."""
        if descriptor.kind.is_library:
            return self.register_library(descriptor)
        if descriptor.kind == TargetKind.TEST_EXECUTABLE:
            return self.register_test(descriptor)
        if descriptor.kind == TargetKind.PYTHON_TEST:
            return self.register_python_test(descriptor.name)
        return self.register_executable(descriptor)

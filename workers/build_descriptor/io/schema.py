"""
Schema — Pydantic models for the descriptor file and the JSON outputs.

Input:
  descriptor file  — package, toolchain, external libraries, targets, install.

Outputs:
  1. registration_calls.json  — ordered orchestrator calls.
  2. processor_report.json    — profile summary + per-target verdicts.

Runtime contract fields (present in every output):
  package_name, processor_version, schema_version.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field

from build_descriptor import PACKAGE_NAME, PROCESSOR_VERSION, SCHEMA_VERSION
from build_descriptor.core.descriptor import TargetDescriptor, TargetKind
from build_descriptor.core.flags import split_flags
from build_descriptor.core.toolchain import Toolchain, ToolchainContext

FlagSpec = Union[str, List[str]]


# ── Input: descriptor file ───────────────────────────────────────────────────

class PackageModel(BaseModel):
    name: str
    version: str = "0.0.0"


class ToolchainModel(BaseModel):
    """Toolchain identity as the orchestrator reports it."""
    compiler_id: str = "GNU"          # CMake compiler id: MSVC, GNU, Clang, SunPro, XL, HP
    compiler_version: str = ""
    msvc_version: Optional[int] = None

    mingw: bool = False
    disable_pthreads: bool = False
    raspberry_pi: bool = False
    threads_found: Optional[bool] = None  # None: derived from compiler_id
    use_pthreads: Optional[bool] = None

    build_shared_libs: bool = False
    force_shared_crt: bool = False

    cxx_flags: FlagSpec = ""
    config_flags: Dict[str, FlagSpec] = Field(default_factory=dict)
    build_type: str = ""
    configuration_types: List[str] = Field(default_factory=list)
    orchestrator_version: str = "3.10"
    python_found: bool = True

    def to_context(self) -> ToolchainContext:
        return ToolchainContext(
            toolchain=Toolchain.from_compiler_id(self.compiler_id),
            compiler_version=self.compiler_version,
            msvc_version=self.msvc_version,
            mingw=self.mingw,
            disable_pthreads=self.disable_pthreads,
            raspberry_pi=self.raspberry_pi,
            threads_found=self.threads_found,
            use_pthreads=self.use_pthreads,
            build_shared_libs=self.build_shared_libs,
            force_shared_crt=self.force_shared_crt,
            cxx_flags=split_flags(self.cxx_flags),
            config_flags={k: split_flags(v) for k, v in self.config_flags.items()},
            build_type=self.build_type,
            configuration_types=tuple(self.configuration_types),
            orchestrator_version=self.orchestrator_version,
            python_found=self.python_found,
        )


class TargetModel(BaseModel):
    """One target declaration."""
    name: str = Field(min_length=1)
    kind: TargetKind
    sources: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    flags: str = "cxx_default"
    extra_flags: FlagSpec = ""
    main_source: Optional[str] = None
    source_dir: Optional[str] = None
    postfixes: Dict[str, str] = Field(default_factory=dict)

    def to_descriptor(self) -> TargetDescriptor:
        return TargetDescriptor(
            name=self.name,
            kind=self.kind,
            sources=tuple(self.sources),
            dependencies=tuple(self.dependencies),
            flags=self.flags,
            extra_flags=split_flags(self.extra_flags),
            main_source=self.main_source,
            source_dir=self.source_dir,
            postfixes=dict(self.postfixes),
        )


class InstallModel(BaseModel):
    """Which targets to package; the package name defaults to package.name."""
    package: Optional[str] = None
    targets: List[str] = Field(default_factory=list)


class DescriptorFile(BaseModel):
    """Top-level descriptor file."""
    package: PackageModel
    toolchain: Optional[ToolchainModel] = None
    external_libraries: List[str] = Field(default_factory=list)
    targets: List[TargetModel] = Field(default_factory=list)
    install: Optional[InstallModel] = None


# ── Output: registration calls ───────────────────────────────────────────────

class RegistrationCallModel(BaseModel):
    command: str
    args: List[str] = Field(default_factory=list)


class RegistrationCalls(BaseModel):
    """
    registration_calls.json — every orchestrator call, in order.
    """
    package_name: str = PACKAGE_NAME
    processor_version: str = PROCESSOR_VERSION
    schema_version: str = SCHEMA_VERSION
    package: str
    calls: List[RegistrationCallModel] = Field(default_factory=list)


# ── Output: report ───────────────────────────────────────────────────────────

class ProfileSummary(BaseModel):
    toolchain: str
    msvc_version: Optional[int] = None
    has_pthread: bool
    thread_libs: List[str] = Field(default_factory=list)
    degraded: bool = False
    warnings: List[str] = Field(default_factory=list)
    strictness_flag: str = ""
    configurations: Dict[str, List[str]] = Field(default_factory=dict)


class TargetReport(BaseModel):
    name: str
    kind: str
    verdict: str             # ACCEPT | REJECT
    reasons: List[str] = Field(default_factory=list)
    message: Optional[str] = None
    target_type: Optional[str] = None
    compile_flags: List[str] = Field(default_factory=list)


class InstallRuleModel(BaseModel):
    category: str
    destination: str
    target: Optional[str] = None
    files: List[str] = Field(default_factory=list)
    configurations: List[str] = Field(default_factory=list)


class TargetCounts(BaseModel):
    total: int = 0
    accept: int = 0
    reject: int = 0


class ProcessorReport(BaseModel):
    """
    processor_report.json — profile summary and per-target verdicts.
    """
    package_name: str = PACKAGE_NAME
    processor_version: str = PROCESSOR_VERSION
    schema_version: str = SCHEMA_VERSION
    package: str
    package_version: str = "0.0.0"
    profile: ProfileSummary
    targets: List[TargetReport] = Field(default_factory=list)
    tests: List[str] = Field(default_factory=list)
    install_rules: List[InstallRuleModel] = Field(default_factory=list)
    install_error: Optional[str] = None
    target_counts: TargetCounts = Field(default_factory=TargetCounts)

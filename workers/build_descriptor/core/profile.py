"""
Compiler profile — the named flag configurations for one configuration run.

``resolve_compiler_profile`` is the only constructor used outside tests.
An unsupported toolchain never aborts: it yields a degraded profile whose
configurations carry no flags of ours, so the build stays permissive.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from build_descriptor.core.flags import Flags, fix_default_compiler_settings, join_flags
from build_descriptor.core.toolchain import Toolchain, ToolchainContext
from build_descriptor.errors import UnsupportedToolchainError
from build_descriptor.policy.toolchains import FlagGroups, flag_groups_for

logger = logging.getLogger(__name__)

CONFIGURATION_NAMES = (
    "cxx_exception",
    "cxx_no_exception",
    "cxx_default",
    "cxx_no_rtti",
    "cxx_use_own_tuple",
    "cxx_strict",
)
DEFAULT_CONFIGURATION = "cxx_default"


@dataclass(frozen=True)
class CompilerProfile:
    """Resolved flags for the active toolchain.  Immutable."""

    toolchain: Toolchain
    groups: FlagGroups
    configurations: Dict[str, Flags]
    config_flags: Dict[str, Flags] = field(default_factory=dict)
    cxx_flags: Flags = ()
    has_pthread: bool = False
    thread_libs: Flags = ()
    msvc_version: Optional[int] = None
    degraded: bool = False
    warnings: Tuple[str, ...] = ()

    @property
    def is_msvc(self) -> bool:
        return self.toolchain == Toolchain.MSVC

    @property
    def strictness_flag(self) -> str:
        return self.groups.strictness_flag

    def flags(self, configuration: str = DEFAULT_CONFIGURATION) -> Flags:
        """Flags of a named configuration; raises KeyError if unknown."""
        return self.configurations[configuration]

    def default_flags_for(self, config: str) -> Flags:
        """Global flags plus the orchestrator defaults of one build configuration."""
        return join_flags(self.config_flags.get(config, ()), self.cxx_flags)


def _detect_threads(context: ToolchainContext) -> Tuple[bool, Flags]:
    """
    Decide whether pthreads are used and which library links them.

    pthreads on MinGW are never used; the Windows primitives are.
    """
    if context.disable_pthreads or context.mingw:
        return False, ()
    if not context.pthreads_available:
        return False, ()
    prefer_pthread_flag = not context.raspberry_pi
    return True, ("-pthread",) if prefer_pthread_flag else ("-lpthread",)


def resolve_compiler_profile(context: ToolchainContext) -> CompilerProfile:
    """
    Build the CompilerProfile for *context*.

    Configurations are concatenated in priority order: orchestrator
    global flags, base flags, the variant's flags, then strictness flags.
    """
    has_pthread, thread_libs = _detect_threads(context)

    config_flags = dict(context.config_flags)
    cxx_flags = context.cxx_flags
    if context.is_msvc:
        # the global flags carry /W3 by default, so they are fixed as well
        cxx_flags = fix_default_compiler_settings(
            {"global": cxx_flags}, context.build_shared_libs, context.force_shared_crt,
        )["global"]
        config_flags = fix_default_compiler_settings(
            config_flags, context.build_shared_libs, context.force_shared_crt,
        )

    common = dict(
        toolchain=context.toolchain,
        config_flags=config_flags,
        cxx_flags=cxx_flags,
        has_pthread=has_pthread,
        thread_libs=thread_libs,
        msvc_version=context.msvc_version,
    )

    try:
        groups = flag_groups_for(context)
    except UnsupportedToolchainError as e:
        logger.warning("%s; continuing with an empty flag set", e)
        return CompilerProfile(
            groups=FlagGroups(),
            configurations={name: cxx_flags for name in CONFIGURATION_NAMES},
            degraded=True,
            warnings=(e.warn_reason.value,),
            **common,
        )

    pthread_macro = "-DGTEST_HAS_PTHREAD=1" if has_pthread else "-DGTEST_HAS_PTHREAD=0"
    base = join_flags(groups.base, (pthread_macro,))

    cxx_exception = join_flags(cxx_flags, base, groups.exception)
    cxx_no_exception = join_flags(cxx_flags, base, groups.no_exception)
    cxx_default = cxx_exception
    configurations = {
        "cxx_exception": cxx_exception,
        "cxx_no_exception": cxx_no_exception,
        "cxx_default": cxx_default,
        "cxx_no_rtti": join_flags(cxx_default, groups.no_rtti),
        "cxx_use_own_tuple": join_flags(cxx_default, ("-DGTEST_USE_OWN_TR1_TUPLE=1",)),
        "cxx_strict": join_flags(cxx_default, groups.strict),
    }

    logger.debug(
        "Resolved %s profile (pthread=%s): %s",
        context.toolchain.value, has_pthread, " ".join(cxx_default),
    )
    return CompilerProfile(groups=groups, configurations=configurations, **common)

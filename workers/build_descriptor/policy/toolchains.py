"""
Toolchain strategies — one flag-group producer per compiler family.

The table encapsulates every compiler opinion so that profile resolution
contains none.  Supporting another compiler is a new table entry, not a
new branch.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict

from build_descriptor.core.flags import Flags
from build_descriptor.core.toolchain import Toolchain, ToolchainContext
from build_descriptor.errors import UnsupportedToolchainError
from build_descriptor.policy.verdict import ProfileWarnReason

# Visual Studio .NET 2003
MIN_MSVC_VERSION = 1310


@dataclass(frozen=True)
class FlagGroups:
    """Flag groups a toolchain contributes to every configuration."""

    base: Flags = ()
    exception: Flags = ()
    no_exception: Flags = ()
    no_rtti: Flags = ()
    strict: Flags = ()
    strictness_flag: str = ""


def _msvc(context: ToolchainContext) -> FlagGroups:
    version = context.msvc_version
    if version is None or version < MIN_MSVC_VERSION:
        raise UnsupportedToolchainError(
            f"MSVC version {version} is not supported (minimum {MIN_MSVC_VERSION})",
            ProfileWarnReason.UNSUPPORTED_TOOLCHAIN_VERSION,
        )

    base = ["-GS", "-W4", "-WX", "-wd4251", "-wd4275", "-nologo", "-J", "-Zi"]
    if version < 1400:  # Visual Studio 2005
        # forcing value to bool; copy ctor / assignment not generated;
        # overload resolved by argument-dependent lookup
        base += ["-wd4800", "-wd4511", "-wd4512", "-wd4675"]
    if version < 1500:  # Visual Studio 2008
        # conditional expression is constant, fires on std::list
        base += ["-wd4127"]
    if version >= 1700:  # Visual Studio 2012
        # unreachable code
        base += ["-wd4702"]
    base += ["-D_UNICODE", "-DUNICODE", "-DWIN32", "-D_WIN32"]
    base += ["-DSTRICT", "-DWIN32_LEAN_AND_MEAN"]

    return FlagGroups(
        base=tuple(base),
        exception=("-EHsc", "-D_HAS_EXCEPTIONS=1"),
        no_exception=("-D_HAS_EXCEPTIONS=0",),
        no_rtti=("-GR-",),
        strictness_flag="-WX",
    )


def _gnu(context: ToolchainContext) -> FlagGroups:
    return FlagGroups(
        base=("-Wall", "-Wshadow", "-Werror"),
        exception=("-fexceptions",),
        no_exception=("-fno-exceptions",),
        # old GCC has no macro telling whether RTTI is on
        no_rtti=("-fno-rtti", "-DGTEST_HAS_RTTI=0"),
        strict=("-Wextra", "-Wno-unused-parameter", "-Wno-missing-field-initializers"),
        strictness_flag="-Werror",
    )


def _sunpro(context: ToolchainContext) -> FlagGroups:
    return FlagGroups(
        exception=("-features=except",),
        no_exception=("-features=no%except", "-DGTEST_HAS_EXCEPTIONS=0"),
        no_rtti=("-features=no%rtti", "-DGTEST_HAS_RTTI=0"),
        strict=("-errwarn=%all",),
        strictness_flag="-errwarn=%all",
    )


def _xl(context: ToolchainContext) -> FlagGroups:
    return FlagGroups(
        exception=("-qeh",),
        no_exception=("-qnoeh",),
        no_rtti=("-qnortti", "-DGTEST_HAS_RTTI=0"),
        strict=("-qhalt=w",),
        strictness_flag="-qhalt=w",
    )


def _hp(context: ToolchainContext) -> FlagGroups:
    return FlagGroups(
        base=("-AA", "-mt"),
        exception=("-DGTEST_HAS_EXCEPTIONS=1",),
        no_exception=("+noeh", "-DGTEST_HAS_EXCEPTIONS=0"),
        # aCC cannot disable RTTI
        no_rtti=(),
        strict=("+We",),
        strictness_flag="+We",
    )


STRATEGIES: Dict[Toolchain, Callable[[ToolchainContext], FlagGroups]] = {
    Toolchain.MSVC: _msvc,
    Toolchain.GNU: _gnu,
    Toolchain.CLANG: _gnu,
    Toolchain.SUNPRO: _sunpro,
    Toolchain.XL: _xl,
    Toolchain.HP: _hp,
}


def flag_groups_for(context: ToolchainContext) -> FlagGroups:
    """Look up and run the strategy for the context's toolchain."""
    strategy = STRATEGIES.get(context.toolchain)
    if strategy is None:
        raise UnsupportedToolchainError(
            f"No flag strategy for toolchain '{context.toolchain.value}'",
            ProfileWarnReason.UNSUPPORTED_TOOLCHAIN,
        )
    return strategy(context)

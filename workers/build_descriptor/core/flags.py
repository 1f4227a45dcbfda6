"""
Flag helpers — splitting, joining, default-flag fixing, debug-info detection.

Flags are ordered tuples of strings.  Concatenation is purely additive:
no deduplication, no conflict detection.  The last flag applied wins at
the toolchain level, not here.
"""
from __future__ import annotations

from typing import Dict, Iterable, Mapping, Tuple

Flags = Tuple[str, ...]

# /Zi and /ZI make cl.exe write a .pdb next to the object files
DEBUG_INFO_FLAGS = frozenset({"/Zi", "/ZI", "-Zi", "-ZI"})


def split_flags(flags: str | Iterable[str] | None) -> Flags:
    """Normalise a flag string or iterable of flags into a tuple."""
    if not flags:
        return ()
    if isinstance(flags, str):
        return tuple(flags.split())
    out = []
    for f in flags:
        out.extend(f.split())
    return tuple(out)


def join_flags(*groups: Iterable[str]) -> Flags:
    """Concatenate flag groups in priority order."""
    out = []
    for group in groups:
        out.extend(group)
    return tuple(out)


def flag_string(flags: Iterable[str]) -> str:
    return " ".join(flags)


def fix_default_compiler_settings(
    config_flags: Mapping[str, Flags],
    build_shared_libs: bool,
    force_shared_crt: bool,
) -> Dict[str, Flags]:
    """
    Rewrite the orchestrator's default MSVC flags.

    Static builds link the static CRT (``/MD`` → ``-MT``, which also turns
    ``/MDd`` into ``-MTd``) unless the shared CRT is forced; warning level
    ``/W3`` is raised to ``/W4`` in every configuration.
    """
    fixed: Dict[str, Flags] = {}
    for config, flags in config_flags.items():
        text = flag_string(flags)
        if not build_shared_libs and not force_shared_crt:
            text = text.replace("/MD", "-MT")
        text = text.replace("/W3", "/W4")
        fixed[config] = split_flags(text)
    return fixed


def flags_contain_debug_flags(flags: Iterable[str]) -> bool:
    """True if the flags ask the MSVC compiler for .pdb debug output."""
    return any(f in DEBUG_INFO_FLAGS for f in flags)

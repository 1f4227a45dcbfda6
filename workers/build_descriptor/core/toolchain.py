"""
Toolchain identity — who compiles, which version, and whether pthreads exist.

``ToolchainContext`` is built once per configuration run, either from the
descriptor file or by probing the compiler found in the environment, and
is never mutated afterwards.
"""
from __future__ import annotations

import logging
import os
import re
import subprocess
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class Toolchain(str, Enum):
    """Compiler families with a flag strategy (plus UNKNOWN)."""
    MSVC = "msvc"
    GNU = "gnu"
    CLANG = "clang"
    SUNPRO = "sunpro"
    XL = "xl"
    HP = "hp"
    UNKNOWN = "unknown"

    @classmethod
    def from_compiler_id(cls, compiler_id: str) -> Toolchain:
        """Map a CMake-style compiler id (``GNU``, ``SunPro``, ...) to a family."""
        key = compiler_id.strip().lower()
        return _COMPILER_IDS.get(key, cls.UNKNOWN)


_COMPILER_IDS: Dict[str, Toolchain] = {
    "msvc": Toolchain.MSVC,
    "gnu": Toolchain.GNU,
    "gcc": Toolchain.GNU,
    "clang": Toolchain.CLANG,
    "appleclang": Toolchain.CLANG,
    "sunpro": Toolchain.SUNPRO,
    # CMake 2.8 renamed VisualAge to XL
    "visualage": Toolchain.XL,
    "xl": Toolchain.XL,
    "hp": Toolchain.HP,
}


def parse_version(version: str) -> Tuple[int, ...]:
    """``"3.1.0"`` → ``(3, 1, 0)``; non-numeric parts are ignored."""
    parts: List[int] = []
    for piece in version.split("."):
        m = re.match(r"\d+", piece)
        if m is None:
            break
        parts.append(int(m.group()))
    return tuple(parts)


@dataclass(frozen=True)
class ToolchainContext:
    """Environment-provided toolchain identity and capabilities."""

    toolchain: Toolchain
    compiler_version: str = ""
    msvc_version: Optional[int] = None  # MSVC_VERSION, e.g. 1929

    # Threading
    mingw: bool = False
    disable_pthreads: bool = False
    raspberry_pi: bool = False
    # None: derived from the toolchain (no pthreads under MSVC)
    threads_found: Optional[bool] = None
    use_pthreads: Optional[bool] = None  # CMAKE_USE_PTHREADS_INIT

    # Library flavour
    build_shared_libs: bool = False
    force_shared_crt: bool = False

    # Orchestrator defaults
    cxx_flags: Tuple[str, ...] = ()
    config_flags: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    build_type: str = ""
    configuration_types: Tuple[str, ...] = ()
    orchestrator_version: str = "3.10"
    python_found: bool = True

    @property
    def is_msvc(self) -> bool:
        return self.toolchain == Toolchain.MSVC

    @property
    def configurations(self) -> Tuple[str, ...]:
        """Active configurations: the build type, then multi-config types."""
        names = ([self.build_type] if self.build_type else []) + list(self.configuration_types)
        return tuple(names)

    @property
    def pthreads_available(self) -> bool:
        """A thread library was found and it is pthreads."""
        threads_found = self.threads_found if self.threads_found is not None else not self.is_msvc
        use_pthreads = self.use_pthreads if self.use_pthreads is not None else not self.is_msvc
        return threads_found and use_pthreads

    def orchestrator_at_least(self, version: str) -> bool:
        return parse_version(self.orchestrator_version) >= parse_version(version)


# ── Probing ──────────────────────────────────────────────────────────────────

_BANNERS: List[Tuple[re.Pattern, Toolchain]] = [
    (re.compile(r"Microsoft \(R\) C/C\+\+ Optimizing Compiler Version (\d+\.\d+[\d.]*)"), Toolchain.MSVC),
    (re.compile(r"clang version (\d+\.\d+[\d.]*)"), Toolchain.CLANG),
    (re.compile(r"Sun C\+\+ (\d+\.\d+[\d.]*)"), Toolchain.SUNPRO),
    (re.compile(r"IBM XL C/C\+\+.*?V(\d+\.\d+[\d.]*)"), Toolchain.XL),
    (re.compile(r"aCC: HP .*?A\.(\d+\.\d+[\d.]*)"), Toolchain.HP),
    (re.compile(r"\(.*?\) (\d+\.\d+[\d.]*)"), Toolchain.GNU),
]


def parse_version_banner(banner: str) -> Tuple[Toolchain, str]:
    """
    Identify a compiler from its ``--version`` banner.

    Returns (Toolchain, dotted version).  Unrecognised banners give
    ``(Toolchain.UNKNOWN, "")``.
    """
    for pattern, toolchain in _BANNERS:
        m = pattern.search(banner)
        if m:
            return toolchain, m.group(1)
    return Toolchain.UNKNOWN, ""


def msvc_version_from(version: str) -> Optional[int]:
    """``"19.29.30133"`` → ``1929`` (the MSVC_VERSION macro value)."""
    parts = parse_version(version)
    if len(parts) < 2:
        return None
    return parts[0] * 100 + parts[1]


def _run_quiet(cmd: List[str], timeout: int = 5) -> str:
    """Run a command and return stdout+stderr, or "" when it cannot run."""
    try:
        r = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("Probe %s failed: %s", cmd, e)
        return ""
    # cl.exe prints its banner on stderr
    return (r.stdout + "\n" + r.stderr).strip()


def probe_toolchain(cxx: Optional[str] = None, **overrides) -> ToolchainContext:
    """
    Build a ToolchainContext from the compiler in the environment.

    *cxx* defaults to ``$CXX`` and then ``c++``.  Keyword overrides are
    applied on top of the probed fields.
    """
    cxx = cxx or os.environ.get("CXX", "c++")
    name = os.path.basename(cxx).lower()
    cmd = [cxx] if name in ("cl", "cl.exe") else [cxx, "--version"]
    banner = _run_quiet(cmd)

    toolchain, version = parse_version_banner(banner)
    logger.info("Probed %s: %s %s", cxx, toolchain.value, version or "?")

    posix = os.name == "posix"
    context = ToolchainContext(
        toolchain=toolchain,
        compiler_version=version,
        msvc_version=msvc_version_from(version) if toolchain == Toolchain.MSVC else None,
        mingw="mingw" in banner.lower(),
        threads_found=posix,
        use_pthreads=posix,
    )
    return replace(context, **overrides) if overrides else context

"""
Verdict — per-target ACCEPT / REJECT decisions with reason enums.

Two layers:
  1. Profile-level warnings — the toolchain could not be matched, the
     profile degrades to empty flag groups but processing continues.
  2. Target-level rejects — a single declaration cannot be registered.
"""
from enum import Enum, unique


@unique
class Verdict(str, Enum):
    ACCEPT = "ACCEPT"
    WARN = "WARN"
    REJECT = "REJECT"


# ── Profile-level warn reasons ───────────────────────────────────────────────

@unique
class ProfileWarnReason(str, Enum):
    UNSUPPORTED_TOOLCHAIN = "UNSUPPORTED_TOOLCHAIN"
    UNSUPPORTED_TOOLCHAIN_VERSION = "UNSUPPORTED_TOOLCHAIN_VERSION"


# ── Target-level reject reasons ──────────────────────────────────────────────

@unique
class RejectReason(str, Enum):
    NAME_COLLISION = "NAME_COLLISION"
    UNRESOLVED_DEPENDENCY = "UNRESOLVED_DEPENDENCY"
    UNKNOWN_FLAG_CONFIGURATION = "UNKNOWN_FLAG_CONFIGURATION"
    UNSUPPORTED_TOOLCHAIN = "UNSUPPORTED_TOOLCHAIN"

"""
Configuration-time errors.

Every error carries a ``RejectReason`` so the runner can record it
against the offending target and move on to the next declaration.
"""
from __future__ import annotations

from typing import Optional

from build_descriptor.policy.verdict import ProfileWarnReason, RejectReason


class ConfigurationError(ValueError):
    """A declaration cannot be turned into orchestrator calls."""

    reason: RejectReason = RejectReason.UNRESOLVED_DEPENDENCY

    def __init__(self, message: str, target: Optional[str] = None):
        super().__init__(message)
        self.target = target


class NameCollisionError(ConfigurationError):
    reason = RejectReason.NAME_COLLISION

    def __init__(self, name: str):
        super().__init__(f"Target '{name}' is already registered", target=name)


class UnresolvedDependencyError(ConfigurationError):
    reason = RejectReason.UNRESOLVED_DEPENDENCY

    def __init__(self, target: str, dependency: str):
        super().__init__(
            f"Target '{target}' depends on '{dependency}', which is neither "
            f"a registered target nor an external library",
            target=target,
        )
        self.dependency = dependency


class UnknownConfigurationError(ConfigurationError):
    reason = RejectReason.UNKNOWN_FLAG_CONFIGURATION

    def __init__(self, target: str, configuration: str):
        super().__init__(
            f"Target '{target}' uses unknown flag configuration '{configuration}'",
            target=target,
        )
        self.configuration = configuration


class UnsupportedToolchainError(ConfigurationError):
    reason = RejectReason.UNSUPPORTED_TOOLCHAIN

    def __init__(self, message: str, warn_reason: ProfileWarnReason):
        super().__init__(message)
        self.warn_reason = warn_reason

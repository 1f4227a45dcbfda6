"""
Orchestrator — the registration API of the external build tool.

The processor never talks to CMake directly: every registration is a
``RegistrationCall`` recorded in order.  The recorded calls are what gets
written to ``registration_calls.json`` and rendered as a CMake script, so
identical inputs always produce identical output.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistrationCall:
    """One call into the orchestrator: command name + ordered arguments."""
    command: str
    args: Tuple[str, ...]

    @property
    def target(self) -> Optional[str]:
        return self.args[0] if self.args else None


class Orchestrator:
    """Records orchestrator calls in registration order."""

    def __init__(self) -> None:
        self.calls: List[RegistrationCall] = []

    def _record(self, command: str, *args: str) -> RegistrationCall:
        call = RegistrationCall(command=command, args=tuple(args))
        self.calls.append(call)
        logger.debug("%s(%s)", command, " ".join(args))
        return call

    # ── Targets ─────────────────────────────────────────────────────────

    def add_library(self, name: str, type_: str, sources: Iterable[str]) -> RegistrationCall:
        args = [name] + ([type_] if type_ else []) + list(sources)
        return self._record("add_library", *args)

    def add_executable(self, name: str, sources: Iterable[str]) -> RegistrationCall:
        return self._record("add_executable", name, *sources)

    def set_target_properties(self, name: str, prop: str, value: str) -> RegistrationCall:
        return self._record("set_target_properties", name, "PROPERTIES", prop, value)

    def set_property(self, name: str, prop: str, value: str) -> RegistrationCall:
        return self._record("set_property", "TARGET", name, "PROPERTY", prop, value)

    def target_link_libraries(self, name: str, *libs: str) -> RegistrationCall:
        return self._record("target_link_libraries", name, *libs)

    def target_compile_definitions(self, name: str, scope: str, definition: str) -> RegistrationCall:
        return self._record("target_compile_definitions", name, scope, definition)

    # ── Tests ───────────────────────────────────────────────────────────

    def add_test(self, name: str, *command: str) -> RegistrationCall:
        return self._record("add_test", name, *command)

    def add_named_test(self, name: str, *command: str) -> RegistrationCall:
        return self._record("add_test", "NAME", name, "COMMAND", *command)

    # ── Packaging ───────────────────────────────────────────────────────

    def install(self, *args: str) -> RegistrationCall:
        return self._record("install", *args)

    def write_basic_package_version_file(self, path: str, compatibility: str) -> RegistrationCall:
        return self._record("write_basic_package_version_file", path, "COMPATIBILITY", compatibility)

    def configure_package_config_file(self, template: str, path: str, install_dir: str) -> RegistrationCall:
        return self._record(
            "configure_package_config_file", template, path, "INSTALL_DESTINATION", install_dir,
        )

    def for_target(self, name: str) -> List[RegistrationCall]:
        """Calls whose first argument is *name* (target-scoped calls)."""
        return [c for c in self.calls if c.target == name]

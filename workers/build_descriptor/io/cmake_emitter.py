"""
CMake emitter — render recorded registration calls as a CMake script.

One call per line, arguments quoted only when CMake would otherwise split
or drop them.
"""
from __future__ import annotations

import re
from typing import Iterable, List

from build_descriptor import PACKAGE_NAME, PROCESSOR_VERSION
from build_descriptor.core.orchestrator import RegistrationCall

_BARE = re.compile(r"^[A-Za-z0-9_./:+\-=<>$%{}*]+$")

# substituted by ctest at run time, not by the configure step
_CTEST_VARIABLES = re.compile(r"\$\{(CTEST_CONFIGURATION_TYPE)\}")

# commands that need a helper module included first
_HELPER_MODULES = {
    "write_basic_package_version_file": "CMakePackageConfigHelpers",
    "configure_package_config_file": "CMakePackageConfigHelpers",
}


def _defer(arg: str) -> str:
    return _CTEST_VARIABLES.sub(r"\\${\1}", arg)


def quote_arg(arg: str) -> str:
    """
    Quote *arg* unless it is a single bare CMake token.

    Variables only ctest knows are escaped so they survive configure time.
    """
    if arg and _BARE.match(arg):
        return _defer(arg)
    escaped = arg.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{_defer(escaped)}"'


def render_call(call: RegistrationCall) -> str:
    args = " ".join(quote_arg(a) for a in call.args)
    return f"{call.command}({args})"


def render_script(calls: Iterable[RegistrationCall], package: str = "") -> str:
    """Render *calls* in order, preceded by a generated-file header."""
    header = f"# Generated by {PACKAGE_NAME} {PROCESSOR_VERSION}"
    if package:
        header += f" for {package}"
    lines: List[str] = [header, "# Do not edit: regenerate from the descriptor file.", ""]

    included = set()
    for call in calls:
        module = _HELPER_MODULES.get(call.command)
        if module and module not in included:
            lines.append(f"include({module})")
            included.add(module)
        lines.append(render_call(call))
    return "\n".join(lines) + "\n"

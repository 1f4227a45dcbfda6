"""
Package files — the version descriptor and package descriptor consumed by
downstream ``find_package`` calls.

    <Package>ConfigVersion.cmake   compatibility check against a requested version
    <Package>Config.cmake          dependency lookup + exported targets include
"""
from __future__ import annotations

from typing import Dict, Tuple

from build_descriptor.core.toolchain import parse_version

COMPATIBILITIES = ("AnyNewerVersion", "SameMajorVersion", "SameMinorVersion", "ExactVersion")


def _padded(a: Tuple[int, ...], b: Tuple[int, ...]) -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
    """Pad missing trailing components with zero, as VERSION_* comparisons do."""
    width = max(len(a), len(b))
    return a + (0,) * (width - len(a)), b + (0,) * (width - len(b))


def is_compatible(package_version: str, requested: str, compatibility: str) -> bool:
    """Python mirror of the check the version descriptor performs."""
    if compatibility not in COMPATIBILITIES:
        raise ValueError(f"Unknown compatibility mode: {compatibility}")
    have, want = _padded(parse_version(package_version), parse_version(requested))
    if compatibility == "ExactVersion":
        return have == want
    if have < want:
        return False
    if compatibility == "SameMajorVersion":
        return have[:1] == want[:1]
    if compatibility == "SameMinorVersion":
        return have[:2] == want[:2]
    return True


def render_version_file(version: str, compatibility: str) -> str:
    if compatibility not in COMPATIBILITIES:
        raise ValueError(f"Unknown compatibility mode: {compatibility}")
    parts = parse_version(version)
    major = str(parts[0]) if parts else version
    minor = str(parts[1]) if len(parts) > 1 else "0"

    lines = [
        f"# {compatibility} version check",
        f'set(PACKAGE_VERSION "{version}")',
        "",
    ]
    if compatibility == "ExactVersion":
        lines += [
            "if(PACKAGE_FIND_VERSION VERSION_EQUAL PACKAGE_VERSION)",
            "  set(PACKAGE_VERSION_COMPATIBLE TRUE)",
            "  set(PACKAGE_VERSION_EXACT TRUE)",
            "else()",
            "  set(PACKAGE_VERSION_COMPATIBLE FALSE)",
            "endif()",
        ]
        return "\n".join(lines) + "\n"

    if compatibility == "SameMajorVersion":
        check = f'PACKAGE_FIND_VERSION_MAJOR STREQUAL "{major}"'
    elif compatibility == "SameMinorVersion":
        check = (f'PACKAGE_FIND_VERSION_MAJOR STREQUAL "{major}" AND '
                 f'PACKAGE_FIND_VERSION_MINOR STREQUAL "{minor}"')
    else:
        check = "TRUE"
    lines += [
        "if(PACKAGE_VERSION VERSION_LESS PACKAGE_FIND_VERSION)",
        "  set(PACKAGE_VERSION_COMPATIBLE FALSE)",
        "else()",
        f"  if({check})",
        "    set(PACKAGE_VERSION_COMPATIBLE TRUE)",
        "  else()",
        "    set(PACKAGE_VERSION_COMPATIBLE FALSE)",
        "  endif()",
        "  if(PACKAGE_FIND_VERSION STREQUAL PACKAGE_VERSION)",
        "    set(PACKAGE_VERSION_EXACT TRUE)",
        "  endif()",
        "endif()",
    ]
    return "\n".join(lines) + "\n"


# What configure_package_config_file() substitutes for @PACKAGE_INIT@;
# the config file must define the helpers it later calls.
_PACKAGE_INIT = [
    "####### Expanded from @PACKAGE_INIT@ by configure_package_config_file() #######",
    "",
    "get_filename_component(PACKAGE_PREFIX_DIR \"${CMAKE_CURRENT_LIST_DIR}/../../../\" ABSOLUTE)",
    "",
    "macro(set_and_check _var _file)",
    "  set(${_var} \"${_file}\")",
    "  if(NOT EXISTS \"${_file}\")",
    "    message(FATAL_ERROR \"File or directory ${_file} referenced by variable ${_var} does not exist !\")",
    "  endif()",
    "endmacro()",
    "",
    "macro(check_required_components _NAME)",
    "  foreach(comp ${${_NAME}_FIND_COMPONENTS})",
    "    if(NOT ${_NAME}_${comp}_FOUND)",
    "      if(${_NAME}_FIND_REQUIRED_${comp})",
    "        set(${_NAME}_FOUND FALSE)",
    "      endif()",
    "    endif()",
    "  endforeach()",
    "endmacro()",
    "",
    "####################################################################################",
]


def render_config_file(package: str, targets_export_name: str, has_pthread: bool, prefer_pthread_flag: bool) -> str:
    lines = _PACKAGE_INIT + [
        "",
        "include(CMakeFindDependencyMacro)",
    ]
    if has_pthread:
        lines += [
            f"set(THREADS_PREFER_PTHREAD_FLAG {'ON' if prefer_pthread_flag else 'OFF'})",
            "find_dependency(Threads)",
        ]
    lines += [
        "",
        f'include("${{CMAKE_CURRENT_LIST_DIR}}/{targets_export_name}.cmake")',
        f'check_required_components("{package}")',
    ]
    return "\n".join(lines) + "\n"


def render_package_files(
    package: str,
    version: str,
    compatibility: str,
    has_pthread: bool,
    thread_libs: Tuple[str, ...] = (),
) -> Dict[str, str]:
    """{filename: text} for both package descriptors."""
    return {
        f"{package}ConfigVersion.cmake": render_version_file(version, compatibility),
        f"{package}Config.cmake": render_config_file(
            package, f"{package}Targets", has_pthread, "-pthread" in thread_libs,
        ),
    }

"""
Target descriptors — what to build, declared up front and never mutated.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from build_descriptor.core.flags import Flags


class TargetKind(str, Enum):
    """Kinds of buildable units."""
    STATIC_LIBRARY = "static-library"
    SHARED_LIBRARY = "shared-library"
    MODULE_LIBRARY = "module-library"
    # static or shared, following the global shared-libs switch
    LIBRARY = "library"
    EXECUTABLE = "executable"
    TEST_EXECUTABLE = "test-executable"
    PYTHON_TEST = "python-test"

    @property
    def is_library(self) -> bool:
        return self in (
            TargetKind.STATIC_LIBRARY,
            TargetKind.SHARED_LIBRARY,
            TargetKind.MODULE_LIBRARY,
            TargetKind.LIBRARY,
        )


@dataclass(frozen=True)
class TargetDescriptor:
    """One declared target."""

    name: str
    kind: TargetKind
    sources: Tuple[str, ...] = ()
    dependencies: Tuple[str, ...] = ()
    flags: str = "cxx_default"
    extra_flags: Flags = ()
    main_source: Optional[str] = None
    source_dir: Optional[str] = None
    postfixes: Dict[str, str] = field(default_factory=dict)


def default_test_source(name: str, suffix: str = ".cc") -> str:
    """Conventional main source of a test: ``test/<name>.cc``."""
    return f"test/{name}{suffix}"


def default_executable_source(name: str, directory: str) -> str:
    """Conventional main source of an executable: ``<dir>/<name>.cc``."""
    return f"{directory}/{name}.cc"


def resolve_sources(descriptor: TargetDescriptor) -> Tuple[str, ...]:
    """
    Full source list of *descriptor*.

    An explicit ``main_source`` overrides the naming convention; the main
    source always comes first, followed by the declared sources.
    """
    main = descriptor.main_source
    if main is None:
        if descriptor.kind == TargetKind.TEST_EXECUTABLE:
            main = default_test_source(descriptor.name)
        elif descriptor.kind == TargetKind.EXECUTABLE and descriptor.source_dir:
            main = default_executable_source(descriptor.name, descriptor.source_dir)
    if main is None or main in descriptor.sources:
        return descriptor.sources
    return (main,) + descriptor.sources

"""
build_descriptor — declarative target descriptors → build-orchestrator calls.

Resolves a compiler profile for the active toolchain, registers library,
executable and test targets, and emits install rules plus package metadata.
"""

__version__ = "0.1.0"
PROCESSOR_VERSION = "v0"
PACKAGE_NAME = "build_descriptor"
SCHEMA_VERSION = "0.1"

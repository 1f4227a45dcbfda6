"""
Loader — read and validate a descriptor file.

The descriptor file is JSON validated against ``DescriptorFile``.
Malformed JSON and schema violations both surface as ``ValueError``.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from build_descriptor.io.schema import DescriptorFile

logger = logging.getLogger(__name__)


def parse_descriptor(data: dict, label: str = "descriptor") -> DescriptorFile:
    """Validate an already-decoded descriptor document."""
    try:
        doc = DescriptorFile.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"{label} is invalid: {e}") from e
    logger.debug("Loaded %s: %d targets", label, len(doc.targets))
    return doc


def load_descriptor_file(path: Path) -> DescriptorFile:
    """
    Load and validate the descriptor file at *path*.

    Raises FileNotFoundError if it does not exist, ValueError if it is not
    valid JSON or does not match the schema.
    """
    if not path.exists():
        raise FileNotFoundError(f"Descriptor file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"{path} is not valid JSON: {e}") from e
    return parse_descriptor(data, label=str(path))

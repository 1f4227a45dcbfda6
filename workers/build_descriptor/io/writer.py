"""
Writer — serialize processor outputs.

Filesystem layout:
    <output_dir>/registration_calls.json
    <output_dir>/processor_report.json
    <output_dir>/CMakeLists.generated.cmake
    <output_dir>/generated/<Package>ConfigVersion.cmake
    <output_dir>/generated/<Package>Config.cmake
"""
import json
from pathlib import Path
from typing import Dict

from build_descriptor.io.schema import ProcessorReport, RegistrationCalls


def _dump(model) -> str:
    return json.dumps(model.model_dump(mode="json"), indent=2, sort_keys=True) + "\n"


def write_outputs(
    calls: RegistrationCalls,
    report: ProcessorReport,
    cmake_script: str,
    package_files: Dict[str, str],
    output_dir: Path,
) -> Path:
    """
    Write processor outputs into *output_dir*.

    Creates *output_dir* if it does not exist.
    Returns the output directory path.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    (output_dir / "registration_calls.json").write_text(_dump(calls))
    (output_dir / "processor_report.json").write_text(_dump(report))
    (output_dir / "CMakeLists.generated.cmake").write_text(cmake_script)

    if package_files:
        generated = output_dir / "generated"
        generated.mkdir(parents=True, exist_ok=True)
        for filename, text in package_files.items():
            (generated / filename).write_text(text)

    return output_dir

"""
Processor runner — top-level orchestration: descriptor file → registration calls.

This module ties the toolchain context, profile resolution, target
registration and IO together into a single ``run_processor`` function
that can be called from a CLI or programmatically.

A rejected target never stops the run: its verdict and reason are
recorded and the next declaration is processed.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from build_descriptor.config import Settings
from build_descriptor.core.orchestrator import Orchestrator
from build_descriptor.core.processor import BuildDescriptorProcessor, InstallRule
from build_descriptor.core.profile import CompilerProfile, resolve_compiler_profile
from build_descriptor.core.toolchain import ToolchainContext, probe_toolchain
from build_descriptor.errors import ConfigurationError, UnresolvedDependencyError
from build_descriptor.io.cmake_emitter import render_script
from build_descriptor.io.loader import load_descriptor_file
from build_descriptor.io.package_files import render_package_files
from build_descriptor.io.schema import (
    DescriptorFile,
    InstallRuleModel,
    ProcessorReport,
    ProfileSummary,
    RegistrationCallModel,
    RegistrationCalls,
    TargetCounts,
    TargetReport,
)
from build_descriptor.io.writer import write_outputs
from build_descriptor.policy.verdict import Verdict

logger = logging.getLogger(__name__)


# ── Conversion helpers ───────────────────────────────────────────────────────

def _profile_summary(profile: CompilerProfile) -> ProfileSummary:
    return ProfileSummary(
        toolchain=profile.toolchain.value,
        msvc_version=profile.msvc_version,
        has_pthread=profile.has_pthread,
        thread_libs=list(profile.thread_libs),
        degraded=profile.degraded,
        warnings=list(profile.warnings),
        strictness_flag=profile.strictness_flag,
        configurations={k: list(v) for k, v in profile.configurations.items()},
    )


def _rule_model(rule: InstallRule) -> InstallRuleModel:
    return InstallRuleModel(
        category=rule.category,
        destination=rule.destination,
        target=rule.target,
        files=list(rule.files),
        configurations=list(rule.configurations),
    )


# ── Public API ───────────────────────────────────────────────────────────────

def run_processor(
    doc: DescriptorFile,
    context: Optional[ToolchainContext] = None,
    settings: Optional[Settings] = None,
    output_dir: Optional[Path] = None,
) -> Tuple[RegistrationCalls, ProcessorReport]:
    """
    Process a descriptor document.

    Parameters
    ----------
    doc : DescriptorFile
        Validated descriptor document.
    context : ToolchainContext, optional
        Toolchain identity.  Defaults to the document's ``toolchain``
        section, or a probe of the environment when that is absent.
    settings : Settings, optional
        Install layout and marker definitions.
    output_dir : Path, optional
        Directory to write outputs.  If None, nothing is written.

    Returns
    -------
    (RegistrationCalls, ProcessorReport)
    """
    settings = settings or Settings()
    if context is None:
        context = doc.toolchain.to_context() if doc.toolchain else probe_toolchain()

    # ── Step 1: profile ──────────────────────────────────────────────
    profile = resolve_compiler_profile(context)
    processor = BuildDescriptorProcessor(
        profile,
        context,
        orchestrator=Orchestrator(),
        settings=settings,
        external_libraries=doc.external_libraries,
    )

    report = ProcessorReport(
        package=doc.package.name,
        package_version=doc.package.version,
        profile=_profile_summary(profile),
    )
    counts = TargetCounts()

    # ── Step 2: targets, in declaration order ────────────────────────
    for target in doc.targets:
        descriptor = target.to_descriptor()
        counts.total += 1
        try:
            registered = processor.register(descriptor)
        except ConfigurationError as e:
            logger.error("Rejected target %s: %s", descriptor.name, e)
            counts.reject += 1
            report.targets.append(TargetReport(
                name=descriptor.name,
                kind=descriptor.kind.value,
                verdict=Verdict.REJECT.value,
                reasons=[e.reason.value],
                message=str(e),
            ))
            continue

        counts.accept += 1
        handle = processor.targets.get(descriptor.name)
        report.targets.append(TargetReport(
            name=descriptor.name,
            kind=descriptor.kind.value,
            verdict=Verdict.ACCEPT.value,
            target_type=handle.target_type if handle else None,
            compile_flags=list(handle.compile_flags) if handle else [],
        ))
        if registered is not None and descriptor.name in processor.tests:
            report.tests.append(descriptor.name)

    report.target_counts = counts

    # ── Step 3: install rules ────────────────────────────────────────
    package_files = {}
    if doc.install is not None:
        package = doc.install.package or doc.package.name
        try:
            handles = _install_handles(processor, doc.install.targets)
            rules = processor.register_install_rules(package, handles)
        except ConfigurationError as e:
            logger.error("Install rules for %s not emitted: %s", package, e)
            report.install_error = str(e)
        else:
            report.install_rules = [_rule_model(r) for r in rules]
            package_files = render_package_files(
                package,
                doc.package.version,
                settings.VERSION_COMPATIBILITY,
                profile.has_pthread,
                profile.thread_libs,
            )

    calls = RegistrationCalls(
        package=doc.package.name,
        calls=[
            RegistrationCallModel(command=c.command, args=list(c.args))
            for c in processor.orchestrator.calls
        ],
    )

    # ── Write outputs ────────────────────────────────────────────────
    if output_dir:
        script = render_script(processor.orchestrator.calls, package=doc.package.name)
        write_outputs(calls, report, script, package_files, output_dir)
        logger.info("Wrote processor outputs to %s", output_dir)

    return calls, report


def _install_handles(processor: BuildDescriptorProcessor, names: List[str]):
    """Handles for *names*; every name must be a registered target."""
    handles = []
    for name in names:
        if name not in processor.targets:
            raise UnresolvedDependencyError("install", name)
        handles.append(processor.targets[name])
    return handles


# ── CLI ──────────────────────────────────────────────────────────────────────

def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for build_descriptor."""
    parser = argparse.ArgumentParser(
        description="build_descriptor — register build targets from a descriptor file",
    )
    parser.add_argument(
        "descriptor",
        type=Path,
        help="Path to the JSON descriptor file",
    )
    parser.add_argument(
        "-o", "--output-dir",
        type=Path,
        default=None,
        help="Directory to write outputs (default: $BUILD_DESCRIPTOR_OUTPUT_DIR)",
    )
    parser.add_argument(
        "--probe",
        action="store_true",
        help="Probe the compiler in the environment instead of the descriptor's toolchain section",
    )
    parser.add_argument(
        "--cxx",
        default=None,
        help="Compiler to probe (default: $CXX, then c++)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    args = parser.parse_args(argv)

    settings = Settings()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        doc = load_descriptor_file(args.descriptor)
    except (FileNotFoundError, ValueError) as e:
        logger.error("%s", e)
        return 1

    context = probe_toolchain(args.cxx) if args.probe else None
    output_dir = args.output_dir or Path(settings.OUTPUT_DIR)
    calls, report = run_processor(doc, context=context, settings=settings, output_dir=output_dir)

    # Print summary
    counts = report.target_counts
    print(f"Toolchain: {report.profile.toolchain}"
          f"{' (degraded)' if report.profile.degraded else ''}")
    print(f"Targets: {counts.total} (accept={counts.accept}, reject={counts.reject})")
    print(f"Tests: {len(report.tests)}")
    print(f"Install rules: {len(report.install_rules)}")
    print(f"Calls: {len(calls.calls)}")
    print(f"Outputs written to: {output_dir}")

    return 1 if counts.reject or report.install_error else 0


if __name__ == "__main__":
    sys.exit(main())

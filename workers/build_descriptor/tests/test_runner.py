"""
test_runner — end-to-end processing of a descriptor document.

Tests verify invariant properties:
  - A rejected target is reported with its reason and the run continues.
  - Identical inputs produce byte-identical outputs.
  - The CLI exits non-zero when any target is rejected.
"""
import json

import pytest

from build_descriptor.io.loader import parse_descriptor
from build_descriptor.policy.verdict import RejectReason, Verdict
from build_descriptor.runner import main, run_processor


@pytest.fixture
def clean_doc(gtest_descriptor_doc):
    gtest_descriptor_doc["targets"] = [
        t for t in gtest_descriptor_doc["targets"] if t["name"] != "gtest_no_rtti_unittest"
    ]
    return gtest_descriptor_doc


def _verdicts(report):
    return {t.name: t.verdict for t in report.targets}


class TestRunProcessor:

    def test_counts(self, gtest_descriptor_doc, settings):
        _, report = run_processor(parse_descriptor(gtest_descriptor_doc), settings=settings)

        assert report.target_counts.total == 6
        assert report.target_counts.accept == 5
        assert report.target_counts.reject == 1

    def test_rejected_target_does_not_stop_run(self, gtest_descriptor_doc, settings):
        _, report = run_processor(parse_descriptor(gtest_descriptor_doc), settings=settings)

        rejected = [t for t in report.targets if t.verdict == Verdict.REJECT.value]
        assert [t.name for t in rejected] == ["gtest_no_rtti_unittest"]
        assert rejected[0].reasons == [RejectReason.UNRESOLVED_DEPENDENCY.value]
        assert "gtest_main_no_rtti" in rejected[0].message
        # declared after the rejected one
        assert _verdicts(report)["sample1_unittest"] == Verdict.ACCEPT.value

    def test_report_in_declaration_order(self, gtest_descriptor_doc, settings):
        _, report = run_processor(parse_descriptor(gtest_descriptor_doc), settings=settings)
        assert [t.name for t in report.targets] == [t["name"] for t in gtest_descriptor_doc["targets"]]

    def test_tests_registered(self, gtest_descriptor_doc, settings):
        calls, report = run_processor(parse_descriptor(gtest_descriptor_doc), settings=settings)

        assert report.tests == ["gtest_unittest", "gtest_help_test"]
        add_tests = [c for c in calls.calls if c.command == "add_test"]
        assert add_tests[0].args == ["gtest_unittest", "gtest_unittest"]
        assert add_tests[1].args == [
            "NAME", "gtest_help_test", "COMMAND",
            "python3", "src/test/gtest_help_test.py", "--build_dir=build",
        ]

    def test_profile_summary(self, gtest_descriptor_doc, settings):
        _, report = run_processor(parse_descriptor(gtest_descriptor_doc), settings=settings)

        assert report.profile.toolchain == "gnu"
        assert not report.profile.degraded
        assert report.profile.strictness_flag == "-Werror"
        assert report.profile.configurations["cxx_strict"][0] == "-O2"

    def test_accepted_target_flags(self, gtest_descriptor_doc, settings):
        _, report = run_processor(parse_descriptor(gtest_descriptor_doc), settings=settings)

        gtest = next(t for t in report.targets if t.name == "gtest")
        assert gtest.target_type == "STATIC_LIBRARY"
        assert "-Wextra" in gtest.compile_flags

    def test_install_rules_and_package_files(self, gtest_descriptor_doc, settings, tmp_path):
        _, report = run_processor(parse_descriptor(gtest_descriptor_doc), settings=settings, output_dir=tmp_path)

        assert report.install_error is None
        assert {r.category for r in report.install_rules} >= {"archive", "config", "export"}
        generated = tmp_path / "generated"
        assert (generated / "GTestConfigVersion.cmake").exists()
        assert "find_dependency(Threads)" in (generated / "GTestConfig.cmake").read_text()

    def test_install_of_rejected_target(self, gtest_descriptor_doc, settings, tmp_path):
        gtest_descriptor_doc["install"]["targets"].append("gtest_no_rtti_unittest")
        calls, report = run_processor(parse_descriptor(gtest_descriptor_doc), settings=settings, output_dir=tmp_path)

        assert "gtest_no_rtti_unittest" in report.install_error
        assert report.install_rules == []
        assert all(c.command != "install" for c in calls.calls)
        assert not (tmp_path / "generated").exists()

    def test_unsupported_toolchain_degrades(self, gtest_descriptor_doc, settings):
        gtest_descriptor_doc["toolchain"]["compiler_id"] = "Intel"
        _, report = run_processor(parse_descriptor(gtest_descriptor_doc), settings=settings)

        assert report.profile.degraded
        assert report.profile.warnings == ["UNSUPPORTED_TOOLCHAIN"]
        gtest = next(t for t in report.targets if t.name == "gtest")
        assert gtest.compile_flags == ["-O2"]


class TestOutputs:

    def test_files_written(self, gtest_descriptor_doc, settings, tmp_path):
        run_processor(parse_descriptor(gtest_descriptor_doc), settings=settings, output_dir=tmp_path)

        for name in ("registration_calls.json", "processor_report.json", "CMakeLists.generated.cmake"):
            assert (tmp_path / name).exists()

        calls = json.loads((tmp_path / "registration_calls.json").read_text())
        assert calls["package_name"] == "build_descriptor"
        assert calls["package"] == "GTest"
        assert calls["calls"][0] == {"command": "add_library", "args": ["gtest", "src/gtest-all.cc"]}

        script = (tmp_path / "CMakeLists.generated.cmake").read_text()
        assert "add_library(gtest src/gtest-all.cc)" in script

    def test_byte_identical_across_runs(self, gtest_descriptor_doc, settings, tmp_path):
        first, second = tmp_path / "a", tmp_path / "b"
        run_processor(parse_descriptor(gtest_descriptor_doc), settings=settings, output_dir=first)
        run_processor(parse_descriptor(gtest_descriptor_doc), settings=settings, output_dir=second)

        for path in sorted(first.rglob("*")):
            if path.is_file():
                other = second / path.relative_to(first)
                assert path.read_bytes() == other.read_bytes(), path.name


class TestCli:

    def _write(self, tmp_path, doc):
        path = tmp_path / "targets.json"
        path.write_text(json.dumps(doc))
        return path

    def test_clean_run(self, clean_doc, tmp_path, capsys):
        path = self._write(tmp_path, clean_doc)

        assert main([str(path), "-o", str(tmp_path / "out")]) == 0
        out = capsys.readouterr().out
        assert "Targets: 5 (accept=5, reject=0)" in out
        assert (tmp_path / "out" / "processor_report.json").exists()

    def test_rejection_exits_nonzero(self, gtest_descriptor_doc, tmp_path):
        path = self._write(tmp_path, gtest_descriptor_doc)
        assert main([str(path), "-o", str(tmp_path / "out")]) == 1

    def test_missing_descriptor(self, tmp_path):
        assert main([str(tmp_path / "missing.json"), "-o", str(tmp_path / "out")]) == 1

    def test_invalid_descriptor(self, tmp_path):
        path = tmp_path / "targets.json"
        path.write_text('{"package": {"name": "GTest"}, "targets": [{"name": "x", "kind": "bogus"}]}')
        assert main([str(path), "-o", str(tmp_path / "out")]) == 1

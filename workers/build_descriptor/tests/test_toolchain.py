"""Tests for toolchain identification and probing."""
import subprocess

import pytest

from build_descriptor.core import toolchain as toolchain_mod
from build_descriptor.core.toolchain import (
    Toolchain,
    ToolchainContext,
    msvc_version_from,
    parse_version,
    parse_version_banner,
    probe_toolchain,
)


class TestCompilerIds:

    @pytest.mark.parametrize("compiler_id,expected", [
        ("MSVC", Toolchain.MSVC),
        ("GNU", Toolchain.GNU),
        ("Clang", Toolchain.CLANG),
        ("AppleClang", Toolchain.CLANG),
        ("SunPro", Toolchain.SUNPRO),
        ("VisualAge", Toolchain.XL),
        ("XL", Toolchain.XL),
        ("HP", Toolchain.HP),
        ("Intel", Toolchain.UNKNOWN),
    ])
    def test_mapping(self, compiler_id, expected):
        assert Toolchain.from_compiler_id(compiler_id) == expected


class TestBanners:

    @pytest.mark.parametrize("banner,expected", [
        ("g++ (GCC) 12.2.0\nCopyright (C) 2022 Free Software Foundation, Inc.",
         (Toolchain.GNU, "12.2.0")),
        ("g++ (Ubuntu 11.4.0-1ubuntu1~22.04) 11.4.0", (Toolchain.GNU, "11.4.0")),
        ("Ubuntu clang version 14.0.0-1ubuntu1.1\nTarget: x86_64-pc-linux-gnu",
         (Toolchain.CLANG, "14.0.0")),
        ("Apple clang version 15.0.0 (clang-1500.1.0.2.5)", (Toolchain.CLANG, "15.0.0")),
        ("Microsoft (R) C/C++ Optimizing Compiler Version 19.29.30133 for x64",
         (Toolchain.MSVC, "19.29.30133")),
        ("CC: Sun C++ 5.13 SunOS_sparc 2014/10/20", (Toolchain.SUNPRO, "5.13")),
        ("IBM XL C/C++ for AIX, V13.1.3 (5725-C72, 5765-J07)", (Toolchain.XL, "13.1.3")),
        ("aCC: HP ANSI C++ B3910B A.06.25", (Toolchain.HP, "06.25")),
        ("", (Toolchain.UNKNOWN, "")),
        ("tcc version 0.9.27", (Toolchain.UNKNOWN, "")),
    ])
    def test_parse(self, banner, expected):
        assert parse_version_banner(banner) == expected

    def test_msvc_version_macro(self):
        assert msvc_version_from("19.29.30133") == 1929
        assert msvc_version_from("16.00.40219.01") == 1600
        assert msvc_version_from("19") is None

    def test_parse_version(self):
        assert parse_version("3.1.0") == (3, 1, 0)
        assert parse_version("3.28.1-rc2") == (3, 28, 1)
        assert parse_version("") == ()


class TestContext:

    def test_configurations(self):
        ctx = ToolchainContext(toolchain=Toolchain.MSVC, build_type="Debug", configuration_types=("Release",))
        assert ctx.configurations == ("Debug", "Release")

    @pytest.mark.parametrize("toolchain,expected", [
        (Toolchain.MSVC, False),
        (Toolchain.GNU, True),
        (Toolchain.CLANG, True),
        (Toolchain.SUNPRO, True),
    ])
    def test_pthreads_default_from_toolchain(self, toolchain, expected):
        assert ToolchainContext(toolchain=toolchain).pthreads_available is expected

    def test_declared_threads_override_default(self):
        assert not ToolchainContext(toolchain=Toolchain.GNU, threads_found=False).pthreads_available
        assert ToolchainContext(
            toolchain=Toolchain.MSVC, threads_found=True, use_pthreads=True,
        ).pthreads_available

    def test_orchestrator_version(self):
        ctx = ToolchainContext(toolchain=Toolchain.GNU, orchestrator_version="3.1.0")
        assert ctx.orchestrator_at_least("3.1")
        assert not ctx.orchestrator_at_least("3.2")


class TestProbe:
    """probe_toolchain with subprocess.run patched out."""

    def _fake_run(self, stdout="", stderr=""):
        calls = []

        def run(cmd, **kwargs):
            calls.append(cmd)
            return subprocess.CompletedProcess(cmd, 0, stdout=stdout, stderr=stderr)
        return run, calls

    def test_probe_gcc(self, monkeypatch):
        run, calls = self._fake_run(stdout="g++ (GCC) 13.1.0\n")
        monkeypatch.setattr(toolchain_mod.subprocess, "run", run)

        ctx = probe_toolchain("g++")

        assert calls == [["g++", "--version"]]
        assert ctx.toolchain == Toolchain.GNU
        assert ctx.compiler_version == "13.1.0"
        assert ctx.msvc_version is None
        assert not ctx.mingw

    def test_probe_cl_reads_stderr(self, monkeypatch):
        run, calls = self._fake_run(
            stderr="Microsoft (R) C/C++ Optimizing Compiler Version 19.38.33130 for x64\n",
        )
        monkeypatch.setattr(toolchain_mod.subprocess, "run", run)

        ctx = probe_toolchain("cl.exe")

        assert calls == [["cl.exe"]]
        assert ctx.toolchain == Toolchain.MSVC
        assert ctx.msvc_version == 1938

    def test_probe_mingw(self, monkeypatch):
        run, _ = self._fake_run(stdout="g++.exe (x86_64-posix-seh-rev0, Built by MinGW-W64 project) 8.1.0\n")
        monkeypatch.setattr(toolchain_mod.subprocess, "run", run)

        ctx = probe_toolchain("g++.exe")
        assert ctx.toolchain == Toolchain.GNU
        assert ctx.mingw

    def test_probe_uses_cxx_env(self, monkeypatch):
        run, calls = self._fake_run(stdout="clang version 17.0.6\n")
        monkeypatch.setattr(toolchain_mod.subprocess, "run", run)
        monkeypatch.setenv("CXX", "clang++")

        ctx = probe_toolchain()
        assert calls == [["clang++", "--version"]]
        assert ctx.toolchain == Toolchain.CLANG

    def test_probe_missing_compiler(self, monkeypatch):
        def run(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])
        monkeypatch.setattr(toolchain_mod.subprocess, "run", run)

        ctx = probe_toolchain("no-such-c++")
        assert ctx.toolchain == Toolchain.UNKNOWN

    def test_probe_overrides(self, monkeypatch):
        run, _ = self._fake_run(stdout="g++ (GCC) 13.1.0\n")
        monkeypatch.setattr(toolchain_mod.subprocess, "run", run)

        ctx = probe_toolchain("g++", build_shared_libs=True, build_type="Debug")
        assert ctx.build_shared_libs
        assert ctx.build_type == "Debug"

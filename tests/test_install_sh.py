"""Tests for install.sh - the shell entry point used by git-vendored."""

import os
import stat
import subprocess
from pathlib import Path

import pytest

ROOT = Path(__file__).parent.parent
INSTALL_SH = str(ROOT / "install.sh")


# ── Helpers ────────────────────────────────────────────────────────────────


def _make_mock_bin(bin_dir: Path, name: str, script: str) -> Path:
    """Create a mock executable in bin_dir."""
    path = bin_dir / name
    path.write_text(f"#!/bin/bash\n{script}\n")
    path.chmod(path.stat().st_mode | stat.S_IEXEC)
    return path


def _run_install(
    work_dir: Path,
    mock_bin: Path,
    args: list[str],
    env_extra: dict | None = None,
) -> subprocess.CompletedProcess:
    env = {
        "PATH": f"{mock_bin}:{os.environ['PATH']}",
        "HOME": os.environ.get("HOME", "/root"),
        "MOCK_LOG": str(work_dir / "python3.log"),
    }
    if env_extra:
        env.update(env_extra)

    return subprocess.run(
        ["bash", INSTALL_SH, *args],
        cwd=work_dir,
        capture_output=True,
        text=True,
        env=env,
    )


def _calls(work_dir: Path) -> list[str]:
    log = work_dir / "python3.log"
    return log.read_text().splitlines() if log.exists() else []


# ── Fixtures ───────────────────────────────────────────────────────────────


@pytest.fixture
def mock_bin(tmp_path):
    """A mock python3 that logs its arguments and reports MOCK_INSTALLED_VERSION."""
    d = tmp_path / "mock_bin"
    d.mkdir()
    _make_mock_bin(
        d,
        "python3",
        """\
echo "python3 $*" >> "$MOCK_LOG"
if [ "$1" = "-c" ]; then
    if [ -n "${MOCK_INSTALLED_VERSION:-}" ]; then
        echo "$MOCK_INSTALLED_VERSION"
        exit 0
    fi
    exit 1
fi
if [ "$1" = "-m" ] && [ "$2" = "git_dogfood.cli" ]; then
    echo "env VENDOR_REF=${VENDOR_REF:-}" >> "$MOCK_LOG"
fi
exit 0""",
    )
    return d


@pytest.fixture
def work_dir(tmp_path):
    d = tmp_path / "consumer"
    d.mkdir()
    return d


# ── Tests: Missing prerequisites ──────────────────────────────────────────


class TestPrerequisites:
    def test_fails_without_version(self, work_dir, mock_bin):
        result = _run_install(work_dir, mock_bin, [])
        assert result.returncode != 0
        assert "Usage: install.sh" in result.stderr
        assert _calls(work_dir) == []


# ── Tests: Argument and environment pass-through ──────────────────────────


class TestPassThrough:
    def test_positional_contract(self, work_dir, mock_bin):
        result = _run_install(work_dir, mock_bin, ["1.0.0", "o/gd"], {"MOCK_INSTALLED_VERSION": "1.0.0"})
        assert result.returncode == 0
        assert "python3 -m git_dogfood.cli install 1.0.0 o/gd" in _calls(work_dir)

    def test_env_contract(self, work_dir, mock_bin):
        result = _run_install(
            work_dir,
            mock_bin,
            [],
            {"VENDOR_REF": "1.2.0", "MOCK_INSTALLED_VERSION": "1.2.0"},
        )
        assert result.returncode == 0
        calls = _calls(work_dir)
        assert "python3 -m git_dogfood.cli install" in calls
        assert "env VENDOR_REF=1.2.0" in calls


# ── Tests: Installer bootstrap ────────────────────────────────────────────


class TestBootstrap:
    def test_matching_version_skips_pip(self, work_dir, mock_bin):
        _run_install(work_dir, mock_bin, ["1.2.0"], {"MOCK_INSTALLED_VERSION": "1.2.0"})
        assert not any("pip install" in call for call in _calls(work_dir))

    def test_stale_version_reinstalled(self, work_dir, mock_bin):
        result = _run_install(work_dir, mock_bin, ["1.2.0", "o/gd"], {"MOCK_INSTALLED_VERSION": "1.1.0"})
        assert result.returncode == 0
        pip_calls = [call for call in _calls(work_dir) if "pip install" in call]
        assert len(pip_calls) == 1
        assert "git+https://github.com/o/gd@v1.2.0" in pip_calls[0]

    def test_missing_package_installed(self, work_dir, mock_bin):
        _run_install(work_dir, mock_bin, ["v2.0.0"])
        pip_calls = [call for call in _calls(work_dir) if "pip install" in call]
        assert len(pip_calls) == 1
        assert "mangimangi/git-dogfood@v2.0.0" in pip_calls[0]

    def test_installer_runs_after_bootstrap(self, work_dir, mock_bin):
        _run_install(work_dir, mock_bin, ["1.2.0"])
        calls = _calls(work_dir)
        assert calls[-2] == "python3 -m git_dogfood.cli install 1.2.0"

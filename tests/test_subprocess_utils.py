from __future__ import annotations

import sys

import pytest

from onboard_kit import subprocess_utils
from onboard_kit.errors import ProviderCallError
from onboard_kit.subprocess_utils import run_command


def test_run_command_captures_output() -> None:
    result = run_command([sys.executable, "-c", "print('ok')"], timeout=30)

    assert result.returncode == 0
    assert result.stdout.strip() == "ok"


def test_run_command_failure_carries_stderr() -> None:
    cmd = [
        sys.executable,
        "-c",
        "import sys; sys.stderr.write('ERROR: NOT_FOUND: thing'); sys.exit(3)",
    ]

    with pytest.raises(ProviderCallError) as excinfo:
        run_command(cmd, timeout=30)

    err = excinfo.value
    assert err.returncode == 3
    assert "exit=3" in str(err)
    assert "NOT_FOUND" in err.stderr
    assert err.is_not_found()


def test_run_command_missing_binary() -> None:
    with pytest.raises(ProviderCallError) as excinfo:
        run_command(["definitely-not-a-real-binary-xyz"])

    assert excinfo.value.returncode is None
    assert not excinfo.value.is_not_found()


def test_run_command_timeout() -> None:
    with pytest.raises(ProviderCallError) as excinfo:
        run_command([sys.executable, "-c", "import time; time.sleep(5)"], timeout=0.2)

    assert "0.2" in str(excinfo.value)


def test_run_gcloud_prefixes_gcloud(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []

    def fake_run(cmd, **kwargs):  # noqa: ANN001, ANN003, ANN202
        calls.append((list(cmd), kwargs))
        return subprocess_utils.RunResult(returncode=0, stdout="", stderr="")

    monkeypatch.setattr(subprocess_utils, "run_command", fake_run)

    subprocess_utils.run_gcloud(["projects", "list"], capture=False)

    assert calls == [(["gcloud", "projects", "list"], {"capture": False})]

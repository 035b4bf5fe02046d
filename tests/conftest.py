"""
pytest 설정:

로컬 작업 환경에 설치된 다른 버전의 onboard_kit 패키지가 존재할 때,
`pytest` 실행 시 site-packages 쪽이 먼저 import 되어 테스트가 깨질 수 있다.

테스트는 항상 현재 레포의 소스를 대상으로 해야 하므로, repo root 를 sys.path 최상단에 고정한다.

또한 gcloud 호출은 전부 subprocess_utils.run_command 를 거치므로,
그 지점을 FakeGcloud 로 바꿔 GCP 쪽 상태(서비스 계정/역할/바인딩)를 메모리에서 흉내낸다.
"""

from __future__ import annotations

import os
import sys
from typing import Dict, List, Optional, Sequence, Set, Tuple

import pytest


def pytest_configure() -> None:
    repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)


_ENV_KEYS = (
    "ORG_ID",
    "GCP_PROJECT_ID",
    "SA_PREFIX",
    "ROLE_PREFIX",
    "SA_PROPAGATION_SECONDS",
    "KEY_DIR",
    "DOWNLOAD_KEY_FILE",
    "ACTIVATE_SERVICE_ACCOUNT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def _flag(cmd: Sequence[str], name: str) -> Optional[str]:
    prefix = f"--{name}="
    for arg in cmd:
        if arg.startswith(prefix):
            return arg[len(prefix):]
    return None


class FakeGcloud:
    """
    gcloud 호출 기록 + 간단한 상태 모델.

    - fail_on(*tokens): 모든 토큰을 포함하는 명령을 실패시킨다.
    - 없는 리소스 삭제/바인딩 제거는 gcloud 처럼 NOT_FOUND 계열 오류를 낸다.
    """

    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self.failures: List[Tuple[Tuple[str, ...], str]] = []
        self.account = "operator@example.com"
        self.project = "proj-default"
        self.visible_projects = ["proj-default", "proj-a", "proj-b"]
        self.service_accounts: Set[str] = set()
        self.keys: Dict[str, str] = {}
        self.roles: Set[Tuple[str, str]] = set()
        self.bindings: Set[Tuple[str, str, str]] = set()
        self._next_key = 0

    def fail_on(self, *tokens: str, stderr: str = "ERROR: (gcloud) PERMISSION_DENIED") -> None:
        self.failures.append((tokens, stderr))

    def commands(self, *tokens: str) -> List[List[str]]:
        return [c for c in self.calls if all(t in c for t in tokens)]

    def _error(self, cmd: List[str], stderr: str):  # noqa: ANN202
        from onboard_kit.errors import ProviderCallError

        return ProviderCallError(
            f"명령 실행 실패: {' '.join(cmd)} (exit=1)",
            cmd=cmd,
            returncode=1,
            stderr=stderr,
        )

    def __call__(self, cmd: Sequence[str], **kwargs):  # noqa: ANN003, ANN204
        from onboard_kit.subprocess_utils import RunResult

        cmd = list(cmd)
        self.calls.append(cmd)

        for tokens, stderr in self.failures:
            if all(t in cmd for t in tokens):
                raise self._error(cmd, stderr)

        ok = RunResult(returncode=0, stdout="", stderr="")
        args = cmd[1:]

        if args[:2] == ["config", "get-value"]:
            value = {"account": self.account, "project": self.project}.get(args[2], "")
            return RunResult(returncode=0, stdout=f"{value}\n", stderr="")

        if args[:2] == ["projects", "list"]:
            if "--format=value(projectId)" in args:
                return RunResult(returncode=0, stdout="\n".join(self.visible_projects) + "\n", stderr="")
            return RunResult(returncode=0, stdout="PROJECT_ID  NAME\n", stderr="")

        if args[:3] == ["iam", "service-accounts", "create"]:
            email = f"{args[3]}@{_flag(args, 'project')}.iam.gserviceaccount.com"
            self.service_accounts.add(email)
            return ok

        if args[:3] == ["iam", "service-accounts", "list"]:
            return RunResult(returncode=0, stdout="EMAIL  DISPLAY NAME\n", stderr="")

        if args[:3] == ["iam", "service-accounts", "delete"]:
            if args[3] not in self.service_accounts:
                raise self._error(cmd, f"ERROR: NOT_FOUND: Unknown service account {args[3]}")
            self.service_accounts.discard(args[3])
            return ok

        if args[:4] == ["iam", "service-accounts", "keys", "create"]:
            self._next_key += 1
            key_id = f"{self._next_key:040x}"
            self.keys[key_id] = _flag(args, "iam-account") or ""
            with open(args[4], "w", encoding="utf-8") as f:
                f.write("{}")
            return RunResult(
                returncode=0,
                stdout="",
                stderr=f"created key [{key_id}] of type [json] as [{args[4]}] for [{self.keys[key_id]}]",
            )

        if args[:4] == ["iam", "service-accounts", "keys", "delete"]:
            self.keys.pop(args[4], None)
            return ok

        if args[:3] == ["iam", "roles", "create"]:
            self.roles.add((args[4], args[3]))
            return ok

        if args[:3] == ["iam", "roles", "delete"]:
            if (args[4], args[3]) not in self.roles:
                raise self._error(cmd, f"ERROR: NOT_FOUND: role {args[3]} does not exist")
            self.roles.discard((args[4], args[3]))
            return ok

        if args[:2] == ["projects", "add-iam-policy-binding"]:
            self.bindings.add((args[2], _flag(args, "member") or "", _flag(args, "role") or ""))
            return ok

        if args[:2] == ["projects", "remove-iam-policy-binding"]:
            binding = (args[2], _flag(args, "member") or "", _flag(args, "role") or "")
            if binding not in self.bindings:
                raise self._error(
                    cmd,
                    "ERROR: Policy binding with the specified principal, role, and condition not found!",
                )
            self.bindings.discard(binding)
            return ok

        return ok


@pytest.fixture
def fake_gcloud(monkeypatch: pytest.MonkeyPatch) -> FakeGcloud:
    from onboard_kit import subprocess_utils

    fake = FakeGcloud()
    monkeypatch.setattr(subprocess_utils, "run_command", fake)
    return fake


class ScriptedPrompter:
    """
    Prompter 대체. 미리 정한 답을 순서대로 돌려준다.
    """

    def __init__(self, answers: Sequence[str] = (), confirm: bool = False) -> None:
        self.answers = list(answers)
        self.questions: List[str] = []
        self.shown: List[str] = []
        self._confirm = confirm

    def ask(self, message: str, default: str = "") -> str:
        self.questions.append(message)
        if not self.answers:
            raise AssertionError(f"예상하지 못한 질문: {message}")
        return self.answers.pop(0).strip() or default

    def confirm(self, message: str, default: bool = False) -> bool:  # noqa: ARG002
        self.questions.append(message)
        return self._confirm

    def show(self, text: str) -> None:
        self.shown.append(text)

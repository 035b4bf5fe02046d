"""
errors
------

실행 중 발생하는 오류 분류.

- ConfigurationError: 잘못된 모드/플래그, 비어 있는 필수 입력 등.
  아직 GCP 쪽 상태를 건드리지 않은 시점에 발생하므로 롤백이 필요 없다.
- ProviderCallError: gcloud 호출 실패. 이전 단계에서 만든 리소스가 있으면 롤백 대상이다.
"""

from __future__ import annotations

import re
from typing import Sequence


# gcloud 의 API 상태 코드와, 바인딩 제거 시 gcloud 가 직접 내는 문구만 인정한다.
_NOT_FOUND_PATTERNS = (
    re.compile(r"\bNOT_FOUND\b"),
    re.compile(r"Policy binding with the specified .* not found"),
)


class ConfigurationError(ValueError):
    pass


class ProviderCallError(RuntimeError):
    def __init__(
        self,
        message: str,
        *,
        cmd: Sequence[str] = (),
        returncode: int | None = None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

    def is_not_found(self) -> bool:
        """
        대상 리소스/바인딩이 이미 없다는 응답인지 여부.
        cleanup 단계에서는 이런 실패를 no-op 으로 취급한다.
        """
        text = f"{self.stderr}\n{self.stdout}"
        return any(p.search(text) for p in _NOT_FOUND_PATTERNS)

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from textwrap import shorten
from typing import Sequence

from .errors import ProviderCallError
from .logging_utils import get_logger


logger = get_logger(__name__)


GCLOUD = "gcloud"
DEFAULT_TIMEOUT = 900.0


@dataclass(frozen=True)
class RunResult:
    returncode: int
    stdout: str
    stderr: str


def _failure_detail(stdout: str, stderr: str) -> str:
    if stderr:
        return "\nstderr:\n" + shorten(stderr, width=2000)
    if stdout:
        return "\nstdout:\n" + shorten(stdout, width=2000)
    return ""


def run_command(
    cmd: Sequence[str],
    *,
    timeout: float | None = DEFAULT_TIMEOUT,
    capture: bool = True,
) -> RunResult:
    """
    subprocess 실행 공통 유틸.

    - capture=True : stdout/stderr 캡처, 실패 시 요약을 예외 메시지에 포함
    - capture=False: 터미널에 그대로 연결 (gcloud auth login 처럼 사용자와 상호작용하는 명령)

    실패/미설치/timeout 은 모두 ProviderCallError 로 변환한다. 재시도는 하지 않는다.
    """
    logger.info("명령 실행: %s", " ".join(cmd))

    try:
        result = subprocess.run(  # noqa: S603
            list(cmd),
            check=True,
            capture_output=capture,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise ProviderCallError(
            f"필요한 명령을 찾을 수 없습니다: {cmd[0]} (gcloud CLI 가 설치되어 있는지 확인하세요)",
            cmd=cmd,
        ) from e
    except subprocess.TimeoutExpired as e:
        raise ProviderCallError(
            f"명령 실행이 {timeout}초 안에 끝나지 않았습니다: {' '.join(cmd)}",
            cmd=cmd,
        ) from e
    except subprocess.CalledProcessError as e:
        stdout = (e.stdout or "").strip()
        stderr = (e.stderr or "").strip()
        raise ProviderCallError(
            f"명령 실행 실패: {' '.join(cmd)} (exit={e.returncode}){_failure_detail(stdout, stderr)}",
            cmd=cmd,
            returncode=e.returncode,
            stdout=stdout,
            stderr=stderr,
        ) from e

    stdout = result.stdout or ""
    stderr = result.stderr or ""
    if stdout:
        logger.debug("명령 stdout: %s", shorten(stdout.strip(), width=2000))
    if stderr:
        logger.debug("명령 stderr: %s", shorten(stderr.strip(), width=2000))
    return RunResult(returncode=result.returncode, stdout=stdout, stderr=stderr)


def run_gcloud(args: Sequence[str], **kwargs) -> RunResult:  # noqa: ANN003
    """
    gcloud 래퍼. 모든 GCP 호출은 여기를 거친다(테스트에서는 run_command 를 교체).
    """
    return run_command([GCLOUD, *args], **kwargs)

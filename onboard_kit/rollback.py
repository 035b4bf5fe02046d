"""
rollback
--------

setup 이 중간에 실패했을 때(자동) 또는 cleanup 모드(명시적)에서
생성한 리소스를 best-effort 로 되돌리는 모듈.

단계:
  1. RunState.projects 의 각 프로젝트에서 역할 바인딩 제거 (없으면 no-op)
  2. 서비스 계정 삭제 (이번 실행에서 만든 경우 / cleanup 모드)
     재사용한 계정이면 이번에 발급한 키만 삭제
  3. 커스텀 역할 삭제 (바인딩 제거 이후)

한 단계가 실패해도 나머지 단계는 계속 진행하고, 다시 롤백을 arm 하지 않는다.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, List

from .errors import ProviderCallError
from .logging_utils import get_logger
from .state import RunState
from . import gcp_bindings, gcp_roles, gcp_service_account


logger = get_logger(__name__)


@dataclass
class CleanupReport:
    done: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)

    def to_text(self) -> str:
        lines: List[str] = ["# Cleanup summary", ""]
        for title, items in (
            ("Removed", self.done),
            ("Skipped (already absent)", self.skipped),
            ("Failed", self.failed),
        ):
            lines.append(f"## {title}")
            if items:
                for item in items:
                    lines.append(f"- {item}")
            else:
                lines.append("- (none)")
            lines.append("")
        return "\n".join(lines).rstrip()


def _step(report: CleanupReport, label: str, action: Callable[[], object]) -> None:
    try:
        result = action()
    except ProviderCallError as e:
        if e.is_not_found():
            logger.info("이미 없는 리소스라 건너뜁니다: %s", label)
            report.skipped.append(label)
            return
        logger.warning("cleanup 단계 실패 (계속 진행): %s: %s", label, e)
        report.failed.append(f"{label}: {e}")
        return
    except OSError as e:
        logger.warning("cleanup 단계 실패 (계속 진행): %s: %s", label, e)
        report.failed.append(f"{label}: {e}")
        return

    if result is False:
        report.skipped.append(label)
    else:
        report.done.append(label)


def cleanup_resources(state: RunState, default_project: str, *, delete_principal: bool) -> CleanupReport:
    """
    state 에 기록된 리소스를 되돌린다.

    Args:
        delete_principal: 서비스 계정 자체를 삭제할지 여부.
            자동 롤백에서는 '이번 실행에서 생성한 계정'일 때만 True.
    """
    report = CleanupReport()
    principal = state.principal
    role = state.role

    if principal is not None and role is not None:
        for project_id in state.projects:
            _step(
                report,
                f"binding {role.reference} ({project_id})",
                lambda p=project_id: gcp_bindings.remove_binding(p, principal, role.reference),
            )

    if principal is not None:
        if delete_principal:
            _step(
                report,
                f"service account {principal.email}",
                lambda: gcp_service_account.delete_service_account(principal.email, default_project),
            )
        elif principal.key_id:
            # 재사용한 계정은 남기고 이번에 발급한 키만 폐기한다.
            _step(
                report,
                f"key {principal.key_id} of {principal.email}",
                lambda: gcp_service_account.delete_key(principal, default_project),
            )

        if principal.key_file and os.path.exists(principal.key_file):
            _step(report, f"local key file {principal.key_file}", lambda: os.remove(principal.key_file))

    if role is not None and role.created:
        _step(report, f"custom role {role.reference}", lambda: gcp_roles.delete_role(role))

    logger.info(
        "cleanup 완료: removed=%d skipped=%d failed=%d",
        len(report.done),
        len(report.skipped),
        len(report.failed),
    )
    return report


@contextmanager
def rollback_guard(state: RunState, default_project: str) -> Iterator[RunState]:
    """
    setup 구간을 감싸는 guard.

    블록을 빠져나갈 때 state.rollback_armed 이면 cleanup 을 수행한다.
    예외(KeyboardInterrupt/SystemExit 포함)로 빠져나가면 자동으로 arm 된다.
    성공 경로에서는 블록 안에서 state.disarm() 을 호출해야 한다.
    """
    try:
        yield state
    except BaseException:
        state.arm()
        raise
    finally:
        if state.rollback_armed:
            state.disarm()
            if state.principal is None and state.role is None:
                logger.info("setup 이 실패했지만 되돌릴 리소스가 없습니다.")
            else:
                logger.warning("setup 이 실패하여 롤백을 수행합니다.")
                principal_created = state.principal is not None and state.principal.created
                state.rollback_report = cleanup_resources(
                    state,
                    default_project,
                    delete_principal=principal_created,
                )
                if state.rollback_report.has_failures:
                    logger.warning(
                        "롤백 중 일부 단계가 실패했습니다. 수동 정리가 필요합니다:\n%s",
                        state.rollback_report.to_text(),
                    )

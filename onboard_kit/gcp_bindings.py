"""
gcp_bindings
------------

프로젝트별로 커스텀 역할을 서비스 계정에 부여/회수하는 모듈.

바인딩은 주어진 순서대로 처리하며, 첫 실패에서 즉시 중단한다(fail-fast).
이미 성공한 프로젝트를 개별로 되돌리지 않고, 전체 롤백은 rollback 모듈이
RunState.projects(처음 의도한 목록 전체)를 기준으로 수행한다.
"""

from __future__ import annotations

from typing import Sequence

from .errors import ProviderCallError
from .logging_utils import get_logger
from .state import Principal, RunState
from . import subprocess_utils


logger = get_logger(__name__)


def add_binding(project_id: str, principal: Principal, role_ref: str) -> None:
    logger.info("역할 바인딩 추가: %s -> %s (project=%s)", role_ref, principal.email, project_id)
    subprocess_utils.run_gcloud(
        [
            "projects",
            "add-iam-policy-binding",
            project_id,
            f"--member={principal.member}",
            f"--role={role_ref}",
            "--condition=None",
            "--quiet",
        ]
    )


def remove_binding(project_id: str, principal: Principal, role_ref: str) -> bool:
    """
    바인딩을 제거한다. 바인딩이 원래 없었다면 False 를 반환하고 오류로 보지 않는다.
    """
    logger.info("역할 바인딩 제거: %s -> %s (project=%s)", role_ref, principal.email, project_id)
    try:
        subprocess_utils.run_gcloud(
            [
                "projects",
                "remove-iam-policy-binding",
                project_id,
                f"--member={principal.member}",
                f"--role={role_ref}",
                "--condition=None",
                "--quiet",
            ]
        )
    except ProviderCallError as e:
        if e.is_not_found():
            logger.info("바인딩이 없어 건너뜁니다 (project=%s)", project_id)
            return False
        raise
    return True


def bind_all(state: RunState, projects: Sequence[str]) -> None:
    """
    state.principal 에 state.role 을 projects 순서대로 바인딩한다.

    실패 시 롤백을 arm 하고 예외를 그대로 올린다. 남은 프로젝트는 시도하지 않는다.
    """
    if state.principal is None or state.role is None:
        raise RuntimeError("바인딩 전에 서비스 계정과 커스텀 역할이 준비되어 있어야 합니다.")

    # cleanup 은 성공 여부와 관계없이 의도한 목록 전체를 대상으로 한다.
    state.projects = list(projects)
    role_ref = state.role.reference

    for project_id in state.projects:
        try:
            add_binding(project_id, state.principal, role_ref)
        except ProviderCallError:
            logger.error("프로젝트 %s 에서 역할 바인딩에 실패했습니다.", project_id)
            state.arm()
            raise
        logger.info("프로젝트 %s 에 역할 바인딩을 추가했습니다.", project_id)

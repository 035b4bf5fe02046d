"""
gcp_project
-----------

역할 바인딩 대상 프로젝트 목록을 조회/결정하는 모듈.
"""

from __future__ import annotations

from typing import List

from .errors import ConfigurationError
from .logging_utils import get_logger
from .naming import parse_project_list
from . import subprocess_utils


logger = get_logger(__name__)


PROJECTS_DEFAULT = "default"
PROJECTS_ALL = "all"


def list_projects_table() -> str:
    """
    운영자 참고용 프로젝트 표(projectId, name).
    """
    result = subprocess_utils.run_gcloud(
        ["projects", "list", "--format=table(projectId, name)"]
    )
    return result.stdout


def list_project_ids() -> List[str]:
    """
    현재 자격 증명으로 볼 수 있는 모든 프로젝트 ID. 캐시하지 않는다.
    """
    result = subprocess_utils.run_gcloud(
        ["projects", "list", "--format=value(projectId)"]
    )
    return [line.strip() for line in result.stdout.splitlines() if line.strip()]


def resolve_target_projects(raw: str, default_project: str) -> List[str]:
    """
    입력 문자열을 바인딩 대상 프로젝트 목록으로 바꾼다.

    - "" / "default": 기본 프로젝트
    - "all"         : 보이는 모든 프로젝트 (실행 시점에 gcloud projects list)
    - 그 외          : 쉼표로 구분된 프로젝트 ID 목록
    """
    value = (raw or "").strip()

    if value == "" or value == PROJECTS_DEFAULT:
        return [default_project]

    if value == PROJECTS_ALL:
        projects = list_project_ids()
        if not projects:
            raise ConfigurationError("현재 계정으로 조회되는 프로젝트가 없습니다.")
        logger.info("모든 프로젝트를 대상으로 합니다: %s", projects)
        return projects

    projects = [default_project if p == PROJECTS_DEFAULT else p for p in parse_project_list(value)]
    if not projects:
        raise ConfigurationError(f"프로젝트 ID 목록이 비어 있습니다: {raw!r}")
    return list(dict.fromkeys(projects))

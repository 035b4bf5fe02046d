"""
naming
------

서비스 계정 ID / 커스텀 역할 ID 정규화 및 검증.
GCP 호출 없이 동작하는 순수 함수만 둔다.

- 서비스 계정 ID: 6~30자, 소문자/숫자/하이픈, 소문자로 시작하고 하이픈으로 끝나지 않음
- 커스텀 역할 ID: 3~64자, 영문/숫자/밑줄/마침표
"""

from __future__ import annotations

import re
from typing import List

from .errors import ConfigurationError


SERVICE_ACCOUNT_ID_RE = re.compile(r"^[a-z]([-a-z0-9]*[a-z0-9])$")
SERVICE_ACCOUNT_ID_MIN = 6
SERVICE_ACCOUNT_ID_MAX = 30

ROLE_ID_RE = re.compile(r"^[a-zA-Z0-9_.]{3,64}$")

SERVICE_ACCOUNT_DOMAIN = "iam.gserviceaccount.com"


def _normalize_service_account_part(raw: str) -> str:
    name = raw.strip().lower()
    # 서비스 계정 ID 에는 밑줄을 쓸 수 없으므로 하이픈으로 바꾼다.
    name = re.sub(r"[\s_.]+", "-", name)
    name = re.sub(r"[^a-z0-9-]", "", name)
    name = re.sub(r"-{2,}", "-", name)
    return name.strip("-")


def _normalize_role_part(raw: str) -> str:
    name = raw.strip()
    # 역할 ID 에는 하이픈을 쓸 수 없다.
    name = re.sub(r"[\s-]+", "_", name)
    return re.sub(r"[^a-zA-Z0-9_.]", "", name)


def validate_service_account_id(account_id: str) -> str:
    if not (SERVICE_ACCOUNT_ID_MIN <= len(account_id) <= SERVICE_ACCOUNT_ID_MAX):
        raise ConfigurationError(
            f"서비스 계정 ID 는 {SERVICE_ACCOUNT_ID_MIN}~{SERVICE_ACCOUNT_ID_MAX}자여야 합니다: "
            f"{account_id!r} ({len(account_id)}자)"
        )
    if not SERVICE_ACCOUNT_ID_RE.match(account_id):
        raise ConfigurationError(
            f"서비스 계정 ID 형식이 올바르지 않습니다: {account_id!r} "
            "(소문자로 시작, 소문자/숫자/하이픈만 허용)"
        )
    return account_id


def validate_role_id(role_id: str) -> str:
    if not ROLE_ID_RE.match(role_id):
        raise ConfigurationError(
            f"커스텀 역할 ID 형식이 올바르지 않습니다: {role_id!r} "
            "(3~64자, 영문/숫자/밑줄/마침표만 허용)"
        )
    return role_id


def service_account_id(prefix: str, raw: str) -> str:
    """
    prefix + 정규화된 입력으로 서비스 계정 ID 를 만든다.
    """
    part = _normalize_service_account_part(raw)
    if not part:
        raise ConfigurationError("서비스 계정 이름이 비어 있습니다.")
    return validate_service_account_id(f"{prefix}{part}")


def role_id(prefix: str, raw: str) -> str:
    """
    prefix + "role_" + 정규화된 입력으로 커스텀 역할 ID 를 만든다.
    """
    part = _normalize_role_part(raw)
    if not part:
        raise ConfigurationError("커스텀 역할 이름이 비어 있습니다.")
    return validate_role_id(f"{prefix}role_{part}")


def service_account_email(account_id: str, project_id: str) -> str:
    # GCP 가 자동으로 부여하는 이메일 형식
    return f"{account_id}@{project_id}.{SERVICE_ACCOUNT_DOMAIN}"


def is_service_account_email(account: str, prefix: str = "") -> bool:
    if not account:
        return False
    if prefix and account.startswith(prefix):
        return True
    return account.endswith(f".{SERVICE_ACCOUNT_DOMAIN}")


def parse_project_list(raw: str) -> List[str]:
    """
    쉼표로 구분된 프로젝트 ID 목록. 공백/빈 항목/중복은 제거하고 순서는 유지한다.
    """
    seen: set[str] = set()
    projects: List[str] = []
    for part in (raw or "").split(","):
        project = part.strip()
        if not project or project in seen:
            continue
        seen.add(project)
        projects.append(project)
    return projects

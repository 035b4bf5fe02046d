"""
gcp_service_account
-------------------

커넥터가 사용할 서비스 계정(principal)을 생성하거나 기존 계정을 선택하고,
키를 발급/삭제하는 모듈.
"""

from __future__ import annotations

import os
import re
from typing import Optional

from .errors import ConfigurationError
from .logging_utils import get_logger
from .naming import service_account_email
from .state import Principal, PrincipalOrigin
from . import subprocess_utils


logger = get_logger(__name__)


# gcloud iam service-accounts keys create 출력: "created key [<id>] of type [json] as [...]"
_KEY_ID_RE = re.compile(r"created key \[([0-9a-fA-F]+)\]")


def create_service_account(account_id: str, project_id: str) -> Principal:
    logger.info("서비스 계정 생성: %s (project=%s)", account_id, project_id)
    subprocess_utils.run_gcloud(
        [
            "iam",
            "service-accounts",
            "create",
            account_id,
            f"--display-name={account_id}",
            f"--project={project_id}",
        ]
    )
    email = service_account_email(account_id, project_id)
    logger.info("서비스 계정을 생성했습니다: %s", email)
    return Principal(email=email, origin=PrincipalOrigin.CREATED)


def list_service_accounts_table(project_id: str) -> str:
    result = subprocess_utils.run_gcloud(
        [
            "iam",
            "service-accounts",
            "list",
            f"--project={project_id}",
            "--format=table(email,displayName)",
        ]
    )
    return result.stdout


def existing_principal(email: str) -> Principal:
    """
    운영자가 입력한 기존 서비스 계정 이메일을 그대로 사용한다.
    """
    value = (email or "").strip()
    if not value:
        raise ConfigurationError("서비스 계정 이메일이 비어 있습니다.")
    logger.info("기존 서비스 계정을 사용합니다: %s", value)
    return Principal(email=value, origin=PrincipalOrigin.REUSED)


def _parse_key_id(text: str) -> Optional[str]:
    match = _KEY_ID_RE.search(text or "")
    return match.group(1) if match else None


def create_key(principal: Principal, project_id: str, key_file: str) -> str:
    """
    서비스 계정 키를 발급해 key_file 에 저장한다. 키를 바로 활성화하지는 않는다.
    """
    logger.info("서비스 계정 키 발급: %s -> %s", principal.email, key_file)
    key_dir = os.path.dirname(key_file)
    if key_dir:
        os.makedirs(key_dir, exist_ok=True)

    result = subprocess_utils.run_gcloud(
        [
            "iam",
            "service-accounts",
            "keys",
            "create",
            key_file,
            f"--iam-account={principal.email}",
            f"--project={project_id}",
        ]
    )
    principal.key_file = key_file
    principal.key_id = _parse_key_id(result.stderr) or _parse_key_id(result.stdout)
    logger.info("키를 발급했습니다: %s (key_id=%s)", key_file, principal.key_id)
    return key_file


def delete_key(principal: Principal, project_id: str) -> None:
    if not principal.key_id:
        logger.debug("삭제할 key_id 가 없어 건너뜁니다: %s", principal.email)
        return
    logger.info("서비스 계정 키 삭제: %s (key_id=%s)", principal.email, principal.key_id)
    subprocess_utils.run_gcloud(
        [
            "iam",
            "service-accounts",
            "keys",
            "delete",
            principal.key_id,
            f"--iam-account={principal.email}",
            f"--project={project_id}",
            "--quiet",
        ]
    )


def delete_service_account(email: str, project_id: str) -> None:
    logger.info("서비스 계정 삭제: %s (project=%s)", email, project_id)
    subprocess_utils.run_gcloud(
        [
            "iam",
            "service-accounts",
            "delete",
            email,
            f"--project={project_id}",
            "--quiet",
        ]
    )

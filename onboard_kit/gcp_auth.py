"""
gcp_auth
--------

gcloud 의 현재 계정/기본 프로젝트를 확인하고,
필요하면 로그인 또는 서비스 계정 활성화를 수행하는 모듈.
"""

from __future__ import annotations

from .config import RunConfig
from .errors import ConfigurationError, ProviderCallError
from .logging_utils import get_logger
from .naming import is_service_account_email
from . import subprocess_utils


logger = get_logger(__name__)

_UNSET = "(unset)"


def _get_config_value(key: str) -> str:
    try:
        result = subprocess_utils.run_gcloud(["config", "get-value", key])
    except ProviderCallError as e:
        # 값이 없을 때 gcloud 가 non-zero 로 끝나는 버전이 있어 빈 값으로 취급한다.
        logger.debug("gcloud config get-value %s 실패, 빈 값으로 취급: %s", key, e)
        return ""
    value = result.stdout.strip()
    return "" if value == _UNSET else value


def get_active_account() -> str:
    return _get_config_value("account")


def get_config_project() -> str:
    return _get_config_value("project")


def ensure_active_account() -> str:
    """
    활성 gcloud 계정이 없으면 `gcloud auth login` 을 실행한 뒤 다시 확인한다.
    """
    account = get_active_account()
    if account:
        logger.info("활성 gcloud 계정: %s", account)
        return account

    logger.info("활성 gcloud 계정이 없어 로그인을 시작합니다.")
    subprocess_utils.run_gcloud(["auth", "login"], capture=False, timeout=None)

    account = get_active_account()
    if not account:
        raise ConfigurationError("gcloud 로그인에 실패했습니다. 활성 계정이 없습니다.")
    logger.info("활성 gcloud 계정: %s", account)
    return account


def resolve_default_project(cfg: RunConfig) -> str:
    """
    GCP_PROJECT_ID 가 있으면 그것을, 없으면 gcloud config 의 기본 프로젝트를 사용한다.
    """
    project = cfg.default_project or get_config_project()
    if not project:
        raise ConfigurationError(
            "기본 프로젝트가 설정되지 않았습니다. "
            "`gcloud config set project PROJECT_ID` 로 설정하거나 GCP_PROJECT_ID 를 지정하세요."
        )
    logger.info("기본 프로젝트: %s", project)
    return project


def ensure_user_account(account: str, sa_prefix: str) -> None:
    """
    cleanup 은 충분한 권한을 가진 사용자 계정으로만 실행해야 한다.
    """
    if is_service_account_email(account, prefix=sa_prefix):
        raise ConfigurationError(
            f"cleanup 은 사용자 계정으로 실행해야 합니다 (현재 활성 계정: {account}). "
            "`gcloud config set account YOUR_USER_ACCOUNT_EMAIL` 로 계정을 전환하세요."
        )


def activate_service_account(key_file: str) -> None:
    """
    발급한 키로 서비스 계정을 활성화한다. 이후 gcloud 자격 증명이 전환된다.
    """
    logger.info("서비스 계정 활성화: key_file=%s", key_file)
    subprocess_utils.run_gcloud(["auth", "activate-service-account", f"--key-file={key_file}"])
    logger.info("서비스 계정을 활성화했습니다.")

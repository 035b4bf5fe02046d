from __future__ import annotations

import shutil
import time
from dataclasses import dataclass
from typing import List, Optional

from .config import RunConfig
from .errors import ConfigurationError, ProviderCallError
from .logging_utils import get_logger
from .prompts import Prompter
from .rollback import CleanupReport, cleanup_resources, rollback_guard
from .state import CustomRole, RoleScope, RunState
from . import (
    gcp_auth,
    gcp_bindings,
    gcp_project,
    gcp_roles,
    gcp_service_account,
    naming,
    subprocess_utils,
)


logger = get_logger(__name__)

SERVICE_ACCOUNT_NEW = "new"
SERVICE_ACCOUNT_EXISTING = "existing"

_RULE = "-" * 55


@dataclass
class CleanupRequest:
    """
    cleanup 모드 입력. 비어 있는 값은 실행 중에 묻는다.
    """

    service_account_email: Optional[str] = None
    role_name: Optional[str] = None
    projects: Optional[str] = None
    org_id: Optional[str] = None
    keep_service_account: bool = False


def _select_principal(cfg: RunConfig, state: RunState, prompter: Prompter, default_project: str) -> None:
    choice = SERVICE_ACCOUNT_NEW
    if cfg.interactive:
        choice = prompter.ask(
            "새 서비스 계정을 만들까요, 기존 계정을 사용할까요? (new/existing)"
        ).lower()
        if not choice:
            raise ConfigurationError("선택값이 비어 있습니다.")

    if choice == SERVICE_ACCOUNT_NEW:
        raw_name = cfg.run_id
        if cfg.interactive:
            raw_name = prompter.ask("새 서비스 계정 이름 (prefix 제외)")
            if not raw_name:
                raise ConfigurationError("서비스 계정 이름이 비어 있습니다.")
        account_id = naming.service_account_id(cfg.sa_prefix, raw_name)
        # 생성 실패 시에는 아직 만든 리소스가 없으므로 롤백할 것이 없다.
        state.principal = gcp_service_account.create_service_account(account_id, default_project)
        if cfg.propagation_seconds > 0:
            logger.info("서비스 계정 전파 대기: %.0f초", cfg.propagation_seconds)
            time.sleep(cfg.propagation_seconds)
    elif choice == SERVICE_ACCOUNT_EXISTING:
        logger.info("프로젝트 %s 의 서비스 계정 목록을 조회합니다.", default_project)
        prompter.show(gcp_service_account.list_service_accounts_table(default_project))
        email = prompter.ask("사용할 기존 서비스 계정 이메일")
        state.principal = gcp_service_account.existing_principal(email)
    else:
        raise ConfigurationError(f"잘못된 선택입니다: {choice!r} (new/existing 중 하나)")

    try:
        gcp_service_account.create_key(state.principal, default_project, cfg.key_file)
    except ProviderCallError:
        logger.error("서비스 계정 키 발급에 실패했습니다.")
        state.arm()
        raise


def _resolve_projects(cfg: RunConfig, prompter: Prompter, default_project: str) -> List[str]:
    if not cfg.interactive:
        return [default_project]

    logger.info("바인딩 가능한 프로젝트 목록을 조회합니다.")
    prompter.show(gcp_project.list_projects_table())
    raw = prompter.ask(
        "역할을 부여할 프로젝트 ID (쉼표 구분). "
        f"'{gcp_project.PROJECTS_DEFAULT}' 또는 Enter 는 기본 프로젝트({default_project}), "
        f"'{gcp_project.PROJECTS_ALL}' 은 모든 프로젝트",
        default="",
    )
    return gcp_project.resolve_target_projects(raw, default_project)


def _resolve_role(cfg: RunConfig, prompter: Prompter, default_project: str) -> tuple[str, RoleScope]:
    raw_name = cfg.run_id
    org_id = cfg.org_id
    if cfg.interactive:
        raw_name = prompter.ask("커스텀 역할 이름 (prefix 제외)")
        if not raw_name:
            raise ConfigurationError("커스텀 역할 이름이 비어 있습니다.")
        org_id = prompter.ask(
            "조직 수준 역할을 만들려면 조직 ID 입력 (Enter 는 프로젝트 수준)",
            default=cfg.org_id or "",
        ) or None

    role_name = naming.role_id(cfg.role_prefix, raw_name)
    # scope 는 여기서 한 번 정해지고 이후(롤백 포함) 바뀌지 않는다.
    scope = RoleScope.resolve(org_id, default_project)
    if scope.is_organization:
        logger.info("조직 수준 커스텀 역할을 생성합니다: organization=%s", scope.id)
    else:
        logger.info("조직 ID 가 없어 프로젝트 수준 커스텀 역할을 생성합니다: project=%s", scope.id)
    return role_name, scope


def format_setup_report(cfg: RunConfig, state: RunState) -> str:
    assert state.principal is not None and state.role is not None
    principal = state.principal
    role = state.role
    scope = role.scope

    lines: List[str] = [_RULE, "Credentials required to onboard the GCP Connector:"]
    if scope.is_organization:
        lines.append(f"Organization ID: {scope.id}")
    lines.append(f"Project ID: {cfg.default_project}")
    lines.append(f"Service Account Email: {principal.email}")
    lines.append(f"Key File: {principal.key_file}")
    lines.append(f"Role Reference: {role.reference}")
    lines.append(_RULE)
    lines.append("Information required to initiate cleanup (Save these details!!):")
    lines.append(f"  Service Account Email: {principal.email}")
    lines.append(f"  Custom Role Name: {role.name}")
    if scope.is_organization:
        lines.append(f"  Organization ID: {scope.id}")
    lines.append(f"  Project ID: {cfg.default_project}")
    lines.append(f"  Bound Project IDs: {','.join(state.projects)}")
    lines.append(_RULE)
    return "\n".join(lines)


def run_setup(cfg: RunConfig, prompter: Optional[Prompter] = None) -> tuple[RunState, str]:
    """
    setup(iam) 워크플로.

    서비스 계정 선택/생성 -> 키 발급 -> 대상 프로젝트 결정 -> 커스텀 역할 생성
    -> 프로젝트별 바인딩 -> 리포트 생성.

    rollback_guard 안에서 실행되며, 중간에 실패하면 그때까지 만든 리소스를 되돌리고
    예외를 그대로 올린다.

    Returns:
        state: 최종 RunState
        report: 온보딩/cleanup 정보 텍스트
    """
    prompter = prompter or Prompter()

    gcp_auth.ensure_active_account()
    default_project = gcp_auth.resolve_default_project(cfg)
    cfg.default_project = default_project
    logger.info("IAM 리소스 설정을 시작합니다. (run_id=%s)", cfg.run_id)

    state = RunState()
    with rollback_guard(state, default_project):
        _select_principal(cfg, state, prompter, default_project)
        projects = _resolve_projects(cfg, prompter, default_project)
        role_name, scope = _resolve_role(cfg, prompter, default_project)

        try:
            state.role = gcp_roles.create_role(role_name, scope)
        except ProviderCallError:
            logger.error("커스텀 역할 생성에 실패했습니다.")
            state.arm()
            raise

        gcp_bindings.bind_all(state, projects)
        report = format_setup_report(cfg, state)
        state.disarm()

    return state, report


def finish_setup(cfg: RunConfig, state: RunState, prompter: Optional[Prompter] = None) -> None:
    """
    리소스 생성이 끝난 뒤의 선택 단계(키 다운로드, 서비스 계정 활성화).
    여기서의 실패는 이미 만든 리소스를 되돌리지 않는다.
    """
    prompter = prompter or Prompter()
    assert state.principal is not None
    key_file = state.principal.key_file or cfg.key_file

    if cfg.download_key_file and shutil.which("cloudshell"):
        logger.info("키 파일 다운로드를 시작합니다: %s", key_file)
        try:
            subprocess_utils.run_command(["cloudshell", "download", key_file])
        except ProviderCallError as e:
            logger.warning("키 파일 다운로드 실패 (직접 내려받으세요): %s", e)

    activate = cfg.activate_service_account
    if cfg.interactive:
        prompter.show(
            "IAM 리소스는 현재 사용자 계정으로 생성되었습니다.\n"
            "서비스 계정을 활성화하면 gcloud 의 활성 자격 증명이 전환됩니다."
        )
        activate = prompter.confirm("커넥터용 서비스 계정을 지금 활성화할까요?", default=False)

    if activate:
        gcp_auth.activate_service_account(key_file)
    else:
        logger.info("서비스 계정 활성화를 건너뜁니다.")


def run_cleanup(
    cfg: RunConfig,
    request: Optional[CleanupRequest] = None,
    prompter: Optional[Prompter] = None,
) -> Optional[CleanupReport]:
    """
    cleanup 워크플로. 이전 실행 상태 없이 서비스 계정 이메일과 역할 이름만으로
    바인딩 제거 -> 서비스 계정 삭제 -> 커스텀 역할 삭제를 수행한다.

    역할 이름이 비어 있으면 아무 것도 하지 않고 None 을 반환한다.
    """
    request = request or CleanupRequest()
    prompter = prompter or Prompter()

    account = gcp_auth.ensure_active_account()
    gcp_auth.ensure_user_account(account, cfg.sa_prefix)
    default_project = gcp_auth.resolve_default_project(cfg)
    cfg.default_project = default_project
    logger.info("cleanup 모드를 시작합니다.")

    email = request.service_account_email or prompter.ask("삭제할 서비스 계정 이메일")
    role_name = (request.role_name or prompter.ask("삭제할 커스텀 역할 이름")).strip()
    if not role_name:
        logger.info("커스텀 역할 이름이 없어 cleanup 을 종료합니다.")
        return None
    naming.validate_role_id(role_name)
    principal = gcp_service_account.existing_principal(email)

    org_id = request.org_id or cfg.org_id
    if cfg.interactive and not org_id:
        org_id = prompter.ask(
            "조직 수준 역할이면 조직 ID 입력 (Enter 는 프로젝트 수준)", default=""
        ) or None

    raw_projects = request.projects
    if raw_projects is None and cfg.interactive:
        raw_projects = prompter.ask(
            f"바인딩을 제거할 프로젝트 ID (쉼표 구분, 기본값 {default_project})", default=""
        )
    projects = gcp_project.resolve_target_projects(raw_projects or "", default_project)

    state = RunState(
        principal=principal,
        role=CustomRole(
            name=role_name,
            scope=RoleScope.resolve(org_id, default_project),
            created=True,
        ),
        projects=projects,
    )
    if request.keep_service_account:
        logger.info("서비스 계정은 유지합니다: %s", principal.email)

    return cleanup_resources(
        state,
        default_project,
        delete_principal=not request.keep_service_account,
    )

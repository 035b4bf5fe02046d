import sys
from typing import Optional

import click

from .config import MODE_CLEANUP, RunConfig, load_env_files, validate_run_options
from .errors import ConfigurationError, ProviderCallError
from .logging_utils import setup_logging, get_logger
from .orchestrator import CleanupRequest, finish_setup, run_cleanup, run_setup


logger = get_logger(__name__)


def _fail(message: str) -> None:
    click.echo(f"[ERROR] {message}", err=True)
    sys.exit(1)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "-C",
    "--chdir",
    "chdir",
    type=click.Path(file_okay=False, dir_okay=True, exists=True),
    default=".",
    help="작업 디렉토리 (.env / .env.onboard 위치, 상대 경로 KEY_DIR 의 기준, 기본: 현재 디렉토리)",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="로그 레벨을 DEBUG로 올립니다.",
)
@click.option(
    "-m",
    "--mode",
    "mode",
    default="iam",
    show_default=True,
    help="실행 모드: iam(설정) 또는 cleanup(정리)",
)
@click.option(
    "-i",
    "--interactive",
    "interactive",
    default="false",
    show_default=True,
    help="interactive 모드 여부: true 또는 false",
)
@click.option("--run-id", "run_id", default=None, help="기본 이름 생성에 쓰는 실행 ID (기본: 현재 Unix 타임스탬프)")
@click.option("--service-account-email", "sa_email", default=None, help="[cleanup] 삭제할 서비스 계정 이메일")
@click.option("--role-name", "role_name", default=None, help="[cleanup] 삭제할 커스텀 역할 이름")
@click.option("--projects", "projects", default=None, help="[cleanup] 바인딩을 제거할 프로젝트 ID (쉼표 구분, default, all)")
@click.option("--org-id", "org_id", default=None, help="[cleanup] 조직 수준 역할의 조직 ID (기본: ORG_ID 환경변수)")
@click.option(
    "--keep-service-account",
    is_flag=True,
    help="[cleanup] 서비스 계정은 삭제하지 않습니다 (기존 계정을 재사용한 경우).",
)
def main(
    chdir: str,
    verbose: int,
    mode: str,
    interactive: str,
    run_id: Optional[str],
    sa_email: Optional[str],
    role_name: Optional[str],
    projects: Optional[str],
    org_id: Optional[str],
    keep_service_account: bool,
) -> None:
    """보안 커넥터 온보딩용 GCP IAM 리소스(서비스 계정, 키, 커스텀 역할, 바인딩) 설정/정리 CLI"""
    setup_logging(verbose)

    # GCP 호출 전에 검증
    try:
        mode, is_interactive = validate_run_options(mode, interactive)
    except ConfigurationError as e:
        _fail(str(e))

    try:
        load_env_files(chdir)
        cfg = RunConfig.from_env(
            mode=mode, interactive=is_interactive, run_id=run_id, base_dir=chdir
        )
    except ConfigurationError as e:
        _fail(f"설정 로드 실패: {e}")
    logger.debug("Config loaded: %s", cfg)

    if mode == MODE_CLEANUP:
        request = CleanupRequest(
            service_account_email=sa_email,
            role_name=role_name,
            projects=projects,
            org_id=org_id,
            keep_service_account=keep_service_account,
        )
        try:
            report = run_cleanup(cfg, request)
        except (ConfigurationError, ProviderCallError) as e:
            _fail(f"cleanup 실패: {e}")

        if report is None:
            click.echo("커스텀 역할 이름이 없어 cleanup 을 건너뛰었습니다.")
        else:
            click.echo(report.to_text())
        click.echo("Cleanup finished.")
        return

    try:
        state, summary = run_setup(cfg)
    except (ConfigurationError, ProviderCallError) as e:
        _fail(f"설정 실패: {e}")

    click.echo(summary)

    try:
        finish_setup(cfg, state)
    except ProviderCallError as e:
        _fail(f"서비스 계정 활성화 실패: {e}")


if __name__ == "__main__":
    main()

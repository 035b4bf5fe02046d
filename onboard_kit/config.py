from __future__ import annotations

import os
import time
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError


ENV_FILES_DEFAULT_ORDER = [".env", ".env.onboard"]

MODE_SETUP = "iam"
MODE_CLEANUP = "cleanup"
ALL_MODES: List[str] = [MODE_SETUP, MODE_CLEANUP]
_MODE_ALIASES = {"setup": MODE_SETUP}

DEFAULT_SA_PREFIX = "ciscocsw-app-"
DEFAULT_ROLE_PREFIX = "ciscocsw_"
DEFAULT_PROPAGATION_SECONDS = 10.0


def load_env_files(base_dir: str = ".",
                   files: Optional[List[str]] = None) -> None:
    """
    주어진 디렉토리에서 .env 계열 파일을 순서대로 로드한다.
    후순위 파일이 같은 키를 덮어쓴다.
    """
    order = files or ENV_FILES_DEFAULT_ORDER
    for name in order:
        path = os.path.join(base_dir, name)
        if os.path.exists(path):
            load_dotenv(path, override=True)


def _get_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y"}


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} 값이 숫자가 아닙니다: {raw!r}") from e


def new_run_id() -> str:
    return str(int(time.time()))


def validate_run_options(mode: str, interactive: str) -> tuple[str, bool]:
    """
    -m/-i 값을 검증한다. GCP 호출 전에 실패해야 하므로 순수 함수로 둔다.

    Returns:
        (정규화된 mode, interactive 여부)
    """
    # 대소문자/공백을 보정하지 않는다. 정확히 일치하는 값만 허용.
    normalized_mode = _MODE_ALIASES.get(mode, mode)
    if normalized_mode not in ALL_MODES:
        raise ConfigurationError(
            f"mode 는 'iam' 또는 'cleanup' 이어야 합니다: {mode!r}"
        )

    if interactive not in {"true", "false"}:
        raise ConfigurationError(
            f"interactive 는 'true' 또는 'false' 이어야 합니다: {interactive!r}"
        )

    return normalized_mode, interactive == "true"


@dataclass
class RunConfig:
    mode: str
    interactive: bool
    run_id: str

    # 런타임에 gcloud config 에서 채워질 수 있음
    default_project: Optional[str] = None
    org_id: Optional[str] = None

    sa_prefix: str = DEFAULT_SA_PREFIX
    role_prefix: str = DEFAULT_ROLE_PREFIX
    propagation_seconds: float = DEFAULT_PROPAGATION_SECONDS
    key_dir: str = "."

    download_key_file: bool = True
    activate_service_account: bool = False

    @property
    def key_file(self) -> str:
        return os.path.join(self.key_dir, f"key_{self.run_id}.json")

    @classmethod
    def from_env(cls, mode: str, interactive: bool,
                 run_id: Optional[str] = None,
                 base_dir: str = ".") -> "RunConfig":
        """
        환경변수에서 설정을 읽는다. 상대 경로인 KEY_DIR 은 base_dir(-C) 기준으로 해석한다.
        """
        if mode not in ALL_MODES:
            raise ConfigurationError(f"알 수 없는 mode 입니다: {mode!r}")

        return cls(
            mode=mode,
            interactive=interactive,
            run_id=run_id or new_run_id(),
            default_project=os.getenv("GCP_PROJECT_ID") or None,
            org_id=(os.getenv("ORG_ID") or "").strip() or None,
            sa_prefix=os.getenv("SA_PREFIX", DEFAULT_SA_PREFIX),
            role_prefix=os.getenv("ROLE_PREFIX", DEFAULT_ROLE_PREFIX),
            propagation_seconds=_get_float("SA_PROPAGATION_SECONDS", DEFAULT_PROPAGATION_SECONDS),
            key_dir=os.path.normpath(os.path.join(base_dir, os.getenv("KEY_DIR", "."))),
            download_key_file=_get_bool("DOWNLOAD_KEY_FILE", True),
            activate_service_account=_get_bool("ACTIVATE_SERVICE_ACCOUNT", False),
        )

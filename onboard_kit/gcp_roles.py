"""
gcp_roles
---------

커넥터용 커스텀 역할 정의(고정 권한 목록)와 생성/삭제를 담당하는 모듈.
권한 목록은 실행 시점에 바꿀 수 없다.
"""

from __future__ import annotations

import json
import os
import tempfile
from typing import Dict

from .logging_utils import get_logger
from .state import CustomRole, RoleScope
from . import subprocess_utils


logger = get_logger(__name__)


ROLE_DESCRIPTION = (
    "Cisco Secure Workload (CSW) generated custom role with permissions for "
    "compute, networking, container clusters, and storage."
)
ROLE_STAGE = "GA"

ROLE_PERMISSIONS: tuple[str, ...] = (
    # compute / firewall
    "compute.firewallPolicies.get",
    "compute.firewallPolicies.list",
    "compute.firewallPolicies.use",
    "compute.firewallPolicies.update",
    "compute.firewallPolicies.create",
    "compute.globalOperations.get",
    "compute.instances.get",
    "compute.instances.list",
    "compute.instances.getEffectiveFirewalls",
    "compute.networks.get",
    "compute.networks.list",
    "compute.networks.getEffectiveFirewalls",
    "compute.networks.setFirewallPolicy",
    "compute.subnetworks.get",
    "compute.subnetworks.list",
    "compute.firewalls.list",
    "compute.firewalls.create",
    "compute.firewalls.update",
    "compute.firewalls.delete",
    # container
    "container.clusters.list",
    # storage
    "storage.buckets.get",
    "storage.objects.get",
    # iam / resource manager
    "resourcemanager.projects.getIamPolicy",
    "iam.roles.get",
    "iam.roles.list",
    "iam.roles.delete",
    "iam.serviceAccounts.get",
    "iam.serviceAccounts.list",
    "iam.serviceAccounts.create",
)


def build_role_definition(role_name: str) -> Dict[str, object]:
    return {
        "title": role_name,
        "description": ROLE_DESCRIPTION,
        "stage": ROLE_STAGE,
        "includedPermissions": list(ROLE_PERMISSIONS),
    }


def write_role_definition(definition: Dict[str, object]) -> str:
    """
    gcloud iam roles create --file 에 넘길 임시 JSON 파일을 만든다.
    호출자가 사용 후 삭제한다.
    """
    fd, path = tempfile.mkstemp(prefix="role_", suffix=".json")
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        json.dump(definition, f, indent=2)
    return path


def create_role(role_name: str, scope: RoleScope) -> CustomRole:
    role = CustomRole(name=role_name, scope=scope)
    path = write_role_definition(build_role_definition(role_name))
    logger.info("커스텀 역할 생성: %s (%s=%s, file=%s)", role_name, scope.kind, scope.id, path)
    try:
        subprocess_utils.run_gcloud(
            ["iam", "roles", "create", role_name, scope.flag, f"--file={path}"]
        )
    finally:
        os.remove(path)

    role.created = True
    logger.info("커스텀 역할을 생성했습니다: %s", role.reference)
    return role


def delete_role(role: CustomRole) -> None:
    logger.info("커스텀 역할 삭제: %s", role.reference)
    subprocess_utils.run_gcloud(
        ["iam", "roles", "delete", role.name, role.scope.flag, "--quiet"]
    )

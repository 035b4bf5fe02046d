import json
import os

import pytest

from onboard_kit import gcp_roles
from onboard_kit.errors import ProviderCallError
from onboard_kit.state import RoleScope


def test_role_definition_uses_static_permissions() -> None:
    definition = gcp_roles.build_role_definition("ciscocsw_role_1")

    assert definition["title"] == "ciscocsw_role_1"
    assert definition["stage"] == "GA"
    assert definition["includedPermissions"] == list(gcp_roles.ROLE_PERMISSIONS)
    assert "compute.instances.list" in definition["includedPermissions"]
    assert len(set(gcp_roles.ROLE_PERMISSIONS)) == len(gcp_roles.ROLE_PERMISSIONS)


def test_create_role_writes_and_removes_definition_file(fake_gcloud, monkeypatch) -> None:
    seen = {}
    original = gcp_roles.write_role_definition

    def spy(definition):  # noqa: ANN001, ANN202
        path = original(definition)
        with open(path, encoding="utf-8") as f:
            seen["definition"] = json.load(f)
        seen["path"] = path
        return path

    monkeypatch.setattr(gcp_roles, "write_role_definition", spy)

    role = gcp_roles.create_role("ciscocsw_role_1", RoleScope("project", "proj-default"))

    assert role.created
    assert role.reference == "projects/proj-default/roles/ciscocsw_role_1"
    assert seen["definition"]["title"] == "ciscocsw_role_1"
    assert not os.path.exists(seen["path"])
    cmd = fake_gcloud.commands("roles", "create")[0]
    assert "--project=proj-default" in cmd
    assert f"--file={seen['path']}" in cmd


def test_create_role_failure_still_removes_file(fake_gcloud, monkeypatch) -> None:
    paths = []
    original = gcp_roles.write_role_definition
    monkeypatch.setattr(gcp_roles, "write_role_definition", lambda d: paths.append(original(d)) or paths[-1])
    fake_gcloud.fail_on("roles", "create")

    with pytest.raises(ProviderCallError):
        gcp_roles.create_role("ciscocsw_role_1", RoleScope("organization", "42"))

    assert fake_gcloud.commands("--organization=42")
    assert not os.path.exists(paths[0])


def test_scope_resolution() -> None:
    assert RoleScope.resolve("42", "proj").reference("r") == "organizations/42/roles/r"
    assert RoleScope.resolve(None, "proj").reference("r") == "projects/proj/roles/r"
    assert RoleScope.resolve("", "proj").flag == "--project=proj"

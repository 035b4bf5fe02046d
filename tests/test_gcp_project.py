import pytest

from onboard_kit import gcp_project
from onboard_kit.errors import ConfigurationError


@pytest.mark.parametrize("raw", ["", "  ", "default"])
def test_default_forms_resolve_to_default_project(raw: str, fake_gcloud) -> None:
    assert gcp_project.resolve_target_projects(raw, "proj-default") == ["proj-default"]
    assert fake_gcloud.calls == []


def test_explicit_list_keeps_order(fake_gcloud) -> None:
    projects = gcp_project.resolve_target_projects("p3,p1, default ,p3", "proj-default")

    assert projects == ["p3", "p1", "proj-default"]
    assert fake_gcloud.calls == []


def test_all_lists_projects_at_run_time(fake_gcloud) -> None:
    fake_gcloud.visible_projects = ["x1", "x2"]

    assert gcp_project.resolve_target_projects("all", "proj-default") == ["x1", "x2"]
    assert fake_gcloud.commands("projects", "list", "--format=value(projectId)")


def test_all_with_no_visible_projects_fails(fake_gcloud) -> None:
    fake_gcloud.visible_projects = []

    with pytest.raises(ConfigurationError):
        gcp_project.resolve_target_projects("all", "proj-default")


def test_only_commas_is_rejected(fake_gcloud) -> None:
    with pytest.raises(ConfigurationError):
        gcp_project.resolve_target_projects(",,", "proj-default")

"""
state
-----

한 번의 실행 동안 누적되는 상태(RunState)와 그 구성 요소.
전역 변수 대신 이 객체를 각 단계에 명시적으로 넘긴다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .rollback import CleanupReport


class PrincipalOrigin(str, Enum):
    CREATED = "created"
    REUSED = "reused"


@dataclass
class Principal:
    email: str
    origin: PrincipalOrigin
    key_file: Optional[str] = None
    key_id: Optional[str] = None

    @property
    def created(self) -> bool:
        return self.origin is PrincipalOrigin.CREATED

    @property
    def member(self) -> str:
        return f"serviceAccount:{self.email}"


@dataclass(frozen=True)
class RoleScope:
    """
    커스텀 역할이 정의되는 위치. organization 또는 project 중 하나.
    """

    kind: str  # organization | project
    id: str

    @classmethod
    def resolve(cls, org_id: Optional[str], default_project: str) -> "RoleScope":
        if org_id:
            return cls(kind="organization", id=org_id)
        return cls(kind="project", id=default_project)

    @property
    def is_organization(self) -> bool:
        return self.kind == "organization"

    @property
    def flag(self) -> str:
        return f"--{self.kind}={self.id}"

    def reference(self, role_name: str) -> str:
        collection = "organizations" if self.is_organization else "projects"
        return f"{collection}/{self.id}/roles/{role_name}"


@dataclass
class CustomRole:
    name: str
    scope: RoleScope
    created: bool = False

    @property
    def reference(self) -> str:
        return self.scope.reference(self.name)


@dataclass
class RunState:
    principal: Optional[Principal] = None
    role: Optional[CustomRole] = None
    # 바인딩 대상으로 "의도한" 프로젝트 목록 (성공한 것만이 아님)
    projects: List[str] = field(default_factory=list)
    rollback_armed: bool = False
    rollback_report: Optional["CleanupReport"] = None

    def arm(self) -> None:
        self.rollback_armed = True

    def disarm(self) -> None:
        self.rollback_armed = False

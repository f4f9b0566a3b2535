"""
成员领域实体 - 已验证身份与角色
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from domain.common.exceptions import AuthorizationError


class Role(str, Enum):
    PARTICIPANT = "participant"
    ORGANIZER = "organizer"
    JUDGE = "judge"


@dataclass(frozen=True)
class Identity:
    """A verified caller identity.

    Produced by the external auth collaborator (signed token), never from
    the role a socket declares for routing. Also persisted as a member
    directory row so read paths can resolve display fields.
    """

    id: str
    name: str
    role: Role

    @property
    def is_organizer(self) -> bool:
        return self.role is Role.ORGANIZER

    def ensure_organizer(self) -> None:
        """业务规则：特权操作仅限组织者"""
        if not self.is_organizer:
            raise AuthorizationError(Role.ORGANIZER.value)

    def display(self) -> dict:
        return {"id": self.id, "name": self.name, "role": self.role.value}

from dataclasses import dataclass
from enum import IntEnum


class Position(IntEnum):
    USER = 0
    DEVELOPER = 1
    ADMIN = 2


POSITION_LABELS = {
    Position.USER: "User",
    Position.DEVELOPER: "Developer",
    Position.ADMIN: "Admin",
}


@dataclass
class User:
    id: int
    first_name: str
    last_name: str
    position: Position = Position.USER

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def position_name(self) -> str:
        return POSITION_LABELS[self.position]

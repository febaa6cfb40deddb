from dataclasses import dataclass, field
from enum import IntEnum


class AccessLevel(IntEnum):
    READ = 0
    READ_WRITE = 1
    READ_WRITE_DELETE = 2


ACCESS_LEVEL_LABELS = {
    AccessLevel.READ: "Read",
    AccessLevel.READ_WRITE: "Read/Write",
    AccessLevel.READ_WRITE_DELETE: "Read/Write/Delete",
}


@dataclass
class Credential:
    """A row of UserLogin. Equality compares every field; ordering compares access level only."""
    access_level: AccessLevel
    id: int
    username: str
    password_hash: str = field(repr=False)
    email: str
    user_id: int

    def __lt__(self, other):
        if not isinstance(other, Credential):
            return NotImplemented
        return self.access_level < other.access_level

    def __le__(self, other):
        if not isinstance(other, Credential):
            return NotImplemented
        return self.access_level <= other.access_level

    @property
    def access_level_name(self) -> str:
        return ACCESS_LEVEL_LABELS[self.access_level]

    def can_write(self) -> bool:
        return self.access_level >= AccessLevel.READ_WRITE

    def can_delete(self) -> bool:
        return self.access_level >= AccessLevel.READ_WRITE_DELETE

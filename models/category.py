from dataclasses import dataclass

from utils.constants import DEPOSIT_CATEGORY_ID, DEPOSIT_CATEGORY_NAME, GLOBAL_OWNER_ID


@dataclass(frozen=True)
class Category:
    id: int
    name: str
    user_id: int        # owner, or GLOBAL_OWNER_ID for built-ins

    @property
    def is_deposit(self) -> bool:
        return self.id == DEPOSIT_CATEGORY_ID

    @property
    def is_global(self) -> bool:
        return self.user_id == GLOBAL_OWNER_ID


DEPOSIT_CATEGORY = Category(
    id=DEPOSIT_CATEGORY_ID, name=DEPOSIT_CATEGORY_NAME, user_id=GLOBAL_OWNER_ID
)

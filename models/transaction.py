from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from utils.constants import DEPOSIT_CATEGORY_ID, NO_SUBCATEGORY_ID
from utils.date_helpers import parse_date


@dataclass(frozen=True)
class Transaction:
    id: int
    amount: Decimal         # signed: deposits >= 0, withdrawals < 0
    description: str
    date: str               # 'MM/dd/yyyy'
    category_id: int        # DEPOSIT_CATEGORY_ID for deposits
    subcategory_id: int     # NO_SUBCATEGORY_ID when unset
    user_id: int
    is_deposit: bool
    balance: Decimal = Decimal("0.00")
    category_name: str = ""
    subcategory_name: str = ""

    @property
    def date_value(self) -> Optional[date]:
        return parse_date(self.date)

    @property
    def magnitude(self) -> Decimal:
        return abs(self.amount)

    @property
    def has_subcategory(self) -> bool:
        return self.subcategory_id != NO_SUBCATEGORY_ID

    def is_consistent(self) -> bool:
        """Deposit iff non-negative amount in the reserved category/subcategory."""
        if self.is_deposit:
            return (
                self.amount >= 0
                and self.category_id == DEPOSIT_CATEGORY_ID
                and self.subcategory_id == NO_SUBCATEGORY_ID
            )
        return self.amount < 0

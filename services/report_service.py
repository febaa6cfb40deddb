from datetime import date
from decimal import Decimal

from database.transaction_dao import TransactionDAO
from utils.constants import CSV_HEADER


class ReportService:
    def __init__(self, tx_dao: TransactionDAO):
        self._tx_dao = tx_dao

    def _ledger(self, user_id: int, category_id: int | None):
        if category_id is None:
            return self._tx_dao.get_by_user(user_id)
        return self._tx_dao.get_by_user_and_category(user_id, category_id)

    def get_balance_series(
        self, user_id: int, category_id: int | None = None
    ) -> list[tuple[date, Decimal]]:
        """Return [(date, balance), ...] in ledger order for the balance line chart.

        Rows whose date can't be parsed are skipped.
        """
        series = []
        for tx in self._ledger(user_id, category_id):
            d = tx.date_value
            if d is not None:
                series.append((d, tx.balance))
        return series

    def get_summary(self, user_id: int) -> dict:
        totals = self._tx_dao.get_totals(user_id)
        totals["net"] = totals["income"] - totals["expense"]
        return totals

    def get_category_breakdown(self, user_id: int) -> list[dict]:
        """Return [{category, total}, ...] of withdrawals for pie chart."""
        return self._tx_dao.get_expense_by_category(user_id)

    def export_csv(self, user_id: int, category_id: int | None = None) -> list[list[str]]:
        """Return rows suitable for CSV export, header first."""
        rows = [list(CSV_HEADER)]
        for tx in self._ledger(user_id, category_id):
            rows.append([
                tx.date,
                tx.description,
                tx.category_name,
                tx.subcategory_name,
                f"{tx.amount:.2f}",
                f"{tx.balance:.2f}",
            ])
        return rows

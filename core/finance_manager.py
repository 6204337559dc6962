# core/finance_manager.py

from typing import List, Optional

from pymongo.database import Database

from .aggregation import aggregate_financials
from .config import settings
from .database import EXPENSES, SALES, get_database
from .exceptions import FarmAccessError
from .models import BuyerInfo, DateRange, Expense, FinancialSummary, Sale
from .record_access import MongoRecordAccess


class FinanceManager:
    """Records expenses and sales, and reports a farm's financial summary."""

    def __init__(self, db: Optional[Database] = None):
        self.db = db if db is not None else get_database()
        self.expenses_collection = self.db[EXPENSES]
        self.sales_collection = self.db[SALES]
        self.expenses_collection.create_index([("farm_id", 1), ("date", -1)])
        self.sales_collection.create_index([("farm_id", 1), ("sale_date", -1)])
        print("---FINANCE MANAGER: Ready---")

    def _access(self, user_id: str) -> MongoRecordAccess:
        return MongoRecordAccess(user_id, self.db)

    def _require_farm(self, user_id: str, farm_id: str):
        if self._access(user_id).get_farm(farm_id) is None:
            raise FarmAccessError()

    # --- Expenses ---

    def add_expense(self, user_id: str, farm_id: str, category: str, item_name: str, cost: float, date,
                    quantity: Optional[float] = None, unit: Optional[str] = None,
                    receipt_url: Optional[str] = None, notes: Optional[str] = None) -> Expense:
        self._require_farm(user_id, farm_id)
        expense = Expense(
            farm_id=farm_id,
            category=category,
            item_name=item_name,
            quantity=quantity,
            unit=unit,
            cost=cost,
            date=date,
            receipt_url=receipt_url,
            notes=notes,
        )
        self.expenses_collection.insert_one(expense.model_dump())
        print(f"---FINANCE MANAGER: Recorded {expense.category} expense of {expense.cost} on farm {farm_id}---")
        return expense

    def get_farm_expenses(self, user_id: str, farm_id: str, limit: Optional[int] = None) -> List[Expense]:
        return self._access(user_id).list_expenses(farm_id, limit=limit or settings.default_list_limit)

    def get_expenses_by_date_range(self, user_id: str, farm_id: str, start_date, end_date) -> List[Expense]:
        return self._access(user_id).list_expenses(farm_id, DateRange(start=start_date, end=end_date))

    # --- Sales ---

    def add_sale(self, user_id: str, farm_id: str, crop_name: str, quantity: float, unit: str,
                 price_per_unit: float, sale_date, total_amount: Optional[float] = None,
                 buyer_info: Optional[BuyerInfo] = None) -> Sale:
        self._require_farm(user_id, farm_id)
        sale = Sale(
            farm_id=farm_id,
            crop_name=crop_name,
            quantity=quantity,
            unit=unit,
            price_per_unit=price_per_unit,
            total_amount=total_amount,
            buyer_info=buyer_info,
            sale_date=sale_date,
        )
        self.sales_collection.insert_one(sale.model_dump())
        print(f"---FINANCE MANAGER: Recorded sale of {sale.crop_name} for {sale.total_amount} on farm {farm_id}---")
        return sale

    def get_farm_sales(self, user_id: str, farm_id: str, limit: Optional[int] = None) -> List[Sale]:
        return self._access(user_id).list_sales(farm_id, limit=limit or settings.default_list_limit)

    # --- Reporting ---

    def get_financial_summary(self, user_id: str, farm_id: str,
                              start_date=None, end_date=None) -> Optional[FinancialSummary]:
        """Summary over all records, or over an inclusive range when both bounds are given."""
        access = self._access(user_id)
        if access.get_farm(farm_id) is None:
            return None

        date_range = None
        if start_date and end_date:
            date_range = DateRange(start=start_date, end=end_date)

        expenses = access.list_expenses(farm_id, date_range)
        sales = access.list_sales(farm_id, date_range)
        return aggregate_financials(expenses, sales)

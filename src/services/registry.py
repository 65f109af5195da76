from dataclasses import dataclass

from db.database import Database
from services.accounts import AccountService
from services.cart import CartService
from services.catalog import CatalogService
from services.feedback import FeedbackService
from services.orders import OrderService
from services.reports import ReportService
from services.shops import ShopService
from utils.config import Settings


@dataclass(frozen=True)
class ShopServices:
    """Every service wired against one Database, handed to the UI as a unit."""

    database: Database
    accounts: AccountService
    catalog: CatalogService
    cart: CartService
    orders: OrderService
    reports: ReportService
    feedback: FeedbackService
    shops: ShopService

    @classmethod
    def from_database(cls, database: Database) -> "ShopServices":
        return cls(
            database=database,
            accounts=AccountService(database),
            catalog=CatalogService(database),
            cart=CartService(database),
            orders=OrderService(database),
            reports=ReportService(database),
            feedback=FeedbackService(database),
            shops=ShopService(database),
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ShopServices":
        return cls.from_database(Database.from_settings(settings))

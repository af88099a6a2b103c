from .tenant import Tenant
from .branch import Branch
from .user import User
from .daily_sales import DailySales
from .consolidated_sales import ConsolidatedSales
from .monthly_target import MonthlyTarget
from .notification import Notification
from .activity import Activity

__all__ = [
    "Tenant",
    "Branch",
    "User",
    "DailySales",
    "ConsolidatedSales",
    "MonthlyTarget",
    "Notification",
    "Activity",
]

from stockbook.models.inventory import DebtEntry, Item, Sale
from stockbook.models.security import OneTimeToken
from stockbook.models.user import User

__all__ = [
    "DebtEntry",
    "Item",
    "OneTimeToken",
    "Sale",
    "User",
]

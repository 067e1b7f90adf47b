from .catalog import Category, Product, Barcode
from .sales import Transaction, TransactionItem
from .inventory import StockLog, Notification
from .auth import User
from .settings import Setting

__all__ = [
    'Category', 'Product', 'Barcode',
    'Transaction', 'TransactionItem',
    'StockLog', 'Notification',
    'User',
    'Setting',
]

from .sales import Sale, SaleVersion
from .expenses import Expense, ExpenseVersion
from .inventory import InventoryItem, StockTransaction
from .audit import AuditLog
from .jobcards import JobCard
from .vendors import Vendor, VendorBill

__all__ = [
    'Sale', 'SaleVersion',
    'Expense', 'ExpenseVersion',
    'InventoryItem', 'StockTransaction',
    'AuditLog',
    'JobCard',
    'Vendor', 'VendorBill',
]

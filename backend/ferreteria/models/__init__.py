from .auth import User
from .catalog import Product, Supplier, InventoryMovement
from .sales import Sale, DocumentSequence, DOCUMENT_TYPES
from .records import AccountingRecord, Alert, ActionLog, RECORD_TYPES

__all__ = [
    'User',
    'Product', 'Supplier', 'InventoryMovement',
    'Sale', 'DocumentSequence', 'DOCUMENT_TYPES',
    'AccountingRecord', 'Alert', 'ActionLog', 'RECORD_TYPES',
]

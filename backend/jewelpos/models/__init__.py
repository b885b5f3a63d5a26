from .enums import (
    StockStatus, TransactionType, TransactionStatus, PaymentMethod, TransferStatus,
    MemberType, RawMaterialStatus, RawMaterialCondition, LocationType,
)
from .catalog import GoldCategory, Product, Location, StorageBox
from .stock import StockItem, StockTransfer
from .transactions import Transaction, TransactionItem
from .members import Member
from .pricing import PriceUpdateLog, PriceDetail
from .raw_materials import RawMaterial
from .auth import User, Role, Permission, RolePermission, SessionToken
from .documents import DocumentSequence, LedgerEvent

__all__ = [
    'StockStatus', 'TransactionType', 'TransactionStatus', 'PaymentMethod', 'TransferStatus',
    'MemberType', 'RawMaterialStatus', 'RawMaterialCondition', 'LocationType',
    'GoldCategory', 'Product', 'Location', 'StorageBox',
    'StockItem', 'StockTransfer',
    'Transaction', 'TransactionItem',
    'Member',
    'PriceUpdateLog', 'PriceDetail',
    'RawMaterial',
    'User', 'Role', 'Permission', 'RolePermission', 'SessionToken',
    'DocumentSequence', 'LedgerEvent',
]

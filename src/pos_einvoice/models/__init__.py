"""Modèles de données Pydantic des transactions de vente."""

from pos_einvoice.models.enums import (
    DisplayStatus,
    EInvoiceProvider,
    EInvoiceStatus,
    InvoiceStatus,
    LifecycleAction,
    OrderStatus,
    SourceType,
)
from pos_einvoice.models.results import (
    BulkItemResult,
    BulkReport,
    ErrorCode,
    ErrorKind,
    OperationError,
    OperationResult,
    ProviderReceipt,
    PublishResult,
)
from pos_einvoice.models.transaction import (
    WALK_IN_CUSTOMER_NAME,
    Amounts,
    Customer,
    InvoiceIdentity,
    LineItem,
    Transaction,
    TransactionContext,
    TransactionKey,
)

__all__ = [
    "Amounts",
    "BulkItemResult",
    "BulkReport",
    "Customer",
    "DisplayStatus",
    "EInvoiceProvider",
    "EInvoiceStatus",
    "ErrorCode",
    "ErrorKind",
    "InvoiceIdentity",
    "InvoiceStatus",
    "LifecycleAction",
    "LineItem",
    "OperationError",
    "OperationResult",
    "OrderStatus",
    "ProviderReceipt",
    "PublishResult",
    "SourceType",
    "Transaction",
    "TransactionContext",
    "TransactionKey",
    "WALK_IN_CUSTOMER_NAME",
]

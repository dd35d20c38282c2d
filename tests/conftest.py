"""Fixtures partagées : enregistrements bruts, stockage et fournisseur en mémoire."""

from decimal import Decimal
from typing import Any

import pytest

from pos_einvoice.models.enums import EInvoiceProvider, SourceType
from pos_einvoice.models.transaction import LineItem
from pos_einvoice.provider.connectors.memory import MemoryEInvoiceProvider
from pos_einvoice.provider.models import EInvoiceConnection
from pos_einvoice.store.connectors.memory import MemoryStore
from pos_einvoice.workflows.bulk import BulkOperationCoordinator
from pos_einvoice.workflows.publish import PublishSettings, PublishWorkflow


@pytest.fixture
def order_record() -> dict[str, Any]:
    """Commande confirmée, non publiée."""
    return {
        "id": 1,
        "orderNumber": "ORD-2025-0001",
        "customerName": "Nguyễn Văn An",
        "customerPhone": "0901234567",
        "customerTaxCode": "0312345678",
        "status": "confirmed",
        "subtotal": "100000.00",
        "tax": "10000.00",
        "total": "110000.00",
        "paymentMethod": "cash",
        "orderedAt": "2025-03-15T12:30:00",
        "einvoiceStatus": 0,
    }


@pytest.fixture
def invoice_record() -> dict[str, Any]:
    """Facture terminée, non publiée."""
    return {
        "id": 7,
        "tradeNumber": "TN-0007",
        "customerName": "Công ty TNHH Minh Phát",
        "customerTaxCode": "0109876543",
        "customerAddress": "12 Lê Lợi, Quận 1",
        "subtotal": "200000",
        "tax": "20000",
        "total": "220000",
        "paymentMethod": "transfer",
        "invoiceDate": "2025-03-16T09:00:00",
        "invoiceStatus": 1,
        "einvoiceStatus": 0,
    }


@pytest.fixture
def line_item_records() -> list[dict[str, Any]]:
    """Deux lignes dont les totaux stockés sont périmés."""
    return [
        {
            "productId": 11,
            "productName": "Cà phê sữa",
            "sku": "CF-001",
            "quantity": 2,
            "unitPrice": "50000",
            "taxRate": "10",
            "total": "1",
        },
        {
            "productId": 12,
            "productName": "Bánh mì",
            "quantity": 1,
            "unitPrice": "20000",
            "taxRate": "10",
            "total": "999999",
        },
    ]


@pytest.fixture
def line_items() -> list[LineItem]:
    return [
        LineItem(
            product_id=11,
            product_name="Cà phê sữa",
            sku="CF-001",
            quantity=Decimal("2"),
            unit_price=Decimal("50000"),
            tax_rate=Decimal("10"),
            total=Decimal("1"),
        ),
        LineItem(
            product_id=12,
            product_name="Bánh mì",
            quantity=Decimal("1"),
            unit_price=Decimal("20000"),
            tax_rate=Decimal("10"),
            total=Decimal("999999"),
        ),
    ]


@pytest.fixture
def connection() -> EInvoiceConnection:
    return EInvoiceConnection(
        provider=EInvoiceProvider.EASY_INVOICE,
        tax_code="0100109106",
        login_id="admin",
        password="secret",
        template_number="1C25TAA",
    )


@pytest.fixture
def memory_store(order_record, invoice_record, line_item_records) -> MemoryStore:
    """Stockage contenant une commande et une facture, avec leurs lignes."""
    store = MemoryStore()
    store.add_record(SourceType.ORDER, order_record, line_item_records)
    store.add_record(SourceType.INVOICE, invoice_record, line_item_records)
    return store


@pytest.fixture
def memory_provider(connection) -> MemoryEInvoiceProvider:
    return MemoryEInvoiceProvider(connection=connection)


@pytest.fixture
def publish_workflow(memory_provider, memory_store) -> PublishWorkflow:
    return PublishWorkflow(memory_provider, memory_store, PublishSettings())


@pytest.fixture
def coordinator(memory_store, publish_workflow) -> BulkOperationCoordinator:
    return BulkOperationCoordinator(memory_store, publish_workflow=publish_workflow)

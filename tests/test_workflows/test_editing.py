"""Tests de la modification manuelle des transactions."""

from decimal import Decimal

import pytest

from pos_einvoice.lifecycle.manager import issue_einvoice
from pos_einvoice.models.enums import EInvoiceStatus, SourceType
from pos_einvoice.models.results import ErrorCode, ErrorKind, ProviderReceipt
from pos_einvoice.models.transaction import TransactionContext, TransactionKey
from pos_einvoice.reconciliation.normalizer import normalize_invoice, normalize_order
from pos_einvoice.store.connectors.memory import MemoryStore
from pos_einvoice.workflows.editing import EditWorkflow, apply_changes

ORDER_1 = TransactionKey(source_type=SourceType.ORDER, id=1)
INVOICE_7 = TransactionKey(source_type=SourceType.INVOICE, id=7)


@pytest.fixture
def workflow(memory_store: MemoryStore) -> EditWorkflow:
    return EditWorkflow(memory_store)


@pytest.fixture
def order_context(order_record) -> TransactionContext:
    return TransactionContext.of(normalize_order(order_record))


class TestApplyChanges:
    def test_total_recomputed(self, order_context) -> None:
        updated = apply_changes(
            order_context.snapshot,
            {"amounts": {"subtotal": "200000", "total": "1"}},
        )
        assert updated.amounts.subtotal == Decimal("200000")
        assert updated.amounts.tax == Decimal("10000.00")
        assert updated.amounts.total == Decimal("210000.00")

    def test_nested_merge(self, order_context) -> None:
        updated = apply_changes(order_context.snapshot, {"customer": {"phone": "0988000111"}})
        assert updated.customer.phone == "0988000111"
        assert updated.customer.name == "Nguyễn Văn An"

    def test_original_untouched(self, order_context) -> None:
        apply_changes(order_context.snapshot, {"notes": "sans glaçons"})
        assert order_context.snapshot.notes is None

    def test_unknown_field(self, order_context) -> None:
        with pytest.raises(ValueError, match="inconnus"):
            apply_changes(order_context.snapshot, {"colour": "red"})

    @pytest.mark.parametrize("name", ["customer", "amounts", "invoice_identity"])
    def test_nested_field_requires_mapping(self, order_context, name: str) -> None:
        with pytest.raises(ValueError, match="dictionnaire"):
            apply_changes(order_context.snapshot, {name: 5})

    def test_invalid_amount(self, order_context) -> None:
        with pytest.raises(ValueError, match="invalide"):
            apply_changes(order_context.snapshot, {"amounts": {"tax": "dix"}})


class TestSave:
    """Tests de l'enregistrement des modifications."""

    async def test_order_saved(self, workflow, memory_store: MemoryStore, order_context) -> None:
        result = await workflow.save(
            order_context, {"notes": "table 4", "customer": {"email": "an@example.vn"}}
        )
        assert result.ok is True
        assert result.value.notes == "table 4"
        stored = memory_store.stored(ORDER_1)
        assert stored["notes"] == "table 4"
        assert stored["customerEmail"] == "an@example.vn"
        assert stored["status"] == "confirmed"
        assert memory_store.writes_for(ORDER_1)[0].operation == "update_order"

    async def test_invoice_saved(self, workflow, memory_store: MemoryStore, invoice_record) -> None:
        context = TransactionContext.of(normalize_invoice(invoice_record))
        result = await workflow.save(context, {"amounts": {"tax": "16000"}})
        assert result.ok is True
        stored = memory_store.stored(INVOICE_7)
        assert stored["tax"] == "16000.00"
        assert stored["total"] == "216000.00"
        assert stored["invoiceStatus"] == 1
        assert memory_store.writes_for(INVOICE_7)[0].operation == "update_invoice"

    async def test_no_change_skipped(self, workflow, memory_store: MemoryStore, order_context) -> None:
        result = await workflow.save(order_context, {"notes": None})
        assert result.ok is True
        assert result.skipped is True
        assert memory_store.writes == []

    async def test_status_read_only(self, workflow, memory_store: MemoryStore, order_context) -> None:
        result = await workflow.save(order_context, {"local_status": "paid"})
        assert result.error.kind == ErrorKind.VALIDATION
        assert result.error.code == ErrorCode.READ_ONLY_FIELD
        assert result.error.details == ["local_status"]
        assert memory_store.writes == []

    async def test_einvoice_status_read_only(self, workflow, order_context) -> None:
        result = await workflow.save(order_context, {"einvoice_status": EInvoiceStatus.ISSUED})
        assert result.error.code == ErrorCode.READ_ONLY_FIELD

    async def test_amounts_frozen_once_issued(self, workflow, order_context) -> None:
        issued = issue_einvoice(
            order_context.snapshot, ProviderReceipt(invoice_number="0000042")
        )
        result = await workflow.save(
            order_context.with_snapshot(issued), {"amounts": {"subtotal": "1"}}
        )
        assert result.error.code == ErrorCode.READ_ONLY_FIELD
        assert "amounts" in result.error.details

    async def test_trade_number_assigned_once(self, workflow, order_context) -> None:
        first = await workflow.save(order_context, {"invoice_identity": {"trade_number": "TN-1"}})
        assert first.ok is True

        second = await workflow.save(
            order_context.with_snapshot(first.value),
            {"invoice_identity": {"trade_number": "TN-2"}},
        )
        assert second.error.code == ErrorCode.READ_ONLY_FIELD
        assert second.error.details == ["invoice_identity.trade_number"]

    async def test_invalid_field(self, workflow, order_context) -> None:
        result = await workflow.save(order_context, {"colour": "red"})
        assert result.error.kind == ErrorKind.VALIDATION
        assert result.error.code == ErrorCode.INVALID_FIELD

    async def test_nested_field_not_a_mapping(
        self, workflow, memory_store: MemoryStore, order_context
    ) -> None:
        result = await workflow.save(order_context, {"amounts": 5})
        assert result.error.kind == ErrorKind.VALIDATION
        assert result.error.code == ErrorCode.INVALID_FIELD
        assert memory_store.writes == []

    async def test_amount_beyond_precision(
        self, workflow, memory_store: MemoryStore, order_context
    ) -> None:
        result = await workflow.save(order_context, {"amounts": {"subtotal": "1e30"}})
        assert result.error.code == ErrorCode.INVALID_FIELD
        assert memory_store.writes == []

    async def test_write_failure(self, workflow, memory_store: MemoryStore, order_context) -> None:
        memory_store.fail_writes_for(ORDER_1)
        result = await workflow.save(order_context, {"notes": "table 4"})
        assert result.error.kind == ErrorKind.PERSISTENCE
        assert result.error.code == ErrorCode.STORE_WRITE_FAILED

"""Tests des machines à états des transactions.

FR: Vérifie la projection des statuts locaux, le graphe des transitions
    pay/cancel, la terminalité de l'annulation, l'émission de la facture
    électronique et les gardes de modification.
EN: Verifies local status projection, the pay/cancel graph, cancellation
    terminality, e-invoice issuance and edit guards.
"""

from decimal import Decimal

import pytest

from pos_einvoice.lifecycle.errors import (
    AlreadyCancelledError,
    IllegalTransitionError,
    ReadOnlyFieldError,
    UnsupportedTransitionError,
)
from pos_einvoice.lifecycle.manager import (
    DISPLAY_TRANSITIONS,
    EINVOICE_STATUS_METADATA,
    ISSUED_EINVOICE_STATUSES,
    TERMINAL_DISPLAY_STATUSES,
    apply_transition,
    can_transition,
    guard_edit,
    is_amounts_read_only,
    is_terminal,
    issue_einvoice,
    plan_transition,
    request_einvoice_transition,
    resolve_display_status,
)
from pos_einvoice.models.enums import (
    DisplayStatus,
    EInvoiceStatus,
    InvoiceStatus,
    LifecycleAction,
    OrderStatus,
    SourceType,
)
from pos_einvoice.models.results import ProviderReceipt
from pos_einvoice.models.transaction import Amounts, InvoiceIdentity, Transaction


def _order(status: str = "confirmed", **overrides) -> Transaction:
    data = {
        "id": 1,
        "source_type": SourceType.ORDER,
        "display_number": "ORD-1",
        "local_status": status,
        "display_status": resolve_display_status(SourceType.ORDER, status),
        "amounts": Amounts.from_components(Decimal("100000"), Decimal("10000")),
    }
    data.update(overrides)
    return Transaction(**data)


def _invoice(status: int = 1, **overrides) -> Transaction:
    data = {
        "id": 7,
        "source_type": SourceType.INVOICE,
        "display_number": "TN-0007",
        "local_status": status,
        "display_status": resolve_display_status(SourceType.INVOICE, status),
        "invoice_identity": InvoiceIdentity(trade_number="TN-0007"),
    }
    data.update(overrides)
    return Transaction(**data)


@pytest.fixture
def receipt() -> ProviderReceipt:
    return ProviderReceipt(invoice_number="0000123", symbol="C25TYY", template_number="1C25TYY")


class TestDisplayStatus:
    """Tests de la projection des statuts locaux."""

    @pytest.mark.parametrize(
        "status,expected",
        [
            ("pending", DisplayStatus.IN_PROGRESS),
            ("confirmed", DisplayStatus.IN_PROGRESS),
            ("preparing", DisplayStatus.IN_PROGRESS),
            ("paid", DisplayStatus.COMPLETED),
            ("cancelled", DisplayStatus.CANCELLED),
            ("served", DisplayStatus.IN_PROGRESS),
            ("", DisplayStatus.IN_PROGRESS),
        ],
    )
    def test_order(self, status: str, expected: DisplayStatus) -> None:
        assert resolve_display_status(SourceType.ORDER, status) == expected

    @pytest.mark.parametrize(
        "status,expected",
        [
            (1, DisplayStatus.COMPLETED),
            (2, DisplayStatus.IN_PROGRESS),
            (3, DisplayStatus.CANCELLED),
            (None, DisplayStatus.COMPLETED),
            (99, DisplayStatus.COMPLETED),
        ],
    )
    def test_invoice(self, status, expected: DisplayStatus) -> None:
        assert resolve_display_status(SourceType.INVOICE, status) == expected


class TestTransitions:
    """Tests du graphe pay/cancel."""

    def test_cancelled_is_only_terminal(self) -> None:
        assert TERMINAL_DISPLAY_STATUSES == frozenset({DisplayStatus.CANCELLED})

    def test_pay_only_from_in_progress(self) -> None:
        sources = [
            status
            for status, actions in DISPLAY_TRANSITIONS.items()
            if LifecycleAction.PAY in actions
        ]
        assert sources == [DisplayStatus.IN_PROGRESS]

    def test_can_transition(self) -> None:
        assert can_transition(_order("confirmed"), "pay") is True
        assert can_transition(_order("paid"), "pay") is False
        assert can_transition(_order("paid"), "cancel") is True

    def test_plan_order_pay(self) -> None:
        plan = plan_transition(_order("confirmed"), LifecycleAction.PAY)
        assert plan.target == DisplayStatus.COMPLETED
        assert plan.local_status == OrderStatus.PAID
        assert plan.changes == {"status": "paid"}

    def test_plan_order_complete_alias(self) -> None:
        plan = plan_transition(_order("pending"), "complete")
        assert plan.action == LifecycleAction.PAY

    def test_plan_invoice_cancel(self) -> None:
        plan = plan_transition(_invoice(1), LifecycleAction.CANCEL)
        assert plan.target == DisplayStatus.CANCELLED
        assert plan.local_status == InvoiceStatus.CANCELLED
        assert plan.changes == {"invoiceStatus": 3}

    def test_pay_completed_illegal(self) -> None:
        with pytest.raises(IllegalTransitionError, match="non autorisée"):
            plan_transition(_invoice(1), LifecycleAction.PAY)

    def test_apply_returns_copy(self) -> None:
        order = _order("confirmed")
        plan = plan_transition(order, LifecycleAction.CANCEL)
        cancelled = apply_transition(order, plan)
        assert cancelled.display_status == DisplayStatus.CANCELLED
        assert cancelled.local_status == "cancelled"
        assert order.display_status == DisplayStatus.IN_PROGRESS

    def test_apply_other_transaction_rejected(self) -> None:
        plan = plan_transition(_order("confirmed"), LifecycleAction.CANCEL)
        with pytest.raises(IllegalTransitionError):
            apply_transition(_invoice(1), plan)


class TestCancellationTerminality:
    """Une transaction annulée ne change plus de statut d'affichage."""

    @pytest.mark.parametrize(
        "transaction",
        [_order("cancelled"), _invoice(3)],
        ids=["order", "invoice"],
    )
    @pytest.mark.parametrize("action", list(LifecycleAction))
    def test_no_transition_out_of_cancelled(
        self, transaction: Transaction, action: LifecycleAction
    ) -> None:
        assert is_terminal(transaction)
        assert not can_transition(transaction, action)
        with pytest.raises(AlreadyCancelledError):
            plan_transition(transaction, action)
        assert transaction.display_status == DisplayStatus.CANCELLED


class TestEInvoiceStatus:
    """Tests de la machine à états de la facture électronique."""

    def test_issued_family(self) -> None:
        assert ISSUED_EINVOICE_STATUSES == {
            EInvoiceStatus.ISSUED,
            EInvoiceStatus.APPROVED,
            EInvoiceStatus.REPLACEMENT,
            EInvoiceStatus.ADJUSTMENT,
        }

    def test_metadata_covers_every_code(self) -> None:
        assert set(EINVOICE_STATUS_METADATA) == set(EInvoiceStatus)

    def test_issue_order_assigns_trade_number(self, receipt) -> None:
        issued = issue_einvoice(_order("paid"), receipt)
        assert issued.einvoice_status == EInvoiceStatus.ISSUED
        assert issued.invoice_identity.invoice_number == "0000123"
        assert issued.invoice_identity.symbol == "C25TYY"
        assert issued.invoice_identity.template_number == "1C25TYY"
        assert issued.invoice_identity.trade_number == "0000123"

    def test_issue_order_keeps_existing_trade_number(self, receipt) -> None:
        order = _order("paid", invoice_identity=InvoiceIdentity(trade_number="TN-9"))
        issued = issue_einvoice(order, receipt)
        assert issued.invoice_identity.trade_number == "TN-9"

    def test_issue_invoice_keeps_trade_number(self, receipt) -> None:
        issued = issue_einvoice(_invoice(1), receipt)
        assert issued.invoice_identity.trade_number == "TN-0007"
        assert issued.invoice_identity.invoice_number == "0000123"

    def test_issue_twice_rejected(self, receipt) -> None:
        issued = issue_einvoice(_invoice(1), receipt)
        with pytest.raises(IllegalTransitionError, match="émission impossible"):
            issue_einvoice(issued, receipt)

    def test_issue_does_not_touch_local_status(self, receipt) -> None:
        order = _order("confirmed")
        issued = issue_einvoice(order, receipt)
        assert issued.display_status == order.display_status
        assert issued.local_status == order.local_status

    @pytest.mark.parametrize("target", [1, 2, 3, 6, 9])
    def test_direct_issue_rejected(self, target: int) -> None:
        with pytest.raises(IllegalTransitionError, match="publication"):
            request_einvoice_transition(_invoice(1), target)

    @pytest.mark.parametrize("target", [4, 7, 10])
    def test_replace_adjust_cancel_unsupported(self, receipt, target: int) -> None:
        issued = issue_einvoice(_invoice(1), receipt)
        with pytest.raises(UnsupportedTransitionError):
            request_einvoice_transition(issued, target)

    def test_amounts_read_only_once_issued(self, receipt) -> None:
        order = _order("paid")
        assert is_amounts_read_only(order) is False
        assert is_amounts_read_only(issue_einvoice(order, receipt)) is True


class TestGuardEdit:
    """Tests des gardes de modification manuelle."""

    def test_allowed_changes_reported(self) -> None:
        before = _order()
        after = before.model_copy(update={"notes": "table 4"})
        assert guard_edit(before, after) == ["notes"]

    def test_no_change(self) -> None:
        order = _order()
        assert guard_edit(order, order) == []

    def test_einvoice_status_read_only(self) -> None:
        before = _order()
        after = before.model_copy(update={"einvoice_status": EInvoiceStatus.ISSUED})
        with pytest.raises(ReadOnlyFieldError) as exc_info:
            guard_edit(before, after)
        assert exc_info.value.fields == ["einvoice_status"]

    def test_local_status_read_only(self) -> None:
        before = _order()
        after = before.model_copy(update={"local_status": "paid"})
        with pytest.raises(ReadOnlyFieldError):
            guard_edit(before, after)

    def test_trade_number_assignable_once(self) -> None:
        before = _order()
        after = before.model_copy(
            update={"invoice_identity": InvoiceIdentity(trade_number="TN-1")}
        )
        assert guard_edit(before, after) == ["invoice_identity"]

        overwritten = after.model_copy(
            update={"invoice_identity": InvoiceIdentity(trade_number="TN-2")}
        )
        with pytest.raises(ReadOnlyFieldError) as exc_info:
            guard_edit(after, overwritten)
        assert exc_info.value.fields == ["invoice_identity.trade_number"]

    def test_amounts_frozen_when_issued(self, receipt) -> None:
        issued = issue_einvoice(_order("paid"), receipt)
        after = issued.model_copy(
            update={"amounts": Amounts.from_components(Decimal("1"), Decimal("0"))}
        )
        with pytest.raises(ReadOnlyFieldError) as exc_info:
            guard_edit(issued, after)
        assert "amounts" in exc_info.value.fields

    def test_amounts_editable_when_unissued(self) -> None:
        before = _order()
        after = before.model_copy(
            update={"amounts": Amounts.from_components(Decimal("1"), Decimal("0"))}
        )
        assert guard_edit(before, after) == ["amounts"]

"""Cycle de vie des transactions de vente.

FR: Machine à états du statut local (EN_COURS → TERMINEE / ANNULEE) et
    machine à états de la facture électronique (0 NON_EMISE → famille émise),
    avec les gardes qui protègent la cohérence entre les deux.
EN: Local status state machine and e-invoice status state machine, with
    the guards keeping both consistent.
"""

from pos_einvoice.lifecycle.errors import (
    AlreadyCancelledError,
    IllegalTransitionError,
    LifecycleError,
    ReadOnlyFieldError,
    UnsupportedTransitionError,
)
from pos_einvoice.lifecycle.manager import (
    DISPLAY_TRANSITIONS,
    EINVOICE_EXTENSION_TRANSITIONS,
    EINVOICE_STATUS_METADATA,
    EINVOICE_TRANSITIONS,
    INVOICE_DISPLAY_STATUS,
    ISSUED_EINVOICE_STATUSES,
    ORDER_DISPLAY_STATUS,
    TERMINAL_DISPLAY_STATUSES,
    EInvoiceStatusInfo,
    PlannedTransition,
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

__all__ = [
    "AlreadyCancelledError",
    "DISPLAY_TRANSITIONS",
    "EINVOICE_EXTENSION_TRANSITIONS",
    "EINVOICE_STATUS_METADATA",
    "EINVOICE_TRANSITIONS",
    "EInvoiceStatusInfo",
    "INVOICE_DISPLAY_STATUS",
    "ISSUED_EINVOICE_STATUSES",
    "IllegalTransitionError",
    "LifecycleError",
    "ORDER_DISPLAY_STATUS",
    "PlannedTransition",
    "ReadOnlyFieldError",
    "TERMINAL_DISPLAY_STATUSES",
    "UnsupportedTransitionError",
    "apply_transition",
    "can_transition",
    "guard_edit",
    "is_amounts_read_only",
    "is_terminal",
    "issue_einvoice",
    "plan_transition",
    "request_einvoice_transition",
    "resolve_display_status",
]

"""Rapprochement des commandes et factures en une liste de transactions.

FR: Normalisation des deux formes d'enregistrement, filtrage et totaux.
EN: Normalization of both record shapes, filtering and totals.
"""

from pos_einvoice.reconciliation.engine import (
    compute_totals,
    load_and_reconcile,
    matches,
    reconcile,
)
from pos_einvoice.reconciliation.models import (
    ReconciliationResult,
    Totals,
    TransactionFilters,
)
from pos_einvoice.reconciliation.normalizer import (
    fallback_display_number,
    normalize,
    normalize_invoice,
    normalize_line_item,
    normalize_order,
    to_invoice_record,
    to_order_record,
)

__all__ = [
    "ReconciliationResult",
    "Totals",
    "TransactionFilters",
    "compute_totals",
    "fallback_display_number",
    "load_and_reconcile",
    "matches",
    "normalize",
    "normalize_invoice",
    "normalize_line_item",
    "normalize_order",
    "reconcile",
    "to_invoice_record",
    "to_order_record",
]

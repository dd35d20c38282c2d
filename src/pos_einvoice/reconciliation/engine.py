"""Moteur de rapprochement commandes / factures.

FR: Normalise indépendamment commandes et factures, les concatène en une
    seule liste, applique les filtres et calcule les totaux sur la liste
    filtrée. Une collection d'entrée invalide est traitée comme vide :
    l'indisponibilité d'une ressource ne bloque pas l'affichage de l'autre.
EN: Normalizes orders and invoices independently, concatenates them,
    applies filters and computes totals over the filtered set. A malformed
    input collection is treated as empty.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, time
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from pos_einvoice.models.enums import SourceType
from pos_einvoice.models.transaction import Transaction
from pos_einvoice.reconciliation.models import (
    ReconciliationResult,
    Totals,
    TransactionFilters,
)
from pos_einvoice.reconciliation.normalizer import normalize
from pos_einvoice.store.errors import StoreError

if TYPE_CHECKING:
    from pos_einvoice.store.base import BaseResourceStore

logger = logging.getLogger(__name__)

_END_OF_DAY = time(23, 59, 59, 999000)


def _contains(value: str | None, needle: str | None) -> bool:
    if not needle:
        return True
    return value is not None and needle.lower() in value.lower()


def _wall_clock(value: datetime) -> datetime:
    # Comparaison sur l'heure locale de l'horodatage lui-même
    return value.replace(tzinfo=None)


def matches(transaction: Transaction, filters: TransactionFilters) -> bool:
    """Vérifie si une transaction satisfait tous les filtres actifs."""
    if filters.date_from is not None or filters.date_to is not None:
        if transaction.date is None:
            return False
        moment = _wall_clock(transaction.date)
        if filters.date_from is not None and moment < datetime.combine(
            filters.date_from, time.min
        ):
            return False
        if filters.date_to is not None and moment > datetime.combine(
            filters.date_to, _END_OF_DAY
        ):
            return False

    if not _contains(transaction.customer.name, filters.customer_name):
        return False

    if filters.transaction_code:
        identity = transaction.invoice_identity
        codes = (
            transaction.display_number,
            identity.invoice_number,
            identity.trade_number,
        )
        if not any(_contains(code, filters.transaction_code) for code in codes):
            return False

    if not _contains(transaction.customer.tax_code, filters.tax_code):
        return False

    if filters.source_type is not None and transaction.source_type != filters.source_type:
        return False

    if (
        filters.display_status is not None
        and transaction.display_status != filters.display_status
    ):
        return False

    return True


def compute_totals(transactions: Iterable[Transaction]) -> Totals:
    """Somme des montants HT, TVA et TTC des transactions données."""
    subtotal = tax = total = Decimal("0")
    count = 0
    for transaction in transactions:
        subtotal += transaction.amounts.subtotal
        tax += transaction.amounts.tax
        total += transaction.amounts.total
        count += 1
    return Totals(subtotal=subtotal, tax=tax, total=total, count=count)


def _normalize_all(records: Any, source_type: SourceType) -> tuple[list[Transaction], int]:
    if not isinstance(records, list):
        if records is not None:
            logger.warning(
                "Collection %s invalide (%s), traitée comme vide",
                source_type.value,
                type(records).__name__,
            )
        return [], 0

    transactions: list[Transaction] = []
    skipped = 0
    for raw in records:
        try:
            transactions.append(normalize(raw, source_type))
        except ValueError as exc:
            skipped += 1
            logger.warning("Enregistrement %s ignoré : %s", source_type.value, exc)
    return transactions, skipped


def reconcile(
    orders: Any,
    invoices: Any,
    filters: TransactionFilters | None = None,
) -> ReconciliationResult:
    """Fusionne commandes et factures en une liste filtrée avec totaux.

    Args:
        orders: Liste de commandes brutes (autre valeur → liste vide).
        invoices: Liste de factures brutes (autre valeur → liste vide).
        filters: Filtres à appliquer (aucun par défaut).

    Returns:
        Les transactions retenues, non triées, et leurs totaux.
    """
    if filters is None:
        filters = TransactionFilters()

    normalized_orders, skipped_orders = _normalize_all(orders, SourceType.ORDER)
    normalized_invoices, skipped_invoices = _normalize_all(invoices, SourceType.INVOICE)

    selected = [
        transaction
        for transaction in [*normalized_orders, *normalized_invoices]
        if matches(transaction, filters)
    ]
    return ReconciliationResult(
        transactions=selected,
        totals=compute_totals(selected),
        skipped_records=skipped_orders + skipped_invoices,
    )


async def load_and_reconcile(
    store: BaseResourceStore,
    filters: TransactionFilters | None = None,
    *,
    page: int = 1,
    limit: int = 1000,
) -> ReconciliationResult:
    """Charge commandes et factures depuis le stockage puis les rapproche.

    FR: Chaque liste est chargée indépendamment ; un échec de chargement est
        journalisé et la liste concernée est traitée comme vide.
    EN: Each list loads independently; a failed load is logged and that
        list is treated as empty.
    """
    collections: dict[SourceType, Any] = {}
    for source_type in SourceType:
        try:
            collections[source_type] = await store.list_records(
                source_type, page=page, limit=limit
            )
        except StoreError:
            logger.exception("Chargement des %s impossible", source_type.value)
            collections[source_type] = None

    return reconcile(
        collections[SourceType.ORDER],
        collections[SourceType.INVOICE],
        filters,
    )

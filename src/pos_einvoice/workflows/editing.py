"""Modification manuelle d'une transaction.

FR: Applique des modifications de champs à l'instantané du contexte,
    recalcule le total TTC, vérifie les champs en lecture seule puis écrit
    par le chemin propre à la ressource d'origine.
EN: Applies field changes to the context snapshot, recomputes the total,
    checks read-only fields and writes through the source's write path.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from pos_einvoice.lifecycle.errors import ReadOnlyFieldError
from pos_einvoice.lifecycle.manager import guard_edit
from pos_einvoice.models.enums import SourceType
from pos_einvoice.models.results import ErrorCode, ErrorKind, OperationResult
from pos_einvoice.models.transaction import Transaction, TransactionContext
from pos_einvoice.reconciliation.normalizer import to_invoice_record, to_order_record
from pos_einvoice.store.base import BaseResourceStore
from pos_einvoice.store.errors import StoreError

logger = logging.getLogger(__name__)

_NESTED_FIELDS = ("customer", "amounts", "invoice_identity")


def _recompute_total(amounts: dict[str, Any]) -> dict[str, Any]:
    subtotal, tax, discount = (
        Decimal(str(amounts.get(name) or 0)) for name in ("subtotal", "tax", "discount")
    )
    return {
        **amounts,
        "subtotal": subtotal,
        "tax": tax,
        "discount": discount,
        "total": subtotal + tax - discount,
    }


def apply_changes(transaction: Transaction, changes: Mapping[str, Any]) -> Transaction:
    """Copie de la transaction avec les modifications demandées.

    FR: Les champs composés (client, montants, identité) sont fusionnés
        champ par champ. Le total TTC fourni est ignoré et recalculé.
    EN: Nested fields are merged key by key. A supplied total is ignored
        and recomputed.

    Raises:
        ValueError: Champ inconnu, champ composé qui n'est pas un
            dictionnaire, ou valeur invalide.
    """
    unknown = [name for name in changes if name not in Transaction.model_fields]
    if unknown:
        msg = f"Champs inconnus : {', '.join(unknown)}"
        raise ValueError(msg)

    data = transaction.model_dump()
    for name, value in changes.items():
        if name in _NESTED_FIELDS:
            if not isinstance(value, Mapping):
                msg = f"Le champ {name} attend un dictionnaire : {value!r}"
                raise ValueError(msg)
            data[name] = {**data[name], **value}
        else:
            data[name] = value

    try:
        data["amounts"] = _recompute_total(data["amounts"])
    except InvalidOperation as exc:
        msg = f"Montant invalide : {exc}"
        raise ValueError(msg) from exc
    return Transaction.model_validate(data)


class EditWorkflow:
    """Workflow d'enregistrement des modifications manuelles.

    Args:
        store: Stockage des commandes et factures.
    """

    def __init__(self, store: BaseResourceStore) -> None:
        self.store = store

    async def save(
        self,
        context: TransactionContext,
        changes: Mapping[str, Any],
    ) -> OperationResult:
        """Enregistre les modifications de la transaction du contexte.

        Returns:
            Le résultat, portant l'instantané modifié. `skipped` vaut True
            quand aucune valeur ne change (aucune écriture).
        """
        before = context.snapshot
        key = before.key

        try:
            after = apply_changes(before, changes)
        except ValueError as exc:
            return OperationResult.failure(
                key, ErrorKind.VALIDATION, ErrorCode.INVALID_FIELD, str(exc)
            )

        try:
            changed = guard_edit(before, after)
        except ReadOnlyFieldError as exc:
            return OperationResult.failure(
                key,
                ErrorKind.VALIDATION,
                ErrorCode.READ_ONLY_FIELD,
                str(exc),
                details=exc.fields,
            )

        if not changed:
            return OperationResult.success(key, before, skipped=True)

        try:
            if after.source_type == SourceType.ORDER:
                record = to_order_record(after)
            else:
                record = to_invoice_record(after)
        except ValueError as exc:
            return OperationResult.failure(
                key, ErrorKind.VALIDATION, ErrorCode.INVALID_FIELD, str(exc)
            )

        try:
            if after.source_type == SourceType.ORDER:
                await self.store.update_order(after.id, record)
            else:
                await self.store.update_invoice(after.id, record)
        except StoreError as exc:
            logger.warning("Enregistrement de %s échoué : %s", key, exc)
            return OperationResult.failure(
                key, ErrorKind.PERSISTENCE, ErrorCode.STORE_WRITE_FAILED, str(exc)
            )

        logger.info("%s modifiée : %s", key, ", ".join(changed))
        return OperationResult.success(key, after)

"""Coordinateur des opérations unitaires et groupées.

FR: Applique les transitions `pay` / `cancel` et la publication à une ou
    plusieurs transactions, une par une. Chaque élément est traité
    indépendamment : un échec n'interrompt jamais le lot, et le rapport
    contient exactement un résultat par élément demandé.
EN: Applies `pay` / `cancel` transitions and publishing to one or many
    transactions, one at a time. A failure never aborts the batch; the
    report holds exactly one result per requested item.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeAlias

from pos_einvoice.lifecycle.errors import AlreadyCancelledError, IllegalTransitionError
from pos_einvoice.lifecycle.manager import (
    PlannedTransition,
    apply_transition,
    is_terminal,
    plan_transition,
)
from pos_einvoice.models.enums import LifecycleAction, SourceType
from pos_einvoice.models.results import (
    BulkItemResult,
    BulkReport,
    ErrorCode,
    ErrorKind,
    OperationResult,
)
from pos_einvoice.models.transaction import Transaction, TransactionContext, TransactionKey
from pos_einvoice.reconciliation.normalizer import normalize, to_invoice_record
from pos_einvoice.store.base import BaseResourceStore
from pos_einvoice.store.errors import StoreError
from pos_einvoice.workflows.publish import PublishWorkflow

logger = logging.getLogger(__name__)

Target: TypeAlias = TransactionKey | TransactionContext
"""Clé seule (instantané lu dans le stockage) ou contexte déjà chargé."""


def _target_key(target: Target) -> TransactionKey:
    return target.key if isinstance(target, TransactionContext) else target


class BulkOperationCoordinator:
    """Coordinateur des transitions et publications, unitaires ou groupées.

    FR: Les éléments d'un lot sont traités séquentiellement, jamais en
        parallèle. L'annulation est idempotente : une transaction déjà
        annulée est signalée comme réussie sans nouvelle écriture.
    EN: Batch items run sequentially. Cancel is idempotent: an already
        cancelled transaction reports success without a new write.

    Args:
        store: Stockage des commandes et factures.
        publish_workflow: Workflow de publication (requis pour `bulk_publish`).
    """

    def __init__(
        self,
        store: BaseResourceStore,
        publish_workflow: PublishWorkflow | None = None,
    ) -> None:
        self.store = store
        self.publish_workflow = publish_workflow

    async def _resolve(self, target: Target) -> Transaction:
        if isinstance(target, TransactionContext):
            return target.snapshot
        raw = await self.store.get_record(target)
        return normalize(raw, target.source_type)

    async def _load(self, target: Target) -> Transaction | OperationResult:
        try:
            return await self._resolve(target)
        except StoreError as exc:
            return OperationResult.failure(
                _target_key(target),
                ErrorKind.PERSISTENCE,
                ErrorCode.STORE_READ_FAILED,
                str(exc),
            )
        except ValueError as exc:
            return OperationResult.failure(
                _target_key(target),
                ErrorKind.PERSISTENCE,
                ErrorCode.STORE_READ_FAILED,
                f"Enregistrement illisible : {exc}",
            )

    async def _write(self, transaction: Transaction, plan: PlannedTransition) -> None:
        if transaction.source_type == SourceType.ORDER:
            await self.store.update_order_status(transaction.id, plan.changes["status"])
        else:
            await self.store.update_invoice(transaction.id, to_invoice_record(transaction))

    async def transition(
        self,
        target: Target,
        action: LifecycleAction | str,
    ) -> OperationResult:
        """Valide localement puis écrit une transition de statut.

        Returns:
            Le résultat, portant l'instantané après transition.
        """
        action = LifecycleAction(action)
        loaded = await self._load(target)
        if isinstance(loaded, OperationResult):
            return loaded
        transaction = loaded
        key = transaction.key

        if action == LifecycleAction.CANCEL and is_terminal(transaction):
            logger.debug("%s déjà annulée, aucune écriture", key)
            return OperationResult.success(key, transaction, skipped=True)

        try:
            plan = plan_transition(transaction, action)
        except AlreadyCancelledError as exc:
            return OperationResult.failure(
                key, ErrorKind.VALIDATION, ErrorCode.ALREADY_CANCELLED, str(exc)
            )
        except IllegalTransitionError as exc:
            return OperationResult.failure(
                key, ErrorKind.VALIDATION, ErrorCode.ILLEGAL_TRANSITION, str(exc)
            )

        updated = apply_transition(transaction, plan)
        try:
            await self._write(updated, plan)
        except ValueError as exc:
            return OperationResult.failure(
                key, ErrorKind.VALIDATION, ErrorCode.INVALID_FIELD, str(exc)
            )
        except StoreError as exc:
            logger.warning("Écriture de %s (%s) échouée : %s", key, action.value, exc)
            return OperationResult.failure(
                key, ErrorKind.PERSISTENCE, ErrorCode.STORE_WRITE_FAILED, str(exc)
            )
        return OperationResult.success(key, updated)

    async def cancel(self, target: Target) -> OperationResult:
        return await self.transition(target, LifecycleAction.CANCEL)

    async def pay(self, target: Target) -> OperationResult:
        return await self.transition(target, LifecycleAction.PAY)

    async def _run_batch(
        self,
        label: str,
        targets: Iterable[Target],
        operation: Callable[[Target], Awaitable[OperationResult]],
    ) -> BulkReport:
        report = BulkReport()
        for target in targets:
            try:
                result = await operation(target)
            except Exception as exc:
                key = _target_key(target)
                logger.exception("%s : erreur inattendue pour %s", label, key)
                result = OperationResult.failure(
                    key, ErrorKind.PERSISTENCE, ErrorCode.UNEXPECTED_ERROR, str(exc)
                )
            report.results.append(BulkItemResult.from_result(result))

        logger.info(
            "%s : %d réussie(s), %d échouée(s)",
            label,
            report.succeeded,
            report.failed,
        )
        if report.failed:
            logger.warning(
                "%s : échecs pour %s",
                label,
                ", ".join(str(key) for key in report.failed_keys),
            )
        return report

    async def bulk_cancel(self, targets: Iterable[Target]) -> BulkReport:
        """Annule chaque transaction demandée, sans s'arrêter au premier échec."""
        return await self._run_batch("Annulation groupée", targets, self.cancel)

    async def bulk_pay(self, targets: Iterable[Target]) -> BulkReport:
        return await self._run_batch("Paiement groupé", targets, self.pay)

    async def publish(
        self,
        target: Target,
        transaction_ref: str | None = None,
    ) -> OperationResult:
        """Publie une transaction à travers le workflow de publication.

        FR: `transaction_ref` reprend l'identifiant d'une tentative
            précédente restée sans réponse.
        EN: `transaction_ref` reuses the id of an unanswered attempt.
        """
        if self.publish_workflow is None:
            msg = "Aucun workflow de publication configuré"
            raise ValueError(msg)
        loaded = await self._load(target)
        if isinstance(loaded, OperationResult):
            return loaded
        return await self.publish_workflow.publish(
            TransactionContext.of(loaded), transaction_ref=transaction_ref
        )

    async def bulk_publish(self, targets: Iterable[Target]) -> BulkReport:
        """Publie chaque transaction demandée, une par une.

        Raises:
            ValueError: Si aucun workflow de publication n'est configuré.
        """
        if self.publish_workflow is None:
            msg = "Aucun workflow de publication configuré"
            raise ValueError(msg)
        return await self._run_batch("Publication groupée", targets, self.publish)

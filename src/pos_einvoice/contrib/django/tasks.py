"""Tâches Celery pour les opérations groupées et la publication.

FR: Tâches asynchrones pour l'annulation groupée et la publication d'une
    transaction. Les workflows sont asynchrones : chaque tâche les exécute
    via asyncio.run().
EN: Async tasks for bulk cancel and publishing one transaction. Workflows
    are async: each task runs them via asyncio.run().
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from celery import shared_task

from pos_einvoice.models.enums import SourceType
from pos_einvoice.models.results import ErrorCode
from pos_einvoice.models.transaction import TransactionKey
from pos_einvoice.provider.errors import ProviderError
from pos_einvoice.workflows.bulk import BulkOperationCoordinator
from pos_einvoice.workflows.publish import PublishWorkflow

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _parse_key(raw: object) -> TransactionKey:
    if isinstance(raw, TransactionKey):
        return raw
    if isinstance(raw, dict):
        return TransactionKey.model_validate(raw)
    source_type, record_id = raw  # type: ignore[misc]
    return TransactionKey(source_type=SourceType(source_type), id=int(record_id))


async def _run_with_coordinator(
    operation: Callable[[BulkOperationCoordinator], Awaitable[T]],
    with_publish: bool = False,
) -> T:
    """Exécute `operation` puis ferme le stockage et le fournisseur.

    FR: Les connecteurs sont créés et fermés dans la même boucle
        asyncio que celle qui exécute l'opération.
    EN: Connectors are created and closed in the loop running the
        operation.
    """
    from pos_einvoice.contrib.django.conf import (
        get_provider_instance,
        get_publish_settings,
        get_store_instance,
    )

    store = get_store_instance()
    provider = None
    try:
        workflow = None
        if with_publish:
            provider = get_provider_instance()
            workflow = PublishWorkflow(provider, store, get_publish_settings())
        coordinator = BulkOperationCoordinator(store, publish_workflow=workflow)
        return await operation(coordinator)
    finally:
        if provider is not None:
            await provider.aclose()
        await store.aclose()


@shared_task
def bulk_cancel_transactions(keys: list) -> dict:
    """Annule un lot de transactions.

    FR: Chaque clé est un dictionnaire `{source_type, id}` ou un couple
        `(source_type, id)`. Renvoie le décompte et les clés en échec.
    EN: Each key is a `{source_type, id}` dict or a `(source_type, id)`
        pair. Returns counts and failed keys.
    """
    targets = [_parse_key(raw) for raw in keys]
    report = asyncio.run(
        _run_with_coordinator(lambda coordinator: coordinator.bulk_cancel(targets))
    )
    return {
        "succeeded": report.succeeded,
        "failed": report.failed,
        "failed_keys": [str(key) for key in report.failed_keys],
    }


@shared_task(bind=True, max_retries=3)
def publish_transaction(
    self,
    source_type: str,
    record_id: int,
    transaction_ref: str | None = None,
) -> dict:
    """Publie une transaction auprès du fournisseur.

    FR: Seules les pannes du fournisseur (réseau, délai) sont rejouées,
        avec le même `transaction_ref` que la tentative précédente pour
        que le fournisseur détecte une émission déjà effectuée. Un refus
        explicite n'est pas rejoué. Une publication non enregistrée
        localement n'est jamais rejouée : elle attend un rapprochement
        manuel.
    EN: Only provider outages are retried, reusing the previous
        `transaction_ref` so the provider can detect an issue that already
        went through. Explicit rejections and publishes not recorded
        locally are never retried.
    """
    key = TransactionKey(source_type=SourceType(source_type), id=int(record_id))
    result = asyncio.run(
        _run_with_coordinator(
            lambda coordinator: coordinator.publish(key, transaction_ref=transaction_ref),
            with_publish=True,
        )
    )

    if result.ok:
        logger.info("Transaction %s publiée par tâche", key)
        return result.model_dump(mode="json", include={"key", "receipt"})

    if result.error.code == ErrorCode.PROVIDER_UNAVAILABLE:
        logger.warning("Publication de %s à rejouer : %s", key, result.error.message)
        raise self.retry(
            exc=ProviderError(result.error.message),
            args=(source_type, record_id),
            kwargs={"transaction_ref": result.transaction_ref},
            countdown=60 * (self.request.retries + 1),
        )

    if getattr(result, "requires_manual_reconciliation", False):
        logger.critical("Transaction %s : rapprochement manuel requis", key)
    else:
        logger.error("Publication de %s refusée : %s", key, result.error.message)
    return result.model_dump(mode="json", exclude={"value"})

"""Connecteur de stockage en mémoire pour les tests et le développement.

FR: Conserve commandes, factures et lignes d'articles dans des
    dictionnaires, journalise chaque écriture et permet d'injecter des
    pannes par clé (lecture, écriture) ou par ressource (liste).
EN: Keeps orders, invoices and line items in dictionaries, logs every
    write and supports per-key or per-resource failure injection.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from pos_einvoice.models.enums import SourceType
from pos_einvoice.models.transaction import TransactionKey
from pos_einvoice.store.base import BaseResourceStore
from pos_einvoice.store.errors import (
    StoreConnectionError,
    StoreNotFoundError,
    StoreWriteError,
)


@dataclass(frozen=True)
class StoreWrite:
    """Écriture journalisée par le connecteur mémoire."""

    operation: str
    key: TransactionKey
    payload: dict[str, Any] = field(default_factory=dict)


class MemoryStore(BaseResourceStore):
    """Stockage en mémoire implémentant BaseResourceStore.

    FR: Les enregistrements renvoyés sont des copies : modifier un résultat
        ne modifie pas le stockage.
    EN: Returned records are copies.
    """

    def __init__(self, **kwargs: object) -> None:
        self._records: dict[SourceType, dict[int, dict[str, Any]]] = {
            source_type: {} for source_type in SourceType
        }
        self._line_items: dict[TransactionKey, list[dict[str, Any]]] = {}
        self.writes: list[StoreWrite] = []
        self._failing_reads: set[TransactionKey] = set()
        self._failing_writes: set[TransactionKey] = set()
        self._unavailable: set[SourceType] = set()

    def _get_stored(self, key: TransactionKey) -> dict[str, Any]:
        """Récupère un enregistrement stocké ou lève StoreNotFoundError."""
        if key in self._failing_reads:
            msg = f"Lecture impossible : {key}"
            raise StoreConnectionError(msg)
        record = self._records[key.source_type].get(key.id)
        if record is None:
            msg = f"Enregistrement introuvable : {key}"
            raise StoreNotFoundError(msg)
        return record

    def _check_write(self, key: TransactionKey) -> dict[str, Any]:
        if key in self._failing_writes:
            msg = f"Écriture refusée : {key}"
            raise StoreWriteError(msg, status_code=500)
        record = self._records[key.source_type].get(key.id)
        if record is None:
            msg = f"Enregistrement introuvable : {key}"
            raise StoreNotFoundError(msg)
        return record

    # --- Lecture ---

    async def get_record(self, key: TransactionKey) -> dict[str, Any]:
        return copy.deepcopy(self._get_stored(key))

    async def list_records(
        self,
        source_type: SourceType,
        *,
        page: int = 1,
        limit: int = 100,
    ) -> list[dict[str, Any]]:
        if source_type in self._unavailable:
            msg = f"Ressource indisponible : {source_type.value}"
            raise StoreConnectionError(msg)
        records = list(self._records[source_type].values())
        start = (page - 1) * limit
        return copy.deepcopy(records[start : start + limit])

    async def get_line_items(self, key: TransactionKey) -> list[dict[str, Any]]:
        self._get_stored(key)
        return copy.deepcopy(self._line_items.get(key, []))

    # --- Écriture ---

    async def update_order_status(self, order_id: int, status: str) -> dict[str, Any]:
        key = TransactionKey(source_type=SourceType.ORDER, id=order_id)
        record = self._check_write(key)
        record["status"] = status
        self.writes.append(StoreWrite("update_order_status", key, {"status": status}))
        return copy.deepcopy(record)

    async def update_order(self, order_id: int, changes: dict[str, Any]) -> dict[str, Any]:
        key = TransactionKey(source_type=SourceType.ORDER, id=order_id)
        record = self._check_write(key)
        record.update(copy.deepcopy(changes))
        self.writes.append(StoreWrite("update_order", key, copy.deepcopy(changes)))
        return copy.deepcopy(record)

    async def update_invoice(self, invoice_id: int, record: dict[str, Any]) -> dict[str, Any]:
        key = TransactionKey(source_type=SourceType.INVOICE, id=invoice_id)
        stored = self._check_write(key)
        stored.update(copy.deepcopy(record))
        stored["id"] = invoice_id
        self.writes.append(StoreWrite("update_invoice", key, copy.deepcopy(record)))
        return copy.deepcopy(stored)

    # --- Méthodes utilitaires (propres au connecteur mémoire) ---

    def add_record(
        self,
        source_type: SourceType,
        record: dict[str, Any],
        line_items: list[dict[str, Any]] | None = None,
    ) -> TransactionKey:
        """Ajoute un enregistrement brut (et ses lignes) au stockage."""
        key = TransactionKey(source_type=source_type, id=int(record["id"]))
        self._records[source_type][key.id] = copy.deepcopy(record)
        if line_items is not None:
            self._line_items[key] = copy.deepcopy(line_items)
        return key

    def stored(self, key: TransactionKey) -> dict[str, Any]:
        """Copie de l'enregistrement stocké, sans injection de panne."""
        return copy.deepcopy(self._records[key.source_type][key.id])

    def fail_reads_for(self, key: TransactionKey) -> None:
        self._failing_reads.add(key)

    def fail_writes_for(self, key: TransactionKey) -> None:
        self._failing_writes.add(key)

    def make_unavailable(self, source_type: SourceType) -> None:
        """Fait échouer la liste d'une ressource."""
        self._unavailable.add(source_type)

    def writes_for(self, key: TransactionKey) -> list[StoreWrite]:
        return [write for write in self.writes if write.key == key]

"""Connecteur de stockage REST (API du point de vente).

FR: Traduit l'interface BaseResourceStore en appels HTTP vers l'API du
    point de vente et convertit les erreurs de transport et les statuts
    HTTP en exceptions `StoreError`. Aucune nouvelle tentative n'est
    faite ici : le coordinateur décide.
EN: Maps the BaseResourceStore interface onto the POS REST API and turns
    transport errors and HTTP statuses into `StoreError` exceptions. No
    retry happens here.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from pos_einvoice.models.enums import SourceType
from pos_einvoice.models.transaction import TransactionKey
from pos_einvoice.store.base import BaseResourceStore
from pos_einvoice.store.errors import (
    StoreConnectionError,
    StoreError,
    StoreNotFoundError,
    StoreWriteError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

_COLLECTIONS: dict[SourceType, str] = {
    SourceType.ORDER: "/api/orders",
    SourceType.INVOICE: "/api/invoices",
}

_ITEM_COLLECTIONS: dict[SourceType, str] = {
    SourceType.ORDER: "/api/order-items",
    SourceType.INVOICE: "/api/invoice-items",
}


class HttpResourceStore(BaseResourceStore):
    """Stockage adossé à l'API REST du point de vente.

    Args:
        base_url: URL racine de l'API.
        timeout: Délai maximal d'une requête, en secondes.
        token: Jeton Bearer optionnel.
        client: Client httpx injecté (tests, pool partagé).
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        timeout: float = DEFAULT_TIMEOUT,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url
        headers = {"Authorization": f"Bearer {token}"} if token else None
        self._client = client or httpx.AsyncClient(
            base_url=base_url, timeout=timeout, headers=headers
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self._client.request(
                method, path, json=json_body, params=params
            )
        except httpx.TransportError as exc:
            msg = f"API injoignable ({method} {path}) : {exc}"
            raise StoreConnectionError(msg) from exc

        if response.status_code == 404:
            msg = f"Ressource introuvable : {path}"
            raise StoreNotFoundError(msg)
        if response.status_code >= 400:
            msg = f"{method} {path} a échoué : HTTP {response.status_code}"
            if method == "GET":
                raise StoreConnectionError(msg)
            raise StoreWriteError(msg, status_code=response.status_code)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            msg = f"Réponse illisible pour {method} {path}"
            raise StoreError(msg) from exc

    @staticmethod
    def _record_path(key: TransactionKey) -> str:
        return f"{_COLLECTIONS[key.source_type]}/{key.id}"

    # --- Lecture ---

    async def get_record(self, key: TransactionKey) -> dict[str, Any]:
        return await self._request("GET", self._record_path(key))

    async def list_records(
        self,
        source_type: SourceType,
        *,
        page: int = 1,
        limit: int = 100,
    ) -> list[dict[str, Any]]:
        payload = await self._request(
            "GET",
            _COLLECTIONS[source_type],
            params={"page": page, "limit": limit},
        )
        # L'API renvoie soit une liste, soit {"data": [...]}
        if isinstance(payload, dict):
            payload = payload.get("data")
        if not isinstance(payload, list):
            logger.warning(
                "Liste %s inattendue (%s)", source_type.value, type(payload).__name__
            )
            return []
        return payload

    async def get_line_items(self, key: TransactionKey) -> list[dict[str, Any]]:
        payload = await self._request(
            "GET", f"{_ITEM_COLLECTIONS[key.source_type]}/{key.id}"
        )
        if isinstance(payload, dict):
            payload = payload.get("data")
        return payload if isinstance(payload, list) else []

    # --- Écriture ---

    async def update_order_status(self, order_id: int, status: str) -> dict[str, Any]:
        return await self._request(
            "PUT",
            f"{_COLLECTIONS[SourceType.ORDER]}/{order_id}/status",
            json_body={"status": status},
        )

    async def update_order(self, order_id: int, changes: dict[str, Any]) -> dict[str, Any]:
        return await self._request(
            "PUT",
            f"{_COLLECTIONS[SourceType.ORDER]}/{order_id}",
            json_body=changes,
        )

    async def update_invoice(self, invoice_id: int, record: dict[str, Any]) -> dict[str, Any]:
        return await self._request(
            "PUT",
            f"{_COLLECTIONS[SourceType.INVOICE]}/{invoice_id}",
            json_body=record,
        )

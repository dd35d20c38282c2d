"""Connecteur HTTP vers le proxy de publication des factures électroniques.

FR: Envoie la requête de publication en POST sur `/api/einvoice/publish`.
    Aucune nouvelle tentative dans le connecteur : une publication dont
    l'issue est inconnue n'est rejouée qu'avec le même `transactionID`.
EN: Posts the publish request to `/api/einvoice/publish`. No retry in
    the connector: a publish with an unknown outcome is only replayed
    with the same `transactionID`.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from pos_einvoice.models.results import ProviderReceipt
from pos_einvoice.provider.base import BaseEInvoiceProvider
from pos_einvoice.provider.errors import (
    ProviderAuthenticationError,
    ProviderConnectionError,
    ProviderError,
    ProviderRejectedError,
)
from pos_einvoice.provider.models import (
    EInvoiceConnection,
    PublishPayload,
    PublishResponse,
)

logger = logging.getLogger(__name__)

PUBLISH_PATH = "/api/einvoice/publish"
DEFAULT_TIMEOUT = 60.0


class HttpEInvoiceProvider(BaseEInvoiceProvider):
    """Fournisseur joint à travers le proxy HTTP de publication.

    Args:
        base_url: URL racine du proxy.
        connection: Identifiants du vendeur (optionnels si la requête les
            porte déjà).
        timeout: Délai maximal de la requête, en secondes.
        client: Client httpx injecté (tests, pool partagé).
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        connection: EInvoiceConnection | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(connection=connection, base_url=base_url)
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def submit(self, payload: PublishPayload) -> ProviderReceipt:
        logger.info(
            "Publication %s (réf. %s) vers %s",
            payload.transaction_id,
            payload.invoice_ref,
            PUBLISH_PATH,
        )
        try:
            response = await self._client.post(PUBLISH_PATH, json=payload.to_wire())
        except httpx.TimeoutException as exc:
            msg = f"Délai dépassé lors de la publication {payload.transaction_id}"
            raise ProviderConnectionError(msg) from exc
        except httpx.TransportError as exc:
            msg = f"Fournisseur injoignable : {exc}"
            raise ProviderConnectionError(msg) from exc

        if response.status_code in (401, 403):
            msg = f"Authentification refusée par le fournisseur (HTTP {response.status_code})"
            raise ProviderAuthenticationError(msg)

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400:
            message = body.get("message") if isinstance(body, dict) else None
            if message and response.status_code < 500:
                raise ProviderRejectedError(message)
            msg = message or f"Publication échouée : HTTP {response.status_code}"
            raise ProviderConnectionError(msg)

        try:
            result = PublishResponse.model_validate(body)
        except ValidationError as exc:
            msg = f"Réponse du fournisseur illisible : {body!r}"
            raise ProviderError(msg) from exc

        if not result.success:
            raise ProviderRejectedError(
                result.message or "Publication refusée par le fournisseur"
            )
        if result.data is None:
            msg = "Réponse du fournisseur sans numéro de facture"
            raise ProviderError(msg)

        return ProviderReceipt(
            invoice_number=result.data.invoice_no,
            symbol=result.data.symbol,
            template_number=result.data.template_number or payload.template_number,
            raw_response=body,
        )

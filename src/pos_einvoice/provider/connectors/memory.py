"""Connecteur de fournisseur en mémoire pour les tests et le développement.

FR: Enregistre chaque requête reçue, attribue des numéros de facture
    séquentiels et peut être programmé pour refuser une publication ou
    simuler une panne réseau.
EN: Records every request, issues sequential invoice numbers and can be
    scripted to reject a publish or to simulate a transport failure.
"""

from __future__ import annotations

from collections import deque

from pos_einvoice.models.results import ProviderReceipt
from pos_einvoice.provider.base import BaseEInvoiceProvider
from pos_einvoice.provider.errors import (
    ProviderConnectionError,
    ProviderError,
    ProviderRejectedError,
)
from pos_einvoice.provider.models import EInvoiceConnection, PublishPayload

DEFAULT_SYMBOL = "C25TYY"


class MemoryEInvoiceProvider(BaseEInvoiceProvider):
    """Fournisseur simulé implémentant BaseEInvoiceProvider.

    FR: `payloads` contient toutes les requêtes reçues, y compris celles
        qui ont échoué ; `calls` est leur nombre.
    EN: `payloads` holds every request received, failed ones included.
    """

    def __init__(
        self,
        connection: EInvoiceConnection | None = None,
        symbol: str = DEFAULT_SYMBOL,
        **kwargs: object,
    ) -> None:
        super().__init__(connection=connection, base_url="memory")
        self.symbol = symbol
        self.payloads: list[PublishPayload] = []
        self._failures: deque[ProviderError] = deque()
        self._counter: int = 0

    @property
    def calls(self) -> int:
        return len(self.payloads)

    def _next_number(self) -> str:
        self._counter += 1
        return f"{self._counter:07d}"

    async def submit(self, payload: PublishPayload) -> ProviderReceipt:
        self.payloads.append(payload)
        if self._failures:
            raise self._failures.popleft()
        number = self._next_number()
        return ProviderReceipt(
            invoice_number=number,
            symbol=self.symbol,
            template_number=payload.template_number,
            raw_response={
                "success": True,
                "data": {
                    "invoiceNo": number,
                    "symbol": self.symbol,
                    "templateNumber": payload.template_number,
                },
            },
        )

    # --- Méthodes utilitaires (propres au connecteur mémoire) ---

    def reject_next(self, message: str, errors: list[str] | None = None) -> None:
        """Programme un refus pour la prochaine publication."""
        self._failures.append(ProviderRejectedError(message, errors))

    def fail_next(self, message: str = "Délai dépassé") -> None:
        """Programme une panne réseau pour la prochaine publication."""
        self._failures.append(ProviderConnectionError(message))

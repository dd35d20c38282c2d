"""Interface abstraite du stockage des commandes et factures.

FR: Le moteur ne connaît le stockage qu'à travers cette interface :
    lecture par (ressource, id), liste paginée par ressource, lignes
    d'articles, et trois chemins d'écriture. Les commandes changent de
    statut par un point d'accès dédié ; les factures sont réécrites en
    entier.
EN: The engine only sees storage through this interface. Orders change
    status through a dedicated endpoint; invoices are written as full
    records.
"""

from abc import ABCMeta, abstractmethod
from typing import Any

from pos_einvoice.models.enums import SourceType
from pos_einvoice.models.transaction import TransactionKey


class BaseResourceStore(metaclass=ABCMeta):
    """Classe de base abstraite pour les connecteurs de stockage."""

    # --- Lecture ---

    @abstractmethod
    async def get_record(self, key: TransactionKey) -> dict[str, Any]:
        """Récupère l'enregistrement brut d'une commande ou d'une facture.

        Raises:
            StoreNotFoundError: Si l'enregistrement n'existe pas.
            StoreConnectionError: Si l'API est injoignable.
        """
        ...

    @abstractmethod
    async def list_records(
        self,
        source_type: SourceType,
        *,
        page: int = 1,
        limit: int = 100,
    ) -> list[dict[str, Any]]:
        """Liste paginée des enregistrements bruts d'une ressource."""
        ...

    @abstractmethod
    async def get_line_items(self, key: TransactionKey) -> list[dict[str, Any]]:
        """Lignes d'articles brutes d'une commande ou d'une facture."""
        ...

    # --- Écriture ---

    @abstractmethod
    async def update_order_status(self, order_id: int, status: str) -> dict[str, Any]:
        """Change uniquement le statut d'une commande.

        Raises:
            StoreNotFoundError: Si la commande n'existe pas.
            StoreWriteError: Si l'écriture échoue.
        """
        ...

    @abstractmethod
    async def update_order(self, order_id: int, changes: dict[str, Any]) -> dict[str, Any]:
        """Mise à jour partielle d'une commande."""
        ...

    @abstractmethod
    async def update_invoice(self, invoice_id: int, record: dict[str, Any]) -> dict[str, Any]:
        """Réécrit l'enregistrement complet d'une facture."""
        ...

    async def aclose(self) -> None:
        """Libère les ressources du stockage (aucune par défaut)."""

"""Interface abstraite des connecteurs de fournisseur de factures électroniques.

FR: Un fournisseur reçoit une requête de publication et renvoie les
    identifiants attribués (numéro, symbole, modèle), ou lève une
    `ProviderError`.
EN: A provider receives a publish request and returns the assigned
    identifiers, or raises a `ProviderError`.
"""

from abc import ABCMeta, abstractmethod

from pos_einvoice.models.results import ProviderReceipt
from pos_einvoice.provider.models import EInvoiceConnection, PublishPayload


class BaseEInvoiceProvider(metaclass=ABCMeta):
    """Classe de base abstraite pour les connecteurs de fournisseur.

    FR: Les connecteurs concrets (proxy HTTP, mémoire) héritent de cette
        classe. La connexion porte les identifiants du vendeur insérés dans
        le bloc `login` de chaque requête.
    EN: Concrete connectors inherit from this class. The connection holds
        the seller credentials placed in each request's `login` block.
    """

    def __init__(
        self,
        connection: EInvoiceConnection | None = None,
        base_url: str | None = None,
    ) -> None:
        self.connection = connection
        self.base_url = base_url

    @abstractmethod
    async def submit(self, payload: PublishPayload) -> ProviderReceipt:
        """Publie une facture électronique.

        Args:
            payload: La requête complète de publication.

        Returns:
            Les identifiants attribués par le fournisseur.

        Raises:
            ProviderRejectedError: Si le fournisseur refuse la facture.
            ProviderAuthenticationError: Si l'authentification échoue.
            ProviderConnectionError: Si la connexion réseau échoue.
        """
        ...

    async def aclose(self) -> None:
        """Libère les ressources du connecteur (aucune par défaut)."""

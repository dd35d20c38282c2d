"""Hiérarchie d'exceptions pour les échanges avec le fournisseur de factures électroniques.

FR: Exceptions typées pour l'authentification, le rejet métier et les
    erreurs de transport vers le proxy de publication.
EN: Typed exceptions for authentication, business rejection and transport
    errors against the publish proxy.
"""


class ProviderError(Exception):
    """Erreur de base pour toutes les opérations auprès du fournisseur."""


class ProviderAuthenticationError(ProviderError):
    """Échec d'authentification auprès du fournisseur.

    FR: Identifiants de connexion invalides ou compte désactivé.
    EN: Invalid login credentials or disabled account.
    """


class ProviderRejectedError(ProviderError):
    """Facture refusée par le fournisseur.

    FR: Le message du fournisseur est conservé tel quel pour l'opérateur.
    EN: The provider's message is kept verbatim for the operator.
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors: list[str] = errors or []


class ProviderConnectionError(ProviderError):
    """Erreur de connexion réseau vers le fournisseur.

    FR: Timeout, DNS, TLS ou autre erreur de transport. L'issue de la
        publication est alors inconnue.
    EN: Timeout, DNS, TLS or other transport error. The publish outcome is
        then unknown.
    """

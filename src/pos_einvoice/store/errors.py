"""Hiérarchie d'exceptions du stockage des ressources.

FR: Exceptions typées pour les lectures et écritures de commandes et de
    factures auprès de l'API du POS.
EN: Typed exceptions for order and invoice reads/writes against the POS API.
"""


class StoreError(Exception):
    """Erreur de base pour toutes les opérations de stockage."""


class StoreNotFoundError(StoreError):
    """Enregistrement introuvable."""


class StoreConnectionError(StoreError):
    """Erreur de transport vers l'API (timeout, DNS, TLS, connexion refusée)."""


class StoreWriteError(StoreError):
    """Écriture refusée ou échouée côté serveur.

    FR: Conserve le code HTTP lorsqu'il est connu.
    EN: Keeps the HTTP status code when known.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

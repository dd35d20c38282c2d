"""Accès au stockage des commandes et factures du point de vente.

FR: Interface abstraite, hiérarchie d'exceptions et connecteurs
    (mémoire, REST).
EN: Abstract interface, exception hierarchy and connectors.
"""

from pos_einvoice.store.base import BaseResourceStore
from pos_einvoice.store.errors import (
    StoreConnectionError,
    StoreError,
    StoreNotFoundError,
    StoreWriteError,
)

__all__ = [
    "BaseResourceStore",
    "StoreConnectionError",
    "StoreError",
    "StoreNotFoundError",
    "StoreWriteError",
]

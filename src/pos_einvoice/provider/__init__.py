"""Clients du fournisseur de factures électroniques.

FR: Interface abstraite, modèles du format d'échange et hiérarchie
    d'exceptions pour la publication des factures électroniques.
EN: Abstract interface, wire-format models and exception hierarchy for
    e-invoice publishing.
"""

from pos_einvoice.provider.base import BaseEInvoiceProvider
from pos_einvoice.provider.errors import (
    ProviderAuthenticationError,
    ProviderConnectionError,
    ProviderError,
    ProviderRejectedError,
)
from pos_einvoice.provider.models import (
    EInvoiceConnection,
    PayloadCustomer,
    PayloadLine,
    ProviderLogin,
    PublishPayload,
    PublishResponse,
    PublishResponseData,
)

__all__ = [
    "BaseEInvoiceProvider",
    "EInvoiceConnection",
    "PayloadCustomer",
    "PayloadLine",
    "ProviderAuthenticationError",
    "ProviderConnectionError",
    "ProviderError",
    "ProviderLogin",
    "ProviderRejectedError",
    "PublishPayload",
    "PublishResponse",
    "PublishResponseData",
]

"""Configuration de la facturation électronique POS via settings Django.

FR: Helper pour accéder aux paramètres POS_EINVOICE définis dans
    settings.py. Fournit des valeurs par défaut et instancie dynamiquement
    le connecteur du fournisseur et le stockage.
EN: Helper for accessing POS_EINVOICE settings defined in settings.py.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.utils.module_loading import import_string

from pos_einvoice.provider.base import BaseEInvoiceProvider
from pos_einvoice.provider.models import EInvoiceConnection
from pos_einvoice.store.base import BaseResourceStore
from pos_einvoice.workflows.publish import DEFAULT_TEMPLATE, PublishSettings

logger = logging.getLogger(__name__)

DEFAULTS: dict[str, object] = {
    "PROVIDER_CLASS": "pos_einvoice.provider.connectors.http.HttpEInvoiceProvider",
    "PROVIDER_OPTIONS": {},
    "STORE_CLASS": "pos_einvoice.store.connectors.http.HttpResourceStore",
    "STORE_OPTIONS": {},
    "CONNECTION": None,
    "DEFAULT_TEMPLATE": DEFAULT_TEMPLATE,
    "DEFAULT_PAYMENT_TYPE": "TM",
    "CURRENCY": "VND",
    "VAT_RATE": 10,
}


def get_setting(name: str) -> object:
    """Retourne la valeur d'un paramètre POS_EINVOICE.

    FR: Cherche dans settings.POS_EINVOICE[name], puis dans les défauts.
    EN: Looks up settings.POS_EINVOICE[name], then falls back to defaults.
    """
    if name not in DEFAULTS:
        msg = f"Paramètre POS_EINVOICE inconnu : {name}"
        raise KeyError(msg)
    user_settings = getattr(settings, "POS_EINVOICE", {})
    return user_settings.get(name, DEFAULTS[name])


def get_connection() -> EInvoiceConnection | None:
    """Identifiants du vendeur configurés, ou None."""
    connection = get_setting("CONNECTION")
    if connection is None or isinstance(connection, EInvoiceConnection):
        return connection
    return EInvoiceConnection.model_validate(connection)


def _instantiate(setting: str, options_setting: str, **extra: object) -> object:
    class_path = get_setting(setting)
    if not class_path:
        msg = (
            f"POS_EINVOICE['{setting}'] n'est pas configuré. "
            "Spécifiez le chemin complet de la classe."
        )
        raise ValueError(msg)
    cls = import_string(class_path)
    options = dict(get_setting(options_setting) or {})
    options.update(extra)
    logger.debug("Instanciation de %s", class_path)
    return cls(**options)


def get_provider_instance() -> BaseEInvoiceProvider:
    """Instancie dynamiquement le connecteur du fournisseur configuré.

    FR: Utilise PROVIDER_CLASS et PROVIDER_OPTIONS ; la connexion
        CONNECTION est transmise au connecteur.
    EN: Uses PROVIDER_CLASS and PROVIDER_OPTIONS; CONNECTION is passed to
        the connector.

    Raises:
        ValueError: Si PROVIDER_CLASS n'est pas configuré.
    """
    return _instantiate("PROVIDER_CLASS", "PROVIDER_OPTIONS", connection=get_connection())


def get_store_instance() -> BaseResourceStore:
    """Instancie dynamiquement le stockage configuré (STORE_CLASS, STORE_OPTIONS).

    Raises:
        ValueError: Si STORE_CLASS n'est pas configuré.
    """
    return _instantiate("STORE_CLASS", "STORE_OPTIONS")


def get_publish_settings() -> PublishSettings:
    """Paramètres de publication issus de POS_EINVOICE."""
    return PublishSettings(
        connection=get_connection(),
        template_number=get_setting("DEFAULT_TEMPLATE"),
        payment_type=get_setting("DEFAULT_PAYMENT_TYPE"),
        currency=get_setting("CURRENCY"),
        vat_rate=get_setting("VAT_RATE"),
    )

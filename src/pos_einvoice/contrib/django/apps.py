"""Configuration de l'application Django pour la facturation électronique POS."""

from django.apps import AppConfig
from django.core.exceptions import ImproperlyConfigured
from pydantic import ValidationError


class PosEInvoiceConfig(AppConfig):
    """Configuration de l'app Django pos-einvoice.

    FR: Valide POS_EINVOICE['CONNECTION'] au démarrage.
    EN: Validates POS_EINVOICE['CONNECTION'] on startup.
    """

    name = "pos_einvoice.contrib.django"
    label = "pos_einvoice"
    verbose_name = "Hóa đơn điện tử POS"

    def ready(self) -> None:
        from pos_einvoice.contrib.django.conf import get_connection

        try:
            get_connection()
        except ValidationError as exc:
            msg = f"POS_EINVOICE['CONNECTION'] invalide : {exc}"
            raise ImproperlyConfigured(msg) from exc

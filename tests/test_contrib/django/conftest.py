"""Configuration pytest pour les tests Django.

FR: Configure Django sans base de données : l'application ne déclare
    aucun modèle.
EN: Configures Django without a database: the app declares no models.
"""

import django
from django.conf import settings


def pytest_configure() -> None:
    """Configure Django pour les tests."""
    if not settings.configured:
        settings.configure(
            INSTALLED_APPS=[
                "django.contrib.contenttypes",
                "pos_einvoice.contrib.django",
            ],
            USE_TZ=True,
        )
        django.setup()


import pytest  # noqa: E402

from pos_einvoice.models.enums import SourceType  # noqa: E402
from pos_einvoice.store.connectors.memory import MemoryStore  # noqa: E402


@pytest.fixture
def seeded_store(order_record, invoice_record, line_item_records) -> MemoryStore:
    """Stockage en mémoire partagé entre les instanciations d'une tâche."""
    store = MemoryStore()
    store.add_record(SourceType.ORDER, order_record, line_item_records)
    store.add_record(SourceType.INVOICE, invoice_record, line_item_records)
    return store


@pytest.fixture
def use_store(monkeypatch, seeded_store):
    """Fait renvoyer `seeded_store` par la configuration Django."""
    monkeypatch.setattr(
        "pos_einvoice.contrib.django.conf.get_store_instance",
        lambda: seeded_store,
    )
    return seeded_store

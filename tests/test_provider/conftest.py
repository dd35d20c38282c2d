"""Fixtures partagées pour les tests du fournisseur."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from pos_einvoice.provider.models import (
    PayloadCustomer,
    PayloadLine,
    ProviderLogin,
    PublishPayload,
)


@pytest.fixture
def payload(connection) -> PublishPayload:
    """Requête de publication minimale d'une ligne."""
    return PublishPayload(
        login=ProviderLogin.from_connection(connection),
        transaction_id="3f2b8c1e-2d4a-4c6b-9f1e-7a8b9c0d1e2f",
        invoice_ref="INV-1742000000000",
        subtotal=100000,
        vat_amount=10000,
        total_amount=110000,
        created_date=datetime(2025, 3, 15, 12, 30, tzinfo=timezone.utc),
        template_number="1C25TAA",
        customer=PayloadCustomer(name="Khách hàng lẻ"),
        products=[
            PayloadLine(
                code="CF-001",
                name="Cà phê sữa",
                quantity=Decimal("2"),
                unit_price=Decimal("50000"),
                amount=100000,
                vat_rate="10",
                vat_amount=10000,
                total_amount=110000,
            )
        ],
    )

"""Modèles du format d'échange avec le proxy de publication.

FR: Modèles Pydantic de la requête de publication (connexion, en-tête,
    client, lignes) et de la réponse du proxy. Les noms Python suivent la
    convention du paquet ; les alias portent les noms du format d'échange.
EN: Pydantic models of the publish request and of the proxy response.
    Python names follow package conventions; aliases carry the wire names.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from pos_einvoice.models.enums import EInvoiceProvider


class EInvoiceConnection(BaseModel):
    """Paramètres de connexion du vendeur chez le fournisseur.

    FR: Un enregistrement par logiciel de facturation configuré.
    EN: One record per configured e-invoicing software.
    """

    provider: EInvoiceProvider = EInvoiceProvider.EASY_INVOICE
    login_url: str = "https://infoerpvn.com:9440"
    tax_code: str
    """Numéro fiscal du vendeur (`ma_dvcs`)."""
    login_id: str
    password: str
    tenant_id: str = ""
    template_number: str | None = None
    """Modèle par défaut pour cette connexion."""
    symbol: str | None = None
    is_active: bool = True


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Dictionnaire JSON avec les noms du format d'échange."""
        return self.model_dump(by_alias=True, mode="json")


class ProviderLogin(_WireModel):
    """Bloc `login` de la requête."""

    provider_id: int = Field(alias="providerId")
    url: str
    seller_tax_code: str = Field(alias="ma_dvcs")
    username: str
    password: str
    tenant_id: str = Field(default="", alias="tenantId")

    @classmethod
    def from_connection(cls, connection: EInvoiceConnection) -> "ProviderLogin":
        return cls(
            provider_id=int(connection.provider),
            url=connection.login_url,
            seller_tax_code=connection.tax_code,
            username=connection.login_id,
            password=connection.password,
            tenant_id=connection.tenant_id,
        )


class PayloadCustomer(_WireModel):
    """Bloc `customer` de la requête."""

    code: str = Field(default="", alias="custCd")
    name: str = Field(alias="custNm")
    company: str = Field(default="", alias="custCompany")
    tax_code: str = Field(default="", alias="taxCode")
    city: str = Field(default="", alias="custCity")
    district: str = Field(default="", alias="custDistrictName")
    address: str = Field(default="", alias="custAddrs")
    phone: str = Field(default="", alias="custPhone")
    bank_account: str = Field(default="", alias="custBankAccount")
    bank_name: str = Field(default="", alias="custBankName")
    email: str = ""
    email_cc: str = Field(default="", alias="emailCC")


def _number(value: Decimal) -> int | float:
    return int(value) if value == value.to_integral_value() else float(value)


class PayloadLine(_WireModel):
    """Ligne `products[]` de la requête.

    FR: Montants arrondis à l'unité (demi vers le haut) ; quantité et prix
        unitaire transmis tels quels.
    EN: Amounts rounded half-up to integer units; quantity and unit price
        sent as-is.
    """

    code: str = Field(alias="itmCd")
    name: str = Field(alias="itmName")
    kind: int = Field(default=1, alias="itmKnd")
    unit: str = Field(default="Cái", alias="unitNm")
    quantity: Decimal = Field(alias="qty")
    unit_price: Decimal = Field(alias="unprc")
    amount: int = Field(alias="amt")
    discount_rate: int = Field(default=0, alias="discRate")
    discount_amount: int = Field(default=0, alias="discAmt")
    vat_rate: str = Field(alias="vatRt")
    vat_amount: int = Field(alias="vatAmt")
    total_amount: int = Field(alias="totalAmt")

    @field_serializer("quantity", "unit_price")
    def _serialize_number(self, value: Decimal) -> int | float:
        return _number(value)


class PublishPayload(_WireModel):
    """Requête complète de publication d'une facture électronique."""

    login: ProviderLogin
    transaction_id: str = Field(alias="transactionID")
    """Jeton d'idempotence propre à chaque tentative."""
    invoice_ref: str = Field(alias="invRef")
    subtotal: int = Field(alias="invSubTotal")
    vat_rate: int = Field(default=10, alias="invVatRate")
    vat_amount: int = Field(alias="invVatAmount")
    discount_amount: int = Field(default=0, alias="invDiscAmount")
    total_amount: int = Field(alias="invTotalAmount")
    payment_type: str = Field(default="TM", alias="paidTp")
    note: str = ""
    invoice_no: str = Field(default="", alias="hdNo")
    created_date: datetime = Field(alias="createdDate")
    classification: str = Field(default="1", alias="clsfNo")
    template_number: str = Field(alias="spcfNo")
    template_code: str = Field(default="", alias="templateCode")
    buyer_not_get_invoice: int = Field(default=0, alias="buyerNotGetInvoice")
    currency: str = Field(default="VND", alias="exchCd")
    exchange_rate: int = Field(default=1, alias="exchRt")
    bank_account: str = Field(default="", alias="bankAccount")
    bank_name: str = Field(default="", alias="bankName")
    customer: PayloadCustomer
    products: list[PayloadLine]


class PublishResponseData(BaseModel):
    """Identifiants renvoyés par le proxy après une publication réussie."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    invoice_no: str = Field(alias="invoiceNo")
    symbol: str | None = None
    template_number: str | None = Field(default=None, alias="templateNumber")


class PublishResponse(BaseModel):
    """Réponse du proxy : `{success, data}` ou `{success: false, message}`."""

    model_config = ConfigDict(extra="ignore")

    success: bool
    message: str | None = None
    data: PublishResponseData | None = None

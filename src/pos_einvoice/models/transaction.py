"""Modèle unifié des transactions de vente.

FR: Une transaction est la vue commune d'une vente, qu'elle provienne
    d'une commande en salle ou d'une facture finalisée. Les modèles sont
    immuables par convention : toute modification produit une copie
    (`model_copy(update=...)`), jamais une mutation en place.
EN: A transaction is the shared view of one sale, whether it originated
    as an in-store order or a finalized invoice. Models are treated as
    immutable: changes produce copies, never in-place mutation.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from pos_einvoice.models.enums import (
    DisplayStatus,
    EInvoiceStatus,
    SourceType,
)

WALK_IN_CUSTOMER_NAME = "Khách hàng lẻ"
"""Nom par défaut du client de passage / Default walk-in customer name."""


class TransactionKey(BaseModel):
    """Identifiant d'une transaction : (ressource d'origine, id).

    FR: L'id n'est unique qu'au sein de sa ressource d'origine.
    EN: The id is only unique within its source type.
    """

    model_config = ConfigDict(frozen=True)

    source_type: SourceType
    id: int

    def __str__(self) -> str:
        return f"{self.source_type.value}#{self.id}"


class Customer(BaseModel):
    """Client de la transaction.

    FR: Tous les champs sont optionnels ; un client absent correspond
        au client de passage.
    EN: All fields are optional; an absent customer means walk-in.
    """

    name: str = Field(
        default=WALK_IN_CUSTOMER_NAME,
        description="Nom du client / Customer name",
    )
    phone: str | None = Field(default=None, description="Téléphone / Phone")
    address: str | None = Field(default=None, description="Adresse / Address")
    tax_code: str | None = Field(
        default=None,
        description="Mã số thuế, numéro fiscal / Tax code",
    )
    email: str | None = Field(default=None, description="E-mail")


class Amounts(BaseModel):
    """Montants d'une transaction.

    FR: L'invariant `total == subtotal + tax - discount` est vérifié à la
        construction. La remise vaut toujours 0 pour l'instant.
    EN: `total == subtotal + tax - discount` is enforced on construction.
    """

    subtotal: Decimal = Field(default=Decimal("0"), description="Montant HT / Subtotal")
    tax: Decimal = Field(default=Decimal("0"), description="TVA / Tax")
    discount: Decimal = Field(default=Decimal("0"), ge=0, description="Remise / Discount")
    total: Decimal = Field(default=Decimal("0"), description="Montant TTC / Total")

    @model_validator(mode="after")
    def _check_total(self) -> "Amounts":
        expected = self.subtotal + self.tax - self.discount
        if self.total != expected:
            msg = (
                f"Total incohérent : {self.total} ≠ {self.subtotal} + {self.tax} "
                f"- {self.discount} ({expected})"
            )
            raise ValueError(msg)
        return self

    @classmethod
    def from_components(
        cls,
        subtotal: Decimal,
        tax: Decimal,
        discount: Decimal = Decimal("0"),
    ) -> "Amounts":
        """Construit les montants en dérivant le total."""
        return cls(
            subtotal=subtotal,
            tax=tax,
            discount=discount,
            total=subtotal + tax - discount,
        )


class InvoiceIdentity(BaseModel):
    """Identité de la facture électronique.

    FR: Vide tant que la publication n'a pas réussi. Le numéro de
        transaction commerciale (`trade_number`) n'est jamais écrasé
        une fois attribué.
    EN: Empty until publish succeeds. `trade_number` is never overwritten
        once assigned.
    """

    invoice_number: str | None = Field(default=None, description="Số hóa đơn / Invoice number")
    symbol: str | None = Field(default=None, description="Ký hiệu / Invoice symbol")
    template_number: str | None = Field(
        default=None,
        description="Mẫu số / Template number",
    )
    trade_number: str | None = Field(
        default=None,
        description="Numéro de transaction commerciale / Trade number",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_empty(self) -> bool:
        """Aucun identifiant attribué / No identifier assigned."""
        return not (
            self.invoice_number or self.symbol or self.template_number or self.trade_number
        )


class LineItem(BaseModel):
    """Ligne d'article d'une transaction.

    FR: Le `total` stocké peut être périmé ; la publication recalcule
        toujours les montants depuis le prix unitaire.
    EN: The stored `total` may be stale; publishing always recomputes.
    """

    product_id: int | None = Field(default=None, description="Identifiant produit / Product id")
    product_name: str = Field(default="", description="Désignation / Product name")
    sku: str | None = Field(default=None, description="Référence article / SKU")
    quantity: Decimal = Field(default=Decimal("1"), description="Quantité / Quantity")
    unit_price: Decimal = Field(default=Decimal("0"), description="Prix unitaire HT / Unit price")
    tax_rate: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Taux de TVA en % / Tax rate in %",
    )
    total: Decimal = Field(default=Decimal("0"), description="Total stocké / Stored total")


class Transaction(BaseModel):
    """Transaction de vente unifiée.

    FR: Produit de la normalisation d'une commande ou d'une facture.
        `local_status` conserve le code natif de la ressource (texte pour
        les commandes, entier pour les factures) ; `display_status` en
        est la projection commune.
    EN: Product of normalizing an order or an invoice. `local_status`
        keeps the source's native code; `display_status` is the shared
        projection.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    source_type: SourceType
    display_number: str
    date: datetime | None = None
    customer: Customer = Field(default_factory=Customer)
    amounts: Amounts = Field(default_factory=Amounts)
    local_status: str | int
    display_status: DisplayStatus
    einvoice_status: EInvoiceStatus = EInvoiceStatus.UNISSUED
    invoice_identity: InvoiceIdentity = Field(default_factory=InvoiceIdentity)
    payment_method: str | int | None = None
    notes: str | None = None
    line_items: tuple[LineItem, ...] | None = Field(
        default=None,
        description="Chargées à la demande / Lazily fetched",
    )

    @property
    def key(self) -> TransactionKey:
        """Clé (ressource, id) de la transaction."""
        return TransactionKey(source_type=self.source_type, id=self.id)


class TransactionContext(BaseModel):
    """Transaction sélectionnée, passée explicitement aux workflows.

    FR: Remplace l'état global « transaction sélectionnée » de l'interface.
        Les workflows reçoivent un contexte et renvoient un nouvel
        instantané ; ils ne modifient jamais celui reçu.
    EN: Replaces the UI-global "selected transaction". Workflows take a
        context and return a new snapshot.
    """

    model_config = ConfigDict(frozen=True)

    snapshot: Transaction

    @property
    def key(self) -> TransactionKey:
        return self.snapshot.key

    @classmethod
    def of(cls, transaction: Transaction) -> "TransactionContext":
        return cls(snapshot=transaction)

    def with_snapshot(self, transaction: Transaction) -> "TransactionContext":
        """Nouveau contexte pour un instantané mis à jour."""
        if transaction.key != self.key:
            msg = f"Instantané {transaction.key} incompatible avec le contexte {self.key}"
            raise ValueError(msg)
        return TransactionContext(snapshot=transaction)

"""Modèles du rapprochement commandes / factures.

FR: Filtres de la liste unifiée, totaux et résultat du rapprochement.
EN: Unified list filters, totals and reconciliation result.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from pos_einvoice.models.enums import DisplayStatus, SourceType
from pos_einvoice.models.transaction import Transaction


class TransactionFilters(BaseModel):
    """Filtres de la liste des transactions.

    FR: Combinés par conjonction ; un filtre absent (None ou chaîne vide)
        accepte tout. Les recherches textuelles sont des sous-chaînes
        insensibles à la casse. La plage de dates est inclusive, la date
        de fin étendue à 23:59:59.999.
    EN: Conjunctive; an absent filter always matches. Text searches are
        case-insensitive substrings. The date range is inclusive, the end
        extended to 23:59:59.999.
    """

    date_from: date | None = None
    date_to: date | None = None
    customer_name: str | None = Field(
        default=None,
        description="Sous-chaîne du nom du client / Customer name substring",
    )
    transaction_code: str | None = Field(
        default=None,
        description=(
            "Sous-chaîne du code, du numéro de facture ou du numéro de "
            "transaction commerciale / Transaction code substring"
        ),
    )
    tax_code: str | None = Field(
        default=None,
        description="Sous-chaîne du numéro fiscal / Tax code substring",
    )
    source_type: SourceType | None = None
    display_status: DisplayStatus | None = None

    @model_validator(mode="after")
    def _check_range(self) -> "TransactionFilters":
        if self.date_from and self.date_to and self.date_from > self.date_to:
            msg = f"Plage de dates invalide : {self.date_from} > {self.date_to}"
            raise ValueError(msg)
        return self


class Totals(BaseModel):
    """Totaux calculés sur les transactions retournées."""

    subtotal: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    count: int = 0


class ReconciliationResult(BaseModel):
    """Liste unifiée filtrée et ses totaux.

    FR: Aucun ordre n'est imposé : commandes puis factures, dans l'ordre
        reçu. Le tri d'affichage revient à l'appelant.
    EN: No order is imposed: orders then invoices, as received.
    """

    transactions: list[Transaction] = Field(default_factory=list)
    totals: Totals = Field(default_factory=Totals)
    skipped_records: int = Field(
        default=0,
        description=(
            "Enregistrements illisibles ignorés / Unreadable records skipped"
        ),
    )

"""Publication d'une transaction auprès du fournisseur de factures électroniques.

FR: Enchaîne les préconditions locales, la construction de la requête,
    l'envoi au fournisseur, la transition approuvée par la machine à états
    et l'écriture dans le stockage. Aucune exception ne sort de `publish` :
    toute issue est un `PublishResult`.
EN: Chains local preconditions, payload construction, provider submission,
    the state-machine-approved transition and the store write. `publish`
    never raises: every outcome is a `PublishResult`.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from pydantic import BaseModel, Field

from pos_einvoice.lifecycle.manager import issue_einvoice
from pos_einvoice.models.enums import DisplayStatus, EInvoiceStatus, SourceType
from pos_einvoice.models.results import (
    ErrorCode,
    ErrorKind,
    OperationError,
    ProviderReceipt,
    PublishResult,
)
from pos_einvoice.models.transaction import (
    LineItem,
    Transaction,
    TransactionContext,
    TransactionKey,
)
from pos_einvoice.provider.base import BaseEInvoiceProvider
from pos_einvoice.provider.errors import ProviderError, ProviderRejectedError
from pos_einvoice.provider.models import (
    EInvoiceConnection,
    PayloadCustomer,
    PayloadLine,
    ProviderLogin,
    PublishPayload,
)
from pos_einvoice.reconciliation.normalizer import normalize_line_item, to_invoice_record
from pos_einvoice.store.base import BaseResourceStore
from pos_einvoice.store.errors import StoreError

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "1C25TYY"

_UNIT = Decimal("1")
_HUNDRED = Decimal("100")


class PublishSettings(BaseModel):
    """Paramètres de publication communs à toutes les transactions."""

    connection: EInvoiceConnection | None = Field(
        default=None,
        description=(
            "Identifiants du vendeur ; à défaut ceux du connecteur / "
            "Seller credentials, falling back to the provider's"
        ),
    )
    template_number: str = DEFAULT_TEMPLATE
    payment_type: str = "TM"
    currency: str = "VND"
    vat_rate: int = 10


def round_units(value: Decimal) -> int:
    """Arrondi à l'unité monétaire, demi vers le haut.

    Raises:
        ValueError: Montant hors de la précision décimale.
    """
    try:
        return int(value.quantize(_UNIT, rounding=ROUND_HALF_UP))
    except InvalidOperation as exc:
        msg = f"Montant hors limites : {value}"
        raise ValueError(msg) from exc


class LineAmounts(BaseModel):
    """Montants d'une ligne recalculés depuis prix, quantité et taux."""

    subtotal: Decimal
    tax: Decimal

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.tax

    @classmethod
    def of(cls, item: LineItem) -> "LineAmounts":
        subtotal = item.unit_price * item.quantity
        return cls(subtotal=subtotal, tax=subtotal * item.tax_rate / _HUNDRED)


def _product_code(item: LineItem, position: int) -> str:
    if item.sku:
        return item.sku
    return f"SP{item.product_id or position:03d}"


def _rate_text(rate: Decimal) -> str:
    return str(int(rate)) if rate == rate.to_integral_value() else str(rate.normalize())


class PublishWorkflow:
    """Workflow de publication des factures électroniques.

    Args:
        provider: Connecteur du fournisseur.
        store: Stockage des commandes et factures.
        settings: Paramètres de publication.
        clock: Horloge injectable (tests).
    """

    def __init__(
        self,
        provider: BaseEInvoiceProvider,
        store: BaseResourceStore,
        settings: PublishSettings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.provider = provider
        self.store = store
        self.settings = settings or PublishSettings()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        if self.settings.connection is None and provider.connection is None:
            msg = "Aucune connexion au fournisseur configurée"
            raise ValueError(msg)

    @property
    def connection(self) -> EInvoiceConnection:
        return self.settings.connection or self.provider.connection

    # --- Construction de la requête ---

    def build_lines(self, line_items: Sequence[LineItem]) -> list[PayloadLine]:
        """Lignes `products[]`, montants recalculés (jamais le total stocké)."""
        lines = []
        for position, item in enumerate(line_items, start=1):
            amounts = LineAmounts.of(item)
            lines.append(
                PayloadLine(
                    code=_product_code(item, position),
                    name=item.product_name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    amount=round_units(amounts.subtotal),
                    vat_rate=_rate_text(item.tax_rate),
                    vat_amount=round_units(amounts.tax),
                    total_amount=round_units(amounts.total),
                )
            )
        return lines

    def build_payload(
        self,
        transaction: Transaction,
        line_items: Sequence[LineItem],
        transaction_ref: str | None = None,
    ) -> PublishPayload:
        """Construit la requête de publication d'une transaction.

        FR: Sans `transaction_ref`, un nouvel identifiant de transaction
            (UUID v4) est tiré. Une nouvelle tentative après une panne doit
            réutiliser celui de la tentative précédente. Les totaux
            d'en-tête sont les sommes non arrondies des lignes, arrondies
            une seule fois.
        EN: Without `transaction_ref` a fresh UUID v4 is drawn; a retry
            after an outage must reuse the previous one. Header totals are
            the unrounded line sums, rounded once.

        Raises:
            ValueError: Montant hors de la précision décimale.
        """
        subtotal = tax = Decimal("0")
        for item in line_items:
            amounts = LineAmounts.of(item)
            subtotal += amounts.subtotal
            tax += amounts.tax

        now = self._clock()
        customer = transaction.customer
        identity = transaction.invoice_identity
        return PublishPayload(
            login=ProviderLogin.from_connection(self.connection),
            transaction_id=transaction_ref or str(uuid.uuid4()),
            invoice_ref=f"INV-{int(now.timestamp() * 1000)}",
            subtotal=round_units(subtotal),
            vat_rate=self.settings.vat_rate,
            vat_amount=round_units(tax),
            total_amount=round_units(subtotal + tax),
            payment_type=self.settings.payment_type,
            note=transaction.notes or "",
            created_date=now,
            template_number=(
                identity.template_number
                or self.connection.template_number
                or self.settings.template_number
            ),
            currency=self.settings.currency,
            customer=PayloadCustomer(
                code=customer.tax_code or "",
                name=customer.name,
                company=customer.name,
                tax_code=customer.tax_code or "",
                address=customer.address or "",
                phone=customer.phone or "",
                email=customer.email or "",
            ),
            products=self.build_lines(line_items),
        )

    # --- Publication ---

    async def _load_line_items(self, key: TransactionKey) -> list[LineItem]:
        records = await self.store.get_line_items(key)
        return [normalize_line_item(r) for r in records if isinstance(r, Mapping)]

    async def _record(self, transaction: Transaction) -> None:
        identity = transaction.invoice_identity
        if transaction.source_type == SourceType.ORDER:
            await self.store.update_order(
                transaction.id,
                {
                    "einvoiceStatus": int(transaction.einvoice_status),
                    "invoiceNumber": identity.invoice_number,
                    "symbol": identity.symbol,
                    "templateNumber": identity.template_number,
                    "tradeNumber": identity.trade_number,
                },
            )
        else:
            await self.store.update_invoice(transaction.id, to_invoice_record(transaction))

    async def publish(
        self,
        context: TransactionContext,
        line_items: Sequence[LineItem] | None = None,
        transaction_ref: str | None = None,
    ) -> PublishResult:
        """Publie la transaction du contexte.

        Args:
            context: Transaction sélectionnée.
            line_items: Lignes à publier ; à défaut celles de l'instantané,
                puis celles du stockage.
            transaction_ref: Identifiant de transaction d'une tentative
                précédente restée sans réponse ; à défaut un nouveau est tiré.

        Returns:
            Le résultat, portant le nouvel instantané en cas de succès.
        """
        transaction = context.snapshot
        key = transaction.key

        if transaction.einvoice_status != EInvoiceStatus.UNISSUED:
            return _failure(
                key,
                ErrorKind.VALIDATION,
                ErrorCode.ALREADY_PUBLISHED,
                f"Transaction {key} déjà publiée "
                f"(statut {transaction.einvoice_status.name}).",
            )

        if line_items is None:
            line_items = transaction.line_items
        if line_items is None:
            try:
                line_items = await self._load_line_items(key)
            except StoreError as exc:
                logger.exception("Lignes de %s illisibles", key)
                return _failure(
                    key, ErrorKind.PERSISTENCE, ErrorCode.STORE_READ_FAILED, str(exc)
                )

        if not line_items:
            return _failure(
                key,
                ErrorKind.VALIDATION,
                ErrorCode.NO_LINE_ITEMS,
                f"Transaction {key} sans ligne d'article à publier.",
            )

        if transaction.display_status == DisplayStatus.CANCELLED:
            return _failure(
                key,
                ErrorKind.VALIDATION,
                ErrorCode.TRANSACTION_CANCELLED,
                f"Transaction {key} annulée, publication impossible.",
            )

        try:
            payload = self.build_payload(transaction, line_items, transaction_ref)
        except ValueError as exc:
            return _failure(key, ErrorKind.VALIDATION, ErrorCode.INVALID_FIELD, str(exc))

        try:
            receipt = await self.provider.submit(payload)
        except ProviderRejectedError as exc:
            logger.warning("Publication de %s refusée : %s", key, exc)
            return _failure(
                key,
                ErrorKind.PROVIDER,
                ErrorCode.PROVIDER_REJECTED,
                str(exc),
                details=exc.errors,
                transaction_ref=payload.transaction_id,
            )
        except ProviderError as exc:
            logger.warning("Publication de %s échouée : %s", key, exc)
            return _failure(
                key,
                ErrorKind.PROVIDER,
                ErrorCode.PROVIDER_UNAVAILABLE,
                str(exc),
                transaction_ref=payload.transaction_id,
            )

        updated = issue_einvoice(transaction, receipt)

        try:
            await self._record(updated)
        except (StoreError, ValueError) as exc:
            logger.critical(
                "Facture %s publiée chez le fournisseur (réf. %s) mais non "
                "enregistrée pour %s : rapprochement manuel requis (%s)",
                receipt.invoice_number,
                payload.transaction_id,
                key,
                exc,
            )
            return _failure(
                key,
                ErrorKind.PERSISTENCE,
                ErrorCode.NOT_RECORDED_LOCALLY,
                f"Facture {receipt.invoice_number} publiée mais non enregistrée "
                f"localement : {exc}",
                receipt=receipt,
                transaction_ref=payload.transaction_id,
                requires_manual_reconciliation=True,
            )

        logger.info("Transaction %s publiée : facture %s", key, receipt.invoice_number)
        return PublishResult(
            key=key,
            value=updated,
            receipt=receipt,
            transaction_ref=payload.transaction_id,
        )


def _failure(
    key: TransactionKey,
    kind: ErrorKind,
    code: ErrorCode,
    message: str,
    *,
    details: list[str] | None = None,
    receipt: ProviderReceipt | None = None,
    transaction_ref: str | None = None,
    requires_manual_reconciliation: bool = False,
) -> PublishResult:
    return PublishResult(
        key=key,
        error=OperationError(kind=kind, code=code, message=message, details=details or []),
        receipt=receipt,
        transaction_ref=transaction_ref,
        requires_manual_reconciliation=requires_manual_reconciliation,
    )

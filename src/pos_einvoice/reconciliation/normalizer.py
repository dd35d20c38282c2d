"""Normalisation des commandes et factures en transactions unifiées.

FR: Une fonction par ressource d'origine (union étiquetée par `SourceType`).
    La normalisation est totale pour les champs optionnels : un champ
    absent ou illisible prend sa valeur par défaut documentée. Elle est
    déterministe et sans état, et peut donc être rejouée à chaque
    rechargement.
EN: One function per source type (tagged union). Normalization is total
    over optional fields, deterministic and stateless, so it can be
    re-applied on every refetch.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from pos_einvoice.lifecycle.manager import resolve_display_status
from pos_einvoice.models.enums import EInvoiceStatus, InvoiceStatus, SourceType
from pos_einvoice.models.transaction import (
    WALK_IN_CUSTOMER_NAME,
    Amounts,
    Customer,
    InvoiceIdentity,
    LineItem,
    Transaction,
)

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")
_CENT = Decimal("0.01")


def fallback_display_number(record_id: int) -> str:
    """Code d'affichage par défaut : `DH` + id sur 8 chiffres."""
    return f"DH{record_id:08d}"


# ---------------------------------------------------------------------------
# Lecture des champs bruts
# ---------------------------------------------------------------------------


def _text(raw: Mapping[str, Any], key: str) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _decimal(raw: Mapping[str, Any], key: str, default: Decimal = _ZERO) -> Decimal:
    value = raw.get(key)
    if value is None or value == "":
        return default
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        return default
    return result if result.is_finite() else default


def _int(raw: Mapping[str, Any], key: str) -> int | None:
    value = raw.get(key)
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not number.is_finite() or number != number.to_integral_value():
        return None
    return int(number)


def _datetime(raw: Mapping[str, Any], *keys: str) -> datetime | None:
    for key in keys:
        value = raw.get(key)
        if isinstance(value, datetime):
            return value
        if isinstance(value, str) and value.strip():
            try:
                return datetime.fromisoformat(value.strip())
            except ValueError:
                continue
    return None


def _record_id(raw: Mapping[str, Any]) -> int:
    if not isinstance(raw, Mapping):
        msg = f"Enregistrement invalide (dictionnaire attendu) : {type(raw).__name__}"
        raise ValueError(msg)
    record_id = _int(raw, "id")
    if record_id is None:
        msg = f"Enregistrement sans identifiant : {raw.get('id')!r}"
        raise ValueError(msg)
    return record_id


def _customer(raw: Mapping[str, Any]) -> Customer:
    return Customer(
        name=_text(raw, "customerName") or WALK_IN_CUSTOMER_NAME,
        phone=_text(raw, "customerPhone"),
        address=_text(raw, "customerAddress"),
        tax_code=_text(raw, "customerTaxCode"),
        email=_text(raw, "customerEmail"),
    )


def _amounts(raw: Mapping[str, Any], key: str) -> Amounts:
    subtotal = _decimal(raw, "subtotal")
    tax = _decimal(raw, "tax")
    discount = max(_decimal(raw, "discount"), _ZERO)
    amounts = Amounts.from_components(subtotal, tax, discount)
    stored_total = raw.get("total")
    if stored_total not in (None, "") and _decimal(raw, "total") != amounts.total:
        logger.warning(
            "%s : total stocké %s incohérent, total recalculé %s",
            key,
            stored_total,
            amounts.total,
        )
    return amounts


def _einvoice_status(raw: Mapping[str, Any], key: str) -> EInvoiceStatus:
    code = _int(raw, "einvoiceStatus")
    if code is None:
        return EInvoiceStatus.UNISSUED
    try:
        return EInvoiceStatus(code)
    except ValueError:
        logger.warning("%s : statut de facture électronique inconnu %r", key, code)
        return EInvoiceStatus.UNISSUED


def _identity(raw: Mapping[str, Any]) -> InvoiceIdentity:
    return InvoiceIdentity(
        invoice_number=_text(raw, "invoiceNumber"),
        symbol=_text(raw, "symbol"),
        template_number=_text(raw, "templateNumber"),
        trade_number=_text(raw, "tradeNumber"),
    )


def _line_items(raw: Mapping[str, Any]) -> tuple[LineItem, ...] | None:
    items = raw.get("items")
    if not isinstance(items, list):
        return None
    return tuple(normalize_line_item(item) for item in items if isinstance(item, Mapping))


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------


def normalize_line_item(raw: Mapping[str, Any]) -> LineItem:
    """Normalise une ligne d'article de commande ou de facture."""
    return LineItem(
        product_id=_int(raw, "productId"),
        product_name=_text(raw, "productName") or _text(raw, "name") or "",
        sku=_text(raw, "sku"),
        quantity=_decimal(raw, "quantity", Decimal("1")),
        unit_price=_decimal(raw, "unitPrice"),
        tax_rate=max(_decimal(raw, "taxRate"), _ZERO),
        total=_decimal(raw, "total"),
    )


def normalize_order(raw: Mapping[str, Any]) -> Transaction:
    """Normalise une commande en salle.

    FR: Le statut textuel est conservé tel quel dans `local_status` ;
        un statut non reconnu s'affiche EN_COURS.
    EN: The textual status is kept verbatim; unknown values display as
        IN_PROGRESS.
    """
    record_id = _record_id(raw)
    key = f"{SourceType.ORDER.value}#{record_id}"
    status = _text(raw, "status") or ""
    return Transaction(
        id=record_id,
        source_type=SourceType.ORDER,
        display_number=_text(raw, "orderNumber") or fallback_display_number(record_id),
        date=_datetime(raw, "orderedAt", "createdAt"),
        customer=_customer(raw),
        amounts=_amounts(raw, key),
        local_status=status.lower(),
        display_status=resolve_display_status(SourceType.ORDER, status.lower()),
        einvoice_status=_einvoice_status(raw, key),
        invoice_identity=_identity(raw),
        payment_method=raw.get("paymentMethod"),
        notes=_text(raw, "notes"),
        line_items=_line_items(raw),
    )


def normalize_invoice(raw: Mapping[str, Any]) -> Transaction:
    """Normalise une facture de vente.

    FR: `invoiceStatus` absent vaut TERMINEE (1). Le code d'affichage
        préfère le numéro de transaction commerciale, puis le numéro de
        facture.
    EN: Missing `invoiceStatus` means COMPLETED. The display number
        prefers the trade number, then the invoice number.
    """
    record_id = _record_id(raw)
    key = f"{SourceType.INVOICE.value}#{record_id}"
    status = _int(raw, "invoiceStatus")
    if status is None:
        status = int(InvoiceStatus.COMPLETED)
    return Transaction(
        id=record_id,
        source_type=SourceType.INVOICE,
        display_number=(
            _text(raw, "tradeNumber")
            or _text(raw, "invoiceNumber")
            or fallback_display_number(record_id)
        ),
        date=_datetime(raw, "invoiceDate", "createdAt"),
        customer=_customer(raw),
        amounts=_amounts(raw, key),
        local_status=status,
        display_status=resolve_display_status(SourceType.INVOICE, status),
        einvoice_status=_einvoice_status(raw, key),
        invoice_identity=_identity(raw),
        payment_method=raw.get("paymentMethod"),
        notes=_text(raw, "notes"),
        line_items=_line_items(raw),
    )


_NORMALIZERS = {
    SourceType.ORDER: normalize_order,
    SourceType.INVOICE: normalize_invoice,
}


def normalize(raw: Mapping[str, Any], source_type: SourceType | str) -> Transaction:
    """Normalise un enregistrement brut selon sa ressource d'origine.

    Raises:
        ValueError: Si l'enregistrement n'est pas un dictionnaire ou n'a
            pas d'identifiant exploitable.
    """
    return _NORMALIZERS[SourceType(source_type)](raw)


# ---------------------------------------------------------------------------
# Sens inverse : transaction → enregistrement brut
# ---------------------------------------------------------------------------


def _money(value: Decimal) -> str:
    try:
        return str(value.quantize(_CENT))
    except InvalidOperation as exc:
        msg = f"Montant hors limites : {value}"
        raise ValueError(msg) from exc


def to_invoice_record(transaction: Transaction) -> dict[str, Any]:
    """Enregistrement complet d'une facture, pour une mise à jour intégrale."""
    if transaction.source_type != SourceType.INVOICE:
        msg = f"{transaction.key} n'est pas une facture"
        raise ValueError(msg)
    identity = transaction.invoice_identity
    customer = transaction.customer
    return {
        "id": transaction.id,
        "invoiceNumber": identity.invoice_number,
        "tradeNumber": identity.trade_number,
        "templateNumber": identity.template_number,
        "symbol": identity.symbol,
        "customerName": customer.name,
        "customerTaxCode": customer.tax_code,
        "customerAddress": customer.address,
        "customerPhone": customer.phone,
        "customerEmail": customer.email,
        "subtotal": _money(transaction.amounts.subtotal),
        "tax": _money(transaction.amounts.tax),
        "total": _money(transaction.amounts.total),
        "paymentMethod": transaction.payment_method,
        "invoiceDate": transaction.date.isoformat() if transaction.date else None,
        "invoiceStatus": int(transaction.local_status),
        "einvoiceStatus": int(transaction.einvoice_status),
        "notes": transaction.notes,
    }


def to_order_record(transaction: Transaction) -> dict[str, Any]:
    """Champs d'une commande modifiables par mise à jour partielle."""
    if transaction.source_type != SourceType.ORDER:
        msg = f"{transaction.key} n'est pas une commande"
        raise ValueError(msg)
    identity = transaction.invoice_identity
    customer = transaction.customer
    record: dict[str, Any] = {
        "customerName": customer.name,
        "customerPhone": customer.phone,
        "customerAddress": customer.address,
        "customerTaxCode": customer.tax_code,
        "customerEmail": customer.email,
        "subtotal": _money(transaction.amounts.subtotal),
        "tax": _money(transaction.amounts.tax),
        "total": _money(transaction.amounts.total),
        "status": str(transaction.local_status),
        "einvoiceStatus": int(transaction.einvoice_status),
        "invoiceNumber": identity.invoice_number,
        "symbol": identity.symbol,
        "templateNumber": identity.template_number,
        "tradeNumber": identity.trade_number,
        "notes": transaction.notes,
    }
    if transaction.display_number != fallback_display_number(transaction.id):
        record["orderNumber"] = transaction.display_number
    return record

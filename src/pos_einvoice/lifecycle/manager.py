"""Machines à états des transactions : statut local et facture électronique.

FR: Deux machines indépendantes évoluent en parallèle sur chaque transaction :
    - le statut local (projeté en statut d'affichage), piloté par les
      actions `pay` et `cancel` ;
    - le statut de facture électronique, piloté uniquement de l'extérieur
      par le résultat d'une publication réussie.
    Toutes les fonctions sont pures : elles valident et renvoient une copie,
    sans jamais modifier la transaction reçue ni écrire dans le stockage.
EN: Two independent machines run side by side on each transaction: the
    local status (projected to a display status) driven by `pay`/`cancel`,
    and the e-invoice status, driven only by a successful publish result.
    All functions are pure.
"""

from __future__ import annotations

from typing import Any, NamedTuple

from pos_einvoice.lifecycle.errors import (
    AlreadyCancelledError,
    IllegalTransitionError,
    ReadOnlyFieldError,
    UnsupportedTransitionError,
)
from pos_einvoice.models.enums import (
    DisplayStatus,
    EInvoiceStatus,
    InvoiceStatus,
    LifecycleAction,
    OrderStatus,
    SourceType,
)
from pos_einvoice.models.results import ProviderReceipt
from pos_einvoice.models.transaction import Transaction, TransactionKey

# ---------------------------------------------------------------------------
# Projection des statuts locaux
# ---------------------------------------------------------------------------

ORDER_DISPLAY_STATUS: dict[OrderStatus, DisplayStatus] = {
    OrderStatus.PENDING: DisplayStatus.IN_PROGRESS,
    OrderStatus.CONFIRMED: DisplayStatus.IN_PROGRESS,
    OrderStatus.PREPARING: DisplayStatus.IN_PROGRESS,
    OrderStatus.PAID: DisplayStatus.COMPLETED,
    OrderStatus.CANCELLED: DisplayStatus.CANCELLED,
}

INVOICE_DISPLAY_STATUS: dict[InvoiceStatus, DisplayStatus] = {
    InvoiceStatus.COMPLETED: DisplayStatus.COMPLETED,
    InvoiceStatus.IN_SERVICE: DisplayStatus.IN_PROGRESS,
    InvoiceStatus.CANCELLED: DisplayStatus.CANCELLED,
}

# ---------------------------------------------------------------------------
# Graphe des transitions locales
# ---------------------------------------------------------------------------

DISPLAY_TRANSITIONS: dict[DisplayStatus, dict[LifecycleAction, DisplayStatus]] = {
    DisplayStatus.IN_PROGRESS: {
        LifecycleAction.PAY: DisplayStatus.COMPLETED,
        LifecycleAction.CANCEL: DisplayStatus.CANCELLED,
    },
    DisplayStatus.COMPLETED: {
        LifecycleAction.CANCEL: DisplayStatus.CANCELLED,
    },
    # Terminal
    DisplayStatus.CANCELLED: {},
}

TERMINAL_DISPLAY_STATUSES: frozenset[DisplayStatus] = frozenset(
    status for status, actions in DISPLAY_TRANSITIONS.items() if not actions
)

# Code natif écrit dans la ressource pour chaque (ressource, action)
_NATIVE_TARGETS: dict[tuple[SourceType, LifecycleAction], OrderStatus | InvoiceStatus] = {
    (SourceType.ORDER, LifecycleAction.PAY): OrderStatus.PAID,
    (SourceType.ORDER, LifecycleAction.CANCEL): OrderStatus.CANCELLED,
    (SourceType.INVOICE, LifecycleAction.PAY): InvoiceStatus.COMPLETED,
    (SourceType.INVOICE, LifecycleAction.CANCEL): InvoiceStatus.CANCELLED,
}

# ---------------------------------------------------------------------------
# Facture électronique
# ---------------------------------------------------------------------------


class EInvoiceStatusInfo(NamedTuple):
    """Métadonnées d'un statut de facture électronique."""

    label: str
    issued: bool = False
    """Famille « émise » : montants en lecture seule."""


EINVOICE_STATUS_METADATA: dict[EInvoiceStatus, EInvoiceStatusInfo] = {
    EInvoiceStatus.UNISSUED: EInvoiceStatusInfo("Chưa phát hành"),
    EInvoiceStatus.ISSUED: EInvoiceStatusInfo("Đã phát hành", issued=True),
    EInvoiceStatus.DRAFT_CREATED: EInvoiceStatusInfo("Tạo nháp"),
    EInvoiceStatus.APPROVED: EInvoiceStatusInfo("Đã duyệt", issued=True),
    EInvoiceStatus.REPLACED: EInvoiceStatusInfo("Đã bị thay thế (hủy)"),
    EInvoiceStatus.TEMP_REPLACEMENT: EInvoiceStatusInfo("Thay thế tạm"),
    EInvoiceStatus.REPLACEMENT: EInvoiceStatusInfo("Thay thế", issued=True),
    EInvoiceStatus.ADJUSTED: EInvoiceStatusInfo("Đã bị điều chỉnh"),
    EInvoiceStatus.TEMP_ADJUSTMENT: EInvoiceStatusInfo("Điều chỉnh tạm"),
    EInvoiceStatus.ADJUSTMENT: EInvoiceStatusInfo("Điều chỉnh", issued=True),
    EInvoiceStatus.CANCELLED: EInvoiceStatusInfo("Đã hủy"),
}

ISSUED_EINVOICE_STATUSES: frozenset[EInvoiceStatus] = frozenset(
    status for status, info in EINVOICE_STATUS_METADATA.items() if info.issued
)

# Cibles atteignables uniquement par le résultat d'une publication
EINVOICE_TRANSITIONS: dict[EInvoiceStatus, list[EInvoiceStatus]] = {
    EInvoiceStatus.UNISSUED: [
        EInvoiceStatus.ISSUED,
        EInvoiceStatus.DRAFT_CREATED,
        EInvoiceStatus.APPROVED,
        EInvoiceStatus.REPLACEMENT,
        EInvoiceStatus.ADJUSTMENT,
    ],
}

# Remplacement / rectification / annulation : documentés, non implémentés
EINVOICE_EXTENSION_TRANSITIONS: dict[EInvoiceStatus, list[EInvoiceStatus]] = {
    status: [
        EInvoiceStatus.REPLACED,
        EInvoiceStatus.ADJUSTED,
        EInvoiceStatus.CANCELLED,
    ]
    for status in ISSUED_EINVOICE_STATUSES
}


class PlannedTransition(NamedTuple):
    """Transition locale validée, prête à être écrite."""

    key: TransactionKey
    action: LifecycleAction
    source: DisplayStatus
    target: DisplayStatus
    local_status: OrderStatus | InvoiceStatus
    changes: dict[str, Any]
    """Champs bruts à écrire dans la ressource d'origine."""


def resolve_display_status(
    source_type: SourceType,
    local_status: str | int | None,
) -> DisplayStatus:
    """Projette un statut local natif vers le statut d'affichage.

    FR: Commandes : statut non reconnu → EN_COURS. Factures : statut absent
        ou non reconnu → TERMINEE.
    EN: Orders: unknown status → IN_PROGRESS. Invoices: missing or unknown
        status → COMPLETED.
    """
    if source_type == SourceType.ORDER:
        try:
            return ORDER_DISPLAY_STATUS[OrderStatus(local_status)]
        except ValueError:
            return DisplayStatus.IN_PROGRESS
    try:
        return INVOICE_DISPLAY_STATUS[InvoiceStatus(local_status)]
    except ValueError:
        return DisplayStatus.COMPLETED


def can_transition(transaction: Transaction, action: LifecycleAction | str) -> bool:
    """Vérifie si l'action est autorisée depuis le statut d'affichage courant."""
    action = LifecycleAction(action)
    return action in DISPLAY_TRANSITIONS[transaction.display_status]


def is_terminal(transaction: Transaction) -> bool:
    """Vérifie si la transaction est dans un état terminal (annulée)."""
    return transaction.display_status in TERMINAL_DISPLAY_STATUSES


def plan_transition(
    transaction: Transaction,
    action: LifecycleAction | str,
) -> PlannedTransition:
    """Valide une action et calcule l'écriture correspondante.

    Args:
        transaction: Instantané courant.
        action: `pay` (alias `complete`) ou `cancel`.

    Returns:
        La transition planifiée, avec les champs bruts à écrire.

    Raises:
        AlreadyCancelledError: Si la transaction est déjà annulée.
        IllegalTransitionError: Si l'action est interdite depuis l'état courant.
    """
    action = LifecycleAction(action)
    source = transaction.display_status

    if source == DisplayStatus.CANCELLED:
        msg = f"Transaction {transaction.key} déjà annulée."
        raise AlreadyCancelledError(msg)

    allowed = DISPLAY_TRANSITIONS[source]
    if action not in allowed:
        msg = (
            f"Transition non autorisée : {source.value} --{action.value}--> ?. "
            f"Actions possibles : {[a.value for a in allowed]}"
        )
        raise IllegalTransitionError(msg)

    local_status = _NATIVE_TARGETS[(transaction.source_type, action)]
    if transaction.source_type == SourceType.ORDER:
        changes: dict[str, Any] = {"status": local_status.value}
    else:
        changes = {"invoiceStatus": int(local_status)}

    return PlannedTransition(
        key=transaction.key,
        action=action,
        source=source,
        target=allowed[action],
        local_status=local_status,
        changes=changes,
    )


def apply_transition(transaction: Transaction, plan: PlannedTransition) -> Transaction:
    """Renvoie la copie de la transaction après la transition planifiée."""
    if plan.key != transaction.key:
        msg = f"Transition prévue pour {plan.key}, reçue pour {transaction.key}"
        raise IllegalTransitionError(msg)
    return transaction.model_copy(
        update={
            "local_status": plan.local_status,
            "display_status": plan.target,
        }
    )


def is_amounts_read_only(transaction: Transaction) -> bool:
    """Les montants sont figés dès que la facture est dans la famille émise."""
    return transaction.einvoice_status in ISSUED_EINVOICE_STATUSES


def issue_einvoice(transaction: Transaction, receipt: ProviderReceipt) -> Transaction:
    """Applique le résultat d'une publication réussie.

    FR: Seule fonction qui fait quitter le statut NON_EMISE. Fixe le statut
        à ÉMISE, reporte numéro, symbole et modèle. Pour les commandes, le
        numéro de transaction commerciale est attribué s'il est absent ; les
        factures conservent le leur.
    EN: The only function moving a transaction off UNISSUED. Orders get a
        trade number if they have none; invoices keep theirs.

    Raises:
        IllegalTransitionError: Si la facture électronique n'est pas NON_EMISE.
    """
    current = transaction.einvoice_status
    if EInvoiceStatus.ISSUED not in EINVOICE_TRANSITIONS.get(current, []):
        msg = (
            f"Transaction {transaction.key} : facture électronique déjà au statut "
            f"{current.value} ({current.name}), émission impossible."
        )
        raise IllegalTransitionError(msg)

    identity = transaction.invoice_identity
    trade_number = identity.trade_number
    if transaction.source_type == SourceType.ORDER and not trade_number:
        trade_number = receipt.invoice_number

    return transaction.model_copy(
        update={
            "einvoice_status": EInvoiceStatus.ISSUED,
            "invoice_identity": identity.model_copy(
                update={
                    "invoice_number": receipt.invoice_number,
                    "symbol": receipt.symbol or identity.symbol,
                    "template_number": receipt.template_number or identity.template_number,
                    "trade_number": trade_number,
                }
            ),
        }
    )


def request_einvoice_transition(
    transaction: Transaction,
    target: EInvoiceStatus | int,
) -> Transaction:
    """Demande directe de changement de statut de facture électronique.

    FR: Toujours refusée. Les statuts de la famille émise ne s'obtiennent
        que par `issue_einvoice` (publication) ; le remplacement et la
        rectification sont un point d'extension non implémenté.
    EN: Always refused: issued statuses come only from a publish, and
        replace/adjust edges are an unimplemented extension point.

    Raises:
        UnsupportedTransitionError: Pour un remplacement/rectification/annulation.
        IllegalTransitionError: Pour toute autre cible.
    """
    target = EInvoiceStatus(target)
    current = transaction.einvoice_status
    if target in EINVOICE_EXTENSION_TRANSITIONS.get(current, []):
        msg = (
            f"Transition {current.name} → {target.name} non prise en charge "
            f"(remplacement/rectification non implémentés)."
        )
        raise UnsupportedTransitionError(msg)
    if target in EINVOICE_TRANSITIONS.get(current, []):
        msg = (
            f"Le statut {target.name} ne peut être atteint que par une "
            f"publication réussie auprès du fournisseur."
        )
        raise IllegalTransitionError(msg)
    msg = f"Transition non autorisée : {current.name} → {target.name}."
    raise IllegalTransitionError(msg)


def guard_edit(before: Transaction, after: Transaction) -> list[str]:
    """Vérifie qu'une modification manuelle respecte les invariants.

    FR: Refuse les modifications de clé, de statuts (locaux ou facture
        électronique), de l'identité de facture attribuée par le
        fournisseur, d'un numéro de transaction commerciale déjà attribué,
        et des montants d'une facture de la famille émise.
    EN: Rejects edits to the key, statuses, provider-assigned identity, an
        already assigned trade number, and amounts of an issued e-invoice.

    Returns:
        Les noms des champs modifiés.

    Raises:
        ReadOnlyFieldError: Si un champ en lecture seule est modifié.
    """
    changed = [
        name
        for name in Transaction.model_fields
        if getattr(before, name) != getattr(after, name)
    ]
    refused: list[str] = []

    for name in ("id", "source_type", "local_status", "display_status", "einvoice_status"):
        if name in changed:
            refused.append(name)

    if "invoice_identity" in changed:
        old, new = before.invoice_identity, after.invoice_identity
        for field in ("invoice_number", "symbol", "template_number"):
            if getattr(old, field) != getattr(new, field):
                refused.append(f"invoice_identity.{field}")
        if old.trade_number and old.trade_number != new.trade_number:
            refused.append("invoice_identity.trade_number")

    if "amounts" in changed and is_amounts_read_only(before):
        refused.append("amounts")

    if refused:
        msg = f"Champs en lecture seule pour {before.key} : {', '.join(refused)}"
        raise ReadOnlyFieldError(msg, fields=refused)

    return changed

"""Énumérations des statuts de vente et de facture électronique.

FR: Codes canoniques des deux domaines de statut (statut local des
    commandes/factures, statut de la facture électronique) tels qu'ils
    circulent entre le POS, la base et le fournisseur de factures
    électroniques. Les valeurs sont figées : elles doivent rester
    identiques au bit près pour la compatibilité.
EN: Canonical codes for both status domains (local order/invoice status,
    e-invoice status) as exchanged between the POS, the database and the
    e-invoice provider. Values are wire-exact.
"""

from enum import IntEnum, StrEnum


class SourceType(StrEnum):
    """Ressource d'origine d'une transaction.

    FR: Détermine quelle ressource reçoit les écritures. Ne change jamais
        après la création de la transaction.
    EN: Determines which backend resource receives writes.
    """

    ORDER = "order"
    """Commande en salle (ticket ouvert) / In-store order tab"""

    INVOICE = "invoice"
    """Facture de vente finalisée / Finalized sales invoice"""


class DisplayStatus(StrEnum):
    """Statut d'affichage commun aux commandes et aux factures.

    FR: Projection à trois valeurs des statuts locaux des deux ressources.
    EN: Shared three-value projection of both local status domains.
    """

    COMPLETED = "completed"
    """Terminée (payée ou facturée) / Completed"""

    IN_PROGRESS = "in_progress"
    """En cours de service / In progress"""

    CANCELLED = "cancelled"
    """Annulée / Cancelled"""


class OrderStatus(StrEnum):
    """Statut textuel d'une commande.

    FR: Valeurs stockées dans la colonne `status` de la table des commandes.
    EN: Values stored in the orders `status` column.
    """

    PENDING = "pending"
    """En attente / Pending"""

    CONFIRMED = "confirmed"
    """Confirmée / Confirmed"""

    PREPARING = "preparing"
    """En préparation / Preparing"""

    PAID = "paid"
    """Payée / Paid"""

    CANCELLED = "cancelled"
    """Annulée / Cancelled"""


class InvoiceStatus(IntEnum):
    """Statut local d'une facture de vente (`invoiceStatus`).

    FR: Statut interne au POS, indépendant du statut de facture électronique.
    EN: POS-internal status, independent of the e-invoice status.
    """

    COMPLETED = 1
    """Hoàn thành, terminée / Completed"""

    IN_SERVICE = 2
    """Đang phục vụ, en service / In service"""

    CANCELLED = 3
    """Đã hủy, annulée / Cancelled"""


class EInvoiceStatus(IntEnum):
    """Statut de la facture électronique (`einvoiceStatus`).

    FR: Cycle de vie gouverné par l'autorité fiscale via le fournisseur.
        Seule une publication réussie fait quitter l'état NON_EMISE.
    EN: Lifecycle governed by the tax authority through the provider.
        Only a successful publish moves a record off UNISSUED.
    """

    UNISSUED = 0
    """Chưa phát hành, non émise / Not issued"""

    ISSUED = 1
    """Đã phát hành, émise / Issued"""

    DRAFT_CREATED = 2
    """Tạo nháp, brouillon créé / Draft created"""

    APPROVED = 3
    """Đã duyệt, approuvée / Approved"""

    REPLACED = 4
    """Đã bị thay thế (hủy), remplacée, annulée / Replaced (voided)"""

    TEMP_REPLACEMENT = 5
    """Thay thế tạm, remplacement provisoire / Temporary replacement"""

    REPLACEMENT = 6
    """Thay thế, facture de remplacement / Replacement"""

    ADJUSTED = 7
    """Đã bị điều chỉnh, rectifiée, annulée / Adjusted (voided)"""

    TEMP_ADJUSTMENT = 8
    """Điều chỉnh tạm, rectification provisoire / Temporary adjustment"""

    ADJUSTMENT = 9
    """Điều chỉnh, facture rectificative / Adjustment"""

    CANCELLED = 10
    """Đã hủy, annulée / Cancelled"""


class LifecycleAction(StrEnum):
    """Transition locale demandée par son nom.

    FR: `complete` est accepté comme alias de `pay`.
    EN: `complete` is accepted as an alias of `pay`.
    """

    PAY = "pay"
    """Encaissement / Payment completion"""

    CANCEL = "cancel"
    """Annulation / Cancellation"""

    @classmethod
    def _missing_(cls, value: object) -> "LifecycleAction | None":
        if value == "complete":
            return cls.PAY
        return None


class EInvoiceProvider(IntEnum):
    """Logiciel de facturation électronique (identifiant `providerId`).

    FR: Identifiants attendus par le proxy de publication.
    EN: Identifiers expected by the publish proxy.
    """

    EASY_INVOICE = 1
    VN_INVOICE = 2
    FPT_INVOICE = 3
    MIFI_INVOICE = 4
    EHOADON = 5
    BKAV_INVOICE = 6
    M_INVOICE = 7
    S_INVOICE = 8
    WIN_INVOICE = 9

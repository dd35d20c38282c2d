"""Résultats typés des opérations de mutation.

FR: Les workflows et le coordinateur ne propagent pas d'exception au-delà
    de leur frontière : chaque opération renvoie un résultat qui porte soit
    le nouvel instantané de la transaction, soit une erreur typée.
EN: Workflows and the coordinator never raise past their boundary: every
    operation returns a result carrying either the new snapshot or a typed
    error.
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, computed_field

from pos_einvoice.models.transaction import Transaction, TransactionKey


class ErrorKind(StrEnum):
    """Famille d'erreur.

    FR: `validation` et `provider` sont récupérables sans changement d'état ;
        `persistence` peut survenir après une publication réussie.
    EN: `validation` and `provider` leave state untouched; `persistence`
        may follow a successful publish.
    """

    VALIDATION = "validation"
    PROVIDER = "provider"
    PERSISTENCE = "persistence"


class ErrorCode(StrEnum):
    """Code d'erreur détaillé."""

    ALREADY_PUBLISHED = "already_published"
    NO_LINE_ITEMS = "no_line_items"
    TRANSACTION_CANCELLED = "transaction_cancelled"
    ALREADY_CANCELLED = "already_cancelled"
    ILLEGAL_TRANSITION = "illegal_transition"
    READ_ONLY_FIELD = "read_only_field"
    INVALID_FIELD = "invalid_field"
    PROVIDER_REJECTED = "provider_rejected"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    STORE_READ_FAILED = "store_read_failed"
    STORE_WRITE_FAILED = "store_write_failed"
    NOT_RECORDED_LOCALLY = "not_recorded_locally"
    UNEXPECTED_ERROR = "unexpected_error"


class OperationError(BaseModel):
    """Erreur typée renvoyée par une opération."""

    kind: ErrorKind
    code: ErrorCode
    message: str
    details: list[str] = Field(default_factory=list)


class OperationResult(BaseModel):
    """Résultat d'une opération sur une transaction.

    FR: `ok` vaut True si et seulement si `error` est absent. `value` est
        l'instantané de la transaction après l'opération.
    EN: `ok` is True iff `error` is None. `value` is the post-operation
        snapshot.
    """

    key: TransactionKey
    value: Transaction | None = None
    error: OperationError | None = None
    skipped: bool = Field(
        default=False,
        description=(
            "Aucune écriture émise (déjà dans l'état cible) / "
            "No write issued (already in target state)"
        ),
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(
        cls,
        key: TransactionKey,
        value: Transaction | None,
        *,
        skipped: bool = False,
    ) -> "OperationResult":
        return cls(key=key, value=value, skipped=skipped)

    @classmethod
    def failure(
        cls,
        key: TransactionKey,
        kind: ErrorKind,
        code: ErrorCode,
        message: str,
        details: list[str] | None = None,
    ) -> "OperationResult":
        return cls(
            key=key,
            error=OperationError(
                kind=kind, code=code, message=message, details=details or []
            ),
        )


class ProviderReceipt(BaseModel):
    """Identifiants attribués par le fournisseur après publication.

    FR: Seule preuve acceptée par la machine à états pour faire quitter
        le statut NON_EMISE à une transaction.
    EN: The only proof the state machine accepts to move a transaction
        off UNISSUED.
    """

    invoice_number: str
    symbol: str | None = None
    template_number: str | None = None
    raw_response: dict[str, Any] | None = None


class PublishResult(OperationResult):
    """Résultat d'une publication de facture électronique.

    FR: `requires_manual_reconciliation` n'est vrai que dans l'état
        « publiée chez le fournisseur mais non enregistrée localement ».
        Dans ce cas `receipt` porte les identifiants à ressaisir.
    EN: `requires_manual_reconciliation` is only True in the split-brain
        state; `receipt` then holds the identifiers to reconcile.
    """

    receipt: ProviderReceipt | None = None
    transaction_ref: str | None = Field(
        default=None,
        description=(
            "Jeton d'idempotence envoyé au fournisseur (non stocké) / "
            "Idempotency token sent to the provider (not stored)"
        ),
    )
    requires_manual_reconciliation: bool = False


class BulkItemResult(BaseModel):
    """Résultat unitaire d'une opération groupée."""

    key: TransactionKey
    success: bool
    skipped: bool = False
    error: OperationError | None = None
    value: Transaction | None = None

    @classmethod
    def from_result(cls, result: OperationResult) -> "BulkItemResult":
        return cls(
            key=result.key,
            success=result.ok,
            skipped=result.skipped,
            error=result.error,
            value=result.value,
        )


class BulkReport(BaseModel):
    """Rapport d'une opération groupée, un résultat par élément demandé.

    FR: Un rapport dont certains éléments ont échoué est l'échec partiel
        structuré : ce n'est pas une exception.
    EN: A report with some failed items is the structured partial batch
        failure, not an exception.
    """

    results: list[BulkItemResult] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def failed_keys(self) -> list[TransactionKey]:
        return [r.key for r in self.results if not r.success]

    @property
    def is_partial_failure(self) -> bool:
        """Au moins un succès et au moins un échec."""
        return self.succeeded > 0 and self.failed > 0

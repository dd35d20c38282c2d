"""Hiérarchie d'exceptions de la machine à états.

FR: Levées par les fonctions de transition ; les workflows les convertissent
    en résultats typés à leur frontière. Elles héritent de ValueError,
    comme les erreurs de transition historiques.
EN: Raised by transition functions; workflows convert them to typed
    results at their boundary.
"""


class LifecycleError(ValueError):
    """Erreur de base pour les transitions de cycle de vie."""


class AlreadyCancelledError(LifecycleError):
    """La transaction est déjà annulée.

    FR: Pour une annulation, l'appelant traite ce cas comme un succès
        idempotent sans écriture.
    EN: For a cancel, callers treat this as an idempotent success.
    """


class IllegalTransitionError(LifecycleError):
    """Transition non autorisée depuis l'état courant."""


class UnsupportedTransitionError(LifecycleError):
    """Transition documentée mais non implémentée (remplacement, rectification).

    FR: Les transitions de remplacement/rectification/annulation de la
        facture électronique sont un point d'extension sans déclencheur
        défini.
    EN: E-invoice replace/adjust/cancel edges are an extension point with
        no defined trigger.
    """


class ReadOnlyFieldError(LifecycleError):
    """Modification d'un champ en lecture seule.

    FR: Montants d'une facture émise, identité de facture publiée, statuts
        modifiés hors transition.
    EN: Amounts of an issued e-invoice, published identity, statuses
        changed outside a transition.
    """

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.fields: list[str] = fields or []

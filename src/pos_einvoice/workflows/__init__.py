"""Workflows de mutation : transitions groupées, publication, modification.

FR: Chaque opération renvoie un résultat typé ; aucune exception de
    validation, de fournisseur ou de stockage ne sort de ces workflows.
EN: Every operation returns a typed result.
"""

from pos_einvoice.workflows.bulk import BulkOperationCoordinator, Target
from pos_einvoice.workflows.editing import EditWorkflow, apply_changes
from pos_einvoice.workflows.publish import (
    DEFAULT_TEMPLATE,
    LineAmounts,
    PublishSettings,
    PublishWorkflow,
    round_units,
)

__all__ = [
    "DEFAULT_TEMPLATE",
    "BulkOperationCoordinator",
    "EditWorkflow",
    "LineAmounts",
    "PublishSettings",
    "PublishWorkflow",
    "Target",
    "apply_changes",
    "round_units",
]

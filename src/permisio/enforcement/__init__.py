"""Permission evaluation.

Defines:
- PermissionEvaluator: single checks, fail-fast checks and effective permissions
- BulkEvaluator: sequential batches with per-item failure isolation
"""

from .bulk import BulkEvaluator
from .evaluator import PermissionEvaluator, as_principal, as_resource

__all__ = [
    "BulkEvaluator",
    "PermissionEvaluator",
    "as_principal",
    "as_resource",
]

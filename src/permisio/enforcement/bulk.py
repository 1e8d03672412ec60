"""Sequential evaluation of independent permission checks."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..exceptions import PermisError
from ..models import CheckRequest, Decision
from .evaluator import PermissionEvaluator, as_resource

logger = logging.getLogger(__name__)


class BulkEvaluator:
    """Runs a batch of checks one after another.

    A failure in one check becomes a negative decision for that check only;
    the rest of the batch still runs. Cancellation stops the whole batch.
    """

    def __init__(self, evaluator: PermissionEvaluator) -> None:
        self._evaluator = evaluator

    async def evaluate_batch(self, checks: Iterable[CheckRequest]) -> list[Decision]:
        """Evaluate every check, returning one decision per input in order."""
        decisions: list[Decision] = []

        for check in checks:
            resource = as_resource(check.resource)
            if check.tenant:
                resource = resource.model_copy(update={"tenant": check.tenant})

            try:
                decision = await self._evaluator.evaluate(check.user, check.action, resource)
            except PermisError as e:
                logger.debug("Bulk check for %s failed: %s", check.action, e)
                decision = Decision(allowed=False, reason=str(e))

            decisions.append(decision)

        return decisions


__all__ = ["BulkEvaluator"]

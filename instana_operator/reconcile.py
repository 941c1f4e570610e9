"""Outcome of a single reconcile step: a final result, a failure, or go on."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ReconcileResult:
    """What the controller reports back after a reconcile."""

    requeue: bool = False
    requeue_after: float = 0.0


@dataclass(frozen=True)
class ReconcileReturn:
    """Either ends the reconcile (with a result or an error) or lets it continue."""

    result: ReconcileResult | None = None
    error: BaseException | None = None

    def supplies_reconcile_result(self) -> bool:
        """True when this step ends the reconcile."""
        return self.result is not None or self.error is not None

    def reconcile_result(self) -> ReconcileResult:
        """The final result; raises the recorded error for a failure."""
        if self.error is not None:
            raise self.error
        if self.result is not None:
            return self.result
        return ReconcileResult()


def reconcile_success(result: ReconcileResult) -> ReconcileReturn:
    return ReconcileReturn(result=result)


def reconcile_failure(error: BaseException) -> ReconcileReturn:
    return ReconcileReturn(error=error)


def reconcile_continue() -> ReconcileReturn:
    return ReconcileReturn()
"""
Sequential batch runner shared by the ingestion and generation pipelines.

Work items are processed strictly one at a time, in order:

  publish progress (i of n)
    → precheck(item)            local checks, no network
      → pause                   only between submissions, never before the first
        → submit(item)          the remote call
          → outcome             (item, Result) appended in order

A failing precheck records its outcome and moves on without pausing or
submitting. The first AUTHENTICATION_ERROR outcome stops the run: nothing
after it is prechecked or submitted. An exception raised by `submit` becomes
a TECHNICAL_ERROR outcome for that item and the run carries on.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog
from railway import ErrorCode
from railway.failure import FailureDescription
from railway.result import Result

from battery_certs.domain.models import IDLE, Progress

T = TypeVar("T")
U = TypeVar("U")

log = structlog.get_logger()


class ProgressTracker:
    """
    Observable batch progress.

    `current` is updated before an item's work begins, so observers never
    see a stale label while the previous item is still in flight.
    """

    def __init__(self) -> None:
        self._current = IDLE
        self._observers: list[Callable[[Progress], None]] = []

    @property
    def current(self) -> Progress:
        return self._current

    def subscribe(self, observer: Callable[[Progress], None]) -> None:
        self._observers.append(observer)

    def publish(self, progress: Progress) -> None:
        self._current = progress
        for observer in self._observers:
            observer(progress)

    def reset(self) -> None:
        self.publish(IDLE)


@dataclass(frozen=True, slots=True)
class BatchRun(Generic[T, U]):
    """Outcomes of a run, in item order, plus the failure that aborted it (if any)."""

    outcomes: tuple[tuple[T, Result[U]], ...] = ()
    aborted: FailureDescription | None = None
    submissions: int = 0

    @property
    def successes(self) -> list[tuple[T, U]]:
        return [(item, result.value()) for item, result in self.outcomes if result.is_success()]

    @property
    def failures(self) -> list[tuple[T, FailureDescription]]:
        return [(item, result.error()) for item, result in self.outcomes if result.is_failure()]


def run_sequentially(
    items: Sequence[T],
    submit: Callable[[T], Result[U]],
    *,
    describe: Callable[[int, int, T], str],
    precheck: Callable[[T], Result[T]] | None = None,
    pause_seconds: float = 0.0,
    progress: ProgressTracker | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> BatchRun[T, U]:
    """
    Run `submit` over `items` one at a time.

    Args:
        items: Work items, processed in this order.
        submit: The remote call for one item, returning its tagged outcome.
        describe: Builds the progress label from (1-based index, total, item).
        precheck: Optional local validation; a failure skips `submit`.
        pause_seconds: Delay inserted between consecutive submissions.
        progress: Tracker updated before each item starts.
        sleep: Injected for tests.
    """
    outcomes: list[tuple[T, Result[U]]] = []
    submissions = 0
    total = len(items)

    for index, item in enumerate(items, start=1):
        if progress is not None:
            progress.publish(Progress(current=index, total=total, message=describe(index, total, item)))

        checked = precheck(item) if precheck is not None else Result.success(item)
        if checked.is_failure():
            outcomes.append((item, Result.failure_from(checked.error())))
            continue

        if submissions and pause_seconds > 0:
            sleep(pause_seconds)
        outcome = _submit_one(submit, item)
        submissions += 1
        outcomes.append((item, outcome))

        if outcome.is_failure() and outcome.error().is_authentication_failure:
            return BatchRun(outcomes=tuple(outcomes), aborted=outcome.error(), submissions=submissions)

    return BatchRun(outcomes=tuple(outcomes), submissions=submissions)


def _submit_one(submit: Callable[[T], Result[U]], item: T) -> Result[U]:
    """Run one submission; an exception fails this item only."""
    try:
        return submit(item)
    except Exception as e:
        log.exception("batch.item_crashed", item=repr(item), error=str(e))
        return Result.failure(ErrorCode.TECHNICAL_ERROR, f"Unexpected error: {e}", e)

"""
scheduler.py

Serialised, superseding execution of recompute passes.

Every ``request_recompute`` bumps a generation counter and submits a pass to a single-worker
executor, so at most one pass runs at a time.  A pass captures its generation and hands the
compute function a ``cancel_check`` that reports True once a newer generation exists; the compute
function polls it at coarse checkpoints and raises ``PassCancelled`` to abandon its work before
committing anything.  Queued passes that were superseded before starting exit at their first check.

A pass that got past its last checkpoint has already committed the visible set, so its delta is
always delivered, even if a newer request arrived in the meantime: the renderer must see every
committed delta, in commit order.  Delivery runs on one delivery executor (the renderer's
context), never on the worker thread.
"""

import threading
from collections.abc import Callable
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from typing import Any

from mapcluster.exceptions import PassCancelled
from mapcluster.interfaces import DeliveryExecutor
from mapcluster.utils.logging import MapclusterLogger, log_error
from mapcluster.utils.time_measurement import TimeRecorder

logger = MapclusterLogger.get_logger(__name__)

ComputeFn = Callable[[Any, Callable[[], bool]], tuple[list, list]]
CompleteFn = Callable[[list, list], None]


class RecomputeScheduler:
    """Runs one recompute pass at a time; newer requests supersede older ones."""

    def __init__(
        self,
        compute: ComputeFn,
        delivery: DeliveryExecutor | None = None,
        time_recorder: TimeRecorder | None = None,
    ):
        self._compute = compute
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="mapcluster-recompute"
        )
        self._owns_delivery = delivery is None
        self._delivery = delivery or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="mapcluster-delivery"
        )
        self.time_recorder = time_recorder or TimeRecorder()

        self._lock = threading.Lock()
        self._generation = 0
        self._pending: Future | None = None
        self._callbacks: list[CompleteFn] = []
        self._closed = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def on_complete(self, callback: CompleteFn) -> None:
        """Register ``callback(to_add, to_remove)`` for every delivered pass."""
        with self._lock:
            self._callbacks.append(callback)

    def request_recompute(
        self, trigger: Any, completion: Callable[[bool], None] | None = None
    ) -> int:
        """Cancel whatever is in flight and schedule a new pass; returns its generation."""
        with self._lock:
            if self._closed:
                raise RuntimeError("RecomputeScheduler has been shut down")
            self._generation += 1
            generation = self._generation
            self._pending = self._executor.submit(
                self._run_pass, generation, trigger, completion
            )
        logger.debug(f"Scheduled recompute pass {generation}")
        return generation

    def cancel_all(self) -> int:
        """Supersede the in-flight pass without scheduling a new one."""
        with self._lock:
            self._generation += 1
            return self._generation

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until no pass is pending and every delivery has run.

        Meant for tests and batch use; no mutation path calls it.
        """
        while True:
            with self._lock:
                pending = self._pending
            if pending is not None:
                done, _ = wait_futures([pending], timeout=timeout)
                if not done:
                    return False
            with self._lock:
                if self._pending is pending:
                    break
        marker = self._delivery.submit(lambda: None)
        if isinstance(marker, Future):
            done, _ = wait_futures([marker], timeout=timeout)
            return bool(done)
        return True

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            self._closed = True
        self.cancel_all()
        self._executor.shutdown(wait=wait)
        if self._owns_delivery and isinstance(self._delivery, Executor):
            self._delivery.shutdown(wait=wait)

    def __enter__(self) -> "RecomputeScheduler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    # ------------------------------------------------------------------
    # Worker side
    # ------------------------------------------------------------------

    def _run_pass(
        self,
        generation: int,
        trigger: Any,
        completion: Callable[[bool], None] | None,
    ) -> None:
        def cancel_check() -> bool:
            return not self.is_current(generation)

        if cancel_check():
            self._deliver_cancelled(completion)
            return

        try:
            with self.time_recorder.measure("recompute"):
                to_add, to_remove = self._compute(trigger, cancel_check)
        except PassCancelled:
            logger.debug(f"Recompute pass {generation} superseded")
            self._deliver_cancelled(completion)
            return
        except Exception as exc:
            log_error(f"Recompute pass {generation} failed: {exc}")
            logger.debug("Recompute failure details", exc_info=True)
            self._deliver_cancelled(completion)
            return

        self._delivery.submit(self._deliver, generation, to_add, to_remove, completion)

    def _deliver(
        self,
        generation: int,
        to_add: list,
        to_remove: list,
        completion: Callable[[bool], None] | None,
    ) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            try:
                callback(to_add, to_remove)
            except Exception as exc:
                log_error(f"Completion callback failed for pass {generation}: {exc}")
        logger.debug(
            f"Delivered pass {generation}: +{len(to_add)} / -{len(to_remove)}"
        )
        if completion is not None:
            completion(True)

    def _deliver_cancelled(self, completion: Callable[[bool], None] | None) -> None:
        if completion is not None:
            self._delivery.submit(completion, False)

"""Off-thread analysis with stale-result discarding.

Each submission is serialised with ``otcalc.codec`` so it can cross a process
boundary. Request ids grow monotonically; only the result of the latest
submission is handed back, older ones are discarded on collection.
"""
from __future__ import annotations
import itertools
import os
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional

from . import codec
from .analysis import AnalysisAggregator, DateRange
from .context import CalculationContext
from .logging import get_logger
from .models import PersonAnalysis, TimeRecord

logger = get_logger(__name__)


def analyze_snapshot(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Worker entry point: snapshot payload in, dumped analysis out."""

    records, context, date_range = codec.load_snapshot_payload(payload)
    return codec.dump_analysis(AnalysisAggregator(context).run(records, date_range))


class AnalysisWorker:
    def __init__(self, max_workers: Optional[int] = None, use_processes: bool = True) -> None:
        self.max_workers = max_workers or max(1, (os.cpu_count() or 2) - 1)
        self.use_processes = use_processes
        self._executor: Optional[Executor] = None
        self._fallback = False
        self._ids = itertools.count(1)
        self._latest = 0
        self._pending: Dict[int, Future] = {}

    @property
    def latest_request_id(self) -> int:
        return self._latest

    @property
    def in_process(self) -> bool:
        return self._fallback

    def _get_executor(self) -> Optional[Executor]:
        if self._executor is None and not self._fallback:
            executor_class = ProcessPoolExecutor if self.use_processes else ThreadPoolExecutor
            try:
                self._executor = executor_class(max_workers=self.max_workers)
            except (OSError, NotImplementedError) as exc:
                logger.warning("worker_pool_unavailable", error=str(exc), fallback="in_process")
                self._fallback = True
        return self._executor

    def submit(
        self,
        records: Iterable[TimeRecord],
        context: CalculationContext,
        date_range: Optional[DateRange] = None,
    ) -> int:
        request_id = next(self._ids)
        self._latest = request_id
        payload = codec.dump_snapshot(records, context, date_range)

        executor = self._get_executor()
        if executor is None:
            future: Future = Future()
            try:
                future.set_result(analyze_snapshot(payload))
            except Exception as exc:
                future.set_exception(exc)
        else:
            future = executor.submit(analyze_snapshot, payload)

        self._pending[request_id] = future
        logger.debug("analysis_submitted", request_id=request_id, in_process=executor is None)
        return request_id

    def collect(self, request_id: int, timeout: Optional[float] = None) -> Optional[List[PersonAnalysis]]:
        """Result for ``request_id``, or ``None`` when a newer request superseded it."""

        try:
            future = self._pending.pop(request_id)
        except KeyError:
            raise KeyError(f"Unknown analysis request {request_id}") from None

        if request_id < self._latest:
            future.cancel()
            logger.info("analysis_discarded", request_id=request_id, latest=self._latest)
            return None
        return codec.load_analysis(future.result(timeout=timeout))

    def shutdown(self, wait: bool = True) -> None:
        for future in self._pending.values():
            future.cancel()
        self._pending.clear()
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None

    def __enter__(self) -> "AnalysisWorker":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()

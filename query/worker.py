"""Runs a QueryEngine on its own thread behind a request queue."""
import itertools
import logging
import queue
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

from query.engine import QueryEngine

logger = logging.getLogger(__name__)


@dataclass
class Request:
    """One command sent to the worker, correlated by id."""
    id: int
    method: str
    args: Tuple[Any, ...] = ()
    future: Future = field(default_factory=Future)


class QueryWorker:
    """
    Message-passing front end for a QueryEngine.

    Requests are answered one at a time, in the order they were submitted,
    on a single dedicated thread, so index rebuilds and queries never
    interleave. Submitted requests run to completion unless cancelled
    while still queued, in which case they are skipped.
    """

    def __init__(self, engine: QueryEngine, name: str = 'query-worker'):
        self.engine = engine
        self.requests: 'queue.Queue[Optional[Request]]' = queue.Queue()
        self._ids = itertools.count(1)
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._started = False

    def start(self) -> 'QueryWorker':
        if not self._started:
            self._thread.start()
            self._started = True
            logger.info(f"Started {self._thread.name}")
        return self

    def submit(self, method: str, *args: Any) -> Future:
        """Queue a command; the future resolves with its result."""
        request = Request(id=next(self._ids), method=method, args=args)
        self.requests.put(request)
        return request.future

    def call(self, method: str, *args: Any, timeout: Optional[float] = None) -> Any:
        """Submit a command and wait for its result."""
        return self.submit(method, *args).result(timeout=timeout)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Finish the queued requests, then end the thread."""
        if not self._started:
            return
        self.requests.put(None)
        self._thread.join(timeout)
        logger.info(f"Stopped {self._thread.name}")

    def __enter__(self) -> 'QueryWorker':
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def _run(self) -> None:
        while True:
            request = self.requests.get()
            if request is None:
                break
            if not request.future.set_running_or_notify_cancel():
                logger.debug(f"Request {request.id} cancelled before it ran")
                continue
            logger.debug(f"Request {request.id}: {request.method}")
            try:
                result = self.engine.do_work(request.method, request.args)
            except Exception as e:
                logger.error(
                    f"Request {request.id} ({request.method}) failed: {e}",
                    extra={'error_type': type(e).__name__},
                    exc_info=True
                )
                request.future.set_exception(e)
            else:
                request.future.set_result(result)

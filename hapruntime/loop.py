"""Single-threaded event loop coordinating the router and deferred effects."""

from __future__ import annotations

import logging
import queue
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from .events import BaseEvent, Effect, ErrorEvent, Quit, as_events
from .router import PageRouter

logger = logging.getLogger(__name__)

UpdateHook = Callable[[BaseEvent], None]


class Program:
    """Consumes one inbound event at a time on the calling thread.

    Effects run on a worker pool; whatever they return (or raise) is posted
    back to the inbox as new events. The transport lock still serialises
    socket access, so concurrent effects queue behind each other.
    """

    def __init__(
        self,
        router: PageRouter,
        *,
        workers: int = 4,
        on_update: Optional[UpdateHook] = None,
    ) -> None:
        self.router = router
        self.on_update = on_update
        self._inbox: "queue.Queue[BaseEvent]" = queue.Queue()
        self._pool = ThreadPoolExecutor(max_workers=max(1, workers), thread_name_prefix="hapruntime-effect")
        self._pending = 0
        self._pending_lock = threading.Lock()
        self._idle = threading.Condition(self._pending_lock)
        self._started = False
        self.running = False

    def post(self, event: BaseEvent) -> None:
        self._inbox.put(event)

    def schedule(self, effect: Effect) -> None:
        with self._pending_lock:
            self._pending += 1
        self._pool.submit(self._run_effect, effect)

    def _run_effect(self, effect: Effect) -> None:
        try:
            try:
                events = as_events(effect())
            except Exception as exc:
                logger.debug("effect failed: %s", exc)
                events = [ErrorEvent(exc)]
            for event in events:
                self.post(event)
        finally:
            with self._pending_lock:
                self._pending -= 1
                self._idle.notify_all()

    def start(self) -> None:
        if self._started:
            return
        self._started = True
        self.running = True
        for effect in self.router.init():
            self.schedule(effect)

    def step(self, timeout: Optional[float] = None) -> Optional[BaseEvent]:
        """Process a single event; returns it, or ``None`` on timeout."""
        try:
            event = self._inbox.get(timeout=timeout)
        except queue.Empty:
            return None
        if isinstance(event, Quit):
            self.running = False
        for effect in self.router.dispatch(event):
            self.schedule(effect)
        if self.on_update is not None:
            self.on_update(event)
        return event

    def run(self) -> None:
        """Run until a ``Quit`` event arrives or the error policy raises."""
        self.start()
        try:
            while self.running:
                self.step()
        finally:
            self.running = False
            self.shutdown(wait=False)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no effect is in flight."""
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout=timeout)

    def drain(self, timeout: float = 1.0) -> bool:
        """Dispatch events until no effect is in flight and the inbox is empty.

        Returns ``False`` if that state was not reached within *timeout*.
        """
        deadline = time.monotonic() + timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            if self.step(timeout=min(remaining, 0.05)) is not None:
                continue
            with self._pending_lock:
                if self._pending == 0 and self._inbox.empty():
                    return True

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)


__all__ = ["Program", "UpdateHook"]

"""
Run a π calculation on a background thread.

The worker computes blocks with calc_pi() and checks a cancellation flag
after each one. Progress values travel to the consumer through a queue, so
a UI loop can drain them from its own thread with poll_progress() while the
worker keeps going. Only one calculation may be in flight at a time.

Example:
    with PiCalculation() as calculation:
        calculation.start(1000)
        while calculation.running:
            for done in calculation.poll_progress():
                ...
        pi = calculation.wait()
"""

from __future__ import annotations

from typing import Callable
import queue
import threading

from nine_digits import calc_pi

__all__ = ['PiCalculation']


class PiCalculation:
    """A single background π calculation that can be cancelled."""

    def __init__(self, on_progress: Callable[[int], object] | None = None) -> None:
        """
        Args:
            on_progress: Optional observer called on the worker thread with
                the number of digits produced so far. Its return value is
                ignored; use cancel() to stop the calculation.
        """
        self.on_progress = on_progress
        self.digits: int = 0
        self.progress: int = 0

        self._cancelled = threading.Event()
        self._updates: queue.Queue[int] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._result: str | None = None
        self._error: Exception | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def start(self, digits: int) -> None:
        """
        Start computing digits decimals of π.

        Raises:
            RuntimeError: If a calculation is already running
        """
        if self.running:
            raise RuntimeError("a calculation is already running")

        self.digits = digits
        self.progress = 0
        self._cancelled.clear()
        self._updates = queue.Queue()
        self._result = None
        self._error = None

        self._thread = threading.Thread(
            target=self._run, name=f"pi-{digits}", daemon=True)
        self._thread.start()

    def _report(self, done: int) -> bool:
        self.progress = done
        self._updates.put(done)
        if self.on_progress is not None:
            self.on_progress(done)
        return not self._cancelled.is_set()

    def _run(self) -> None:
        try:
            self._result = calc_pi(self.digits, self._report)
        except Exception as exc:
            self._error = exc

    def poll_progress(self) -> list[int]:
        """Return the progress values queued since the last poll, oldest first."""
        values = []
        while True:
            try:
                values.append(self._updates.get_nowait())
            except queue.Empty:
                return values

    def cancel(self) -> None:
        """Ask the worker to stop after the block it is computing."""
        self._cancelled.set()

    def wait(self, timeout: float | None = None) -> str | None:
        """
        Wait for the worker to finish.

        Args:
            timeout: Seconds to wait, or None to wait indefinitely

        Returns:
            The digit string, or None if the calculation was cancelled

        Raises:
            TimeoutError: If the worker is still running after timeout
            Exception: Whatever the worker raised
        """
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                raise TimeoutError(
                    f"calculation of {self.digits} digits still running")

        if self._error is not None:
            raise self._error
        return self._result

    def close(self) -> None:
        """Cancel a running calculation and wait for the worker to exit."""
        if self.running:
            self.cancel()
            self._thread.join()

    def __enter__(self) -> PiCalculation:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

"""Background translation jobs and their hand-off to the UI thread."""

from __future__ import annotations

import enum
import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol, Union

from translation_service import (
    ErrorKind,
    TranslationError,
    TranslationRequest,
    TranslationResponse,
)


logger = logging.getLogger("idiom.worker")

PULSE_INTERVAL_MS = 100
RESULT_POLL_INTERVAL_MS = 50


class BoxIdentity(enum.Enum):
    NONE = "none"
    TOP = "top"
    BOTTOM = "bottom"

    @property
    def other(self) -> "BoxIdentity":
        if self is BoxIdentity.TOP:
            return BoxIdentity.BOTTOM
        if self is BoxIdentity.BOTTOM:
            return BoxIdentity.TOP
        return BoxIdentity.NONE


class OrchestratorState(enum.Enum):
    IDLE = "idle"
    REQUESTED = "requested"
    IN_FLIGHT = "in flight"
    COMPLETING = "completing"


@dataclass(frozen=True)
class TranslationSucceeded:
    response: TranslationResponse


@dataclass(frozen=True)
class TranslationFailed:
    kind: ErrorKind
    message: str


JobResult = Union[TranslationSucceeded, TranslationFailed]


@dataclass
class InFlightJob:
    request: TranslationRequest
    destination: BoxIdentity
    results: "queue.Queue[JobResult]" = field(default_factory=lambda: queue.Queue(maxsize=1))
    pulse_handle: Any = None
    poll_handle: Any = None


class TranslatorProtocol(Protocol):  # pragma: no cover - protocol is for type checking only
    def translate(self, request: TranslationRequest) -> TranslationResponse:
        """Translate the request and return its fragments."""


class UiHost(Protocol):  # pragma: no cover - protocol is for type checking only
    def get_text(self, box: BoxIdentity) -> str: ...

    def set_text(self, box: BoxIdentity, text: str) -> None: ...

    def get_language(self, box: BoxIdentity) -> Optional[str]: ...

    def report_progress_pulse(self) -> None: ...

    def report_progress_done(self) -> None: ...

    def is_closed(self) -> bool: ...


class Scheduler(Protocol):  # pragma: no cover - protocol is for type checking only
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


class StatusReporter(Protocol):  # pragma: no cover - protocol is for type checking only
    def info(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LoggingReporter:
    """Reporter that only writes to a logger."""

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self._logger = log or logger

    def info(self, message: str) -> None:
        self._logger.info(message)

    def error(self, message: str) -> None:
        self._logger.error(message)


def start_daemon_thread(target: Callable[[], None]) -> None:
    threading.Thread(target=target, name="TranslationWorker", daemon=True).start()


def run_translation(translator: TranslatorProtocol, request: TranslationRequest) -> JobResult:
    """Run one translation and fold every outcome into a tagged result."""

    try:
        return TranslationSucceeded(translator.translate(request))
    except TranslationError as exc:
        return TranslationFailed(exc.kind, str(exc))
    except MemoryError:
        return TranslationFailed(ErrorKind.RESOURCE_EXHAUSTION, "Out of memory while translating")
    except Exception as exc:
        logger.exception("Unexpected error in translation worker")
        return TranslationFailed(ErrorKind.TRANSPORT_FAILURE, f"Unexpected error: {exc}")


class TranslationOrchestrator:
    """Run translations off the UI thread and apply results back on it.

    Every public method must be called from the UI thread. Only
    :func:`run_translation` executes on the worker, and its result reaches the
    UI thread through the job's own queue, drained by a scheduled poll.

    While a job is in flight further translate requests are ignored.
    """

    def __init__(
        self,
        host: UiHost,
        scheduler: Scheduler,
        translator: TranslatorProtocol,
        *,
        reporter: Optional[StatusReporter] = None,
        worker_starter: Callable[[Callable[[], None]], None] = start_daemon_thread,
        pulse_interval_ms: int = PULSE_INTERVAL_MS,
        poll_interval_ms: int = RESULT_POLL_INTERVAL_MS,
    ) -> None:
        self._host = host
        self._scheduler = scheduler
        self._translator = translator
        self._reporter: StatusReporter = reporter or LoggingReporter()
        self._worker_starter = worker_starter
        self._pulse_interval_ms = pulse_interval_ms
        self._poll_interval_ms = poll_interval_ms
        self._job: Optional[InFlightJob] = None
        self._state = OrchestratorState.IDLE
        self._shut_down = False

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._job is not None

    def translate(self, box: BoxIdentity) -> bool:
        """Translate ``box`` into the other box.

        Returns ``True`` when a job was started.
        """

        if self._shut_down or box is BoxIdentity.NONE:
            return False
        text = self._host.get_text(box)
        if not text:
            return False
        if self._job is not None:
            self._reporter.info("Translation already in progress")
            return False

        self._state = OrchestratorState.REQUESTED
        request = TranslationRequest(
            text=text,
            source_language=self._host.get_language(box),
            target_language=self._host.get_language(box.other),
        )
        job = InFlightJob(request=request, destination=box.other)
        self._job = job

        def work() -> None:
            job.results.put(run_translation(self._translator, request))

        try:
            self._worker_starter(work)
        except RuntimeError as exc:
            self._job = None
            self._state = OrchestratorState.IDLE
            self._reporter.error(f"Could not start translation worker: {exc}")
            return False
        self._state = OrchestratorState.IN_FLIGHT
        logger.info(
            "Translating %s box (%s -> %s)",
            box.value,
            request.source_language or "auto",
            request.target_language or "default",
        )
        self._host.report_progress_pulse()
        job.pulse_handle = self._scheduler.call_later(self._pulse_interval_ms, self._pulse)
        job.poll_handle = self._scheduler.call_later(self._poll_interval_ms, self._poll_result)
        return True

    def shutdown(self) -> None:
        """Drop the in-flight job and refuse new ones."""

        self._shut_down = True
        job, self._job = self._job, None
        if job is not None:
            self._cancel_timers(job)
        self._state = OrchestratorState.IDLE

    def _pulse(self) -> None:
        job = self._job
        if job is None:
            return
        self._host.report_progress_pulse()
        job.pulse_handle = self._scheduler.call_later(self._pulse_interval_ms, self._pulse)

    def _poll_result(self) -> None:
        job = self._job
        if job is None:
            return
        try:
            result = job.results.get_nowait()
        except queue.Empty:
            job.poll_handle = self._scheduler.call_later(self._poll_interval_ms, self._poll_result)
            return
        self._complete(job, result)

    def _complete(self, job: InFlightJob, result: JobResult) -> None:
        self._state = OrchestratorState.COMPLETING
        self._cancel_timers(job)
        self._job = None
        try:
            if self._host.is_closed():
                logger.info("Window closed before translation finished; result dropped")
                return
            try:
                if isinstance(result, TranslationSucceeded):
                    self._host.set_text(job.destination, result.response.text)
                    self._reporter.info("Translation complete")
                else:
                    self._reporter.error(
                        f"Translation failed ({result.kind.value}): {result.message}"
                    )
            finally:
                self._host.report_progress_done()
        finally:
            self._state = OrchestratorState.IDLE

    def _cancel_timers(self, job: InFlightJob) -> None:
        for handle in (job.pulse_handle, job.poll_handle):
            if handle is not None:
                self._scheduler.cancel(handle)
        job.pulse_handle = None
        job.poll_handle = None

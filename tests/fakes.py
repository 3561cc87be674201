from __future__ import annotations

from translation_service import TranslationResponse
from translation_worker import BoxIdentity


class FakeScheduler:
    """Manually driven stand-in for the tk ``after`` loop."""

    def __init__(self) -> None:
        self.now = 0
        self._pending: dict[int, tuple[int, object]] = {}
        self._next_handle = 1
        self.cancelled: list[int] = []

    def call_later(self, delay_ms: int, callback):
        handle = self._next_handle
        self._next_handle += 1
        self._pending[handle] = (self.now + delay_ms, callback)
        return handle

    def cancel(self, handle: int) -> None:
        self._pending.pop(handle, None)
        self.cancelled.append(handle)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def advance(self, amount_ms: int) -> None:
        target = self.now + amount_ms
        while True:
            due = [(when, handle) for handle, (when, _) in self._pending.items() if when <= target]
            if not due:
                break
            when, handle = min(due)
            self.now = when
            _, callback = self._pending.pop(handle)
            callback()
        self.now = target


class FakeHost:
    def __init__(
        self,
        top: str = "",
        bottom: str = "",
        top_language: str = "sv",
        bottom_language: str = "en",
    ) -> None:
        self.texts = {BoxIdentity.TOP: top, BoxIdentity.BOTTOM: bottom}
        self.languages = {BoxIdentity.TOP: top_language, BoxIdentity.BOTTOM: bottom_language}
        self.selections = {BoxIdentity.TOP: "", BoxIdentity.BOTTOM: ""}
        self.set_calls: list[tuple[BoxIdentity, str]] = []
        self.pulses = 0
        self.progress = 0
        self.done_calls = 0
        self.closed = False

    def get_text(self, box: BoxIdentity) -> str:
        return self.texts[box]

    def set_text(self, box: BoxIdentity, text: str) -> None:
        self.set_calls.append((box, text))
        self.texts[box] = text

    def get_language(self, box: BoxIdentity):
        return self.languages[box]

    def report_progress_pulse(self) -> None:
        self.pulses += 1
        self.progress += 1

    def report_progress_done(self) -> None:
        self.done_calls += 1
        self.progress = 0

    def is_closed(self) -> bool:
        return self.closed

    def get_selection(self, box: BoxIdentity) -> str:
        return self.selections[box]

    def delete_selection(self, box: BoxIdentity) -> None:
        self.texts[box] = self.texts[box].replace(self.selections[box], "", 1)
        self.selections[box] = ""

    def insert_at_cursor(self, box: BoxIdentity, text: str) -> None:
        self.texts[box] += text


class FakeReporter:
    def __init__(self) -> None:
        self.infos: list[str] = []
        self.errors: list[str] = []

    def info(self, message: str) -> None:
        self.infos.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)


class FakeTranslator:
    def __init__(self, *fragments: str, error: Exception | None = None) -> None:
        self.calls = []
        self.fragments = fragments or ("translated",)
        self.error = error

    def translate(self, request):
        self.calls.append(request)
        if self.error is not None:
            raise self.error
        return TranslationResponse(fragments=tuple(self.fragments))


class DeferredWorkers:
    """Worker starter that holds jobs until the test releases them."""

    def __init__(self) -> None:
        self.jobs = []

    def __call__(self, work) -> None:
        self.jobs.append(work)

    def run_all(self) -> None:
        jobs, self.jobs = self.jobs, []
        for work in jobs:
            work()


def run_inline(work) -> None:
    work()


class FakeClipboard:
    def __init__(self, text: str = "") -> None:
        self.text = text
        self.copied: list[str] = []

    def copy(self, text: str) -> None:
        self.copied.append(text)
        self.text = text

    def paste(self) -> str:
        return self.text

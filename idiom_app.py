"""Two-pane desktop utility that translates text via Google Translate."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Callable, Optional, Protocol, Sequence

try:  # pragma: no cover - executed during module import
    import pyperclip  # type: ignore
except ImportError:  # pragma: no cover - handled in __init__
    pyperclip = None  # type: ignore

from text_files import read_text_file, write_text_file
from translation_service import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, GoogleTranslateClient
from translation_worker import (
    BoxIdentity,
    LoggingReporter,
    Scheduler,
    StatusReporter,
    TranslationOrchestrator,
    TranslatorProtocol,
    UiHost,
    start_daemon_thread,
)


EX_USAGE = 64

LOG_FILE_NAME = "idiom.log"
LOG_MAX_BYTES = 2_097_152
LOG_BACKUP_COUNT = 3

PREFERENCES_FILE = Path.home() / ".idiom_preferences.json"

LANGUAGES = {
    "ar": "Arabic",
    "zh-CN": "Chinese (Simplified)",
    "da": "Danish",
    "nl": "Dutch",
    "en": "English",
    "fi": "Finnish",
    "fr": "French",
    "de": "German",
    "el": "Greek",
    "he": "Hebrew",
    "hi": "Hindi",
    "it": "Italian",
    "ja": "Japanese",
    "ko": "Korean",
    "no": "Norwegian",
    "pl": "Polish",
    "pt": "Portuguese",
    "ru": "Russian",
    "es": "Spanish",
    "sv": "Swedish",
    "tr": "Turkish",
    "uk": "Ukrainian",
}

DEFAULT_PREFERENCES = {
    "top_language": "en",
    "bottom_language": "es",
    "user_agent": DEFAULT_USER_AGENT,
    "timeout": DEFAULT_TIMEOUT,
}

_LANGUAGE_KEYS = {
    BoxIdentity.TOP: "top_language",
    BoxIdentity.BOTTOM: "bottom_language",
}

logger = logging.getLogger("idiom")


def _get_logger() -> logging.Logger:
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    log_dir = PREFERENCES_FILE.parent
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError:
        handler = None
    if handler is not None:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)
    return logger


def _load_preferences() -> dict:
    try:
        data = json.loads(PREFERENCES_FILE.read_text(encoding="utf-8"))
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def _save_preferences(preferences: dict) -> None:
    try:
        PREFERENCES_FILE.parent.mkdir(parents=True, exist_ok=True)
        PREFERENCES_FILE.write_text(json.dumps(preferences, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError:
        logger.warning("Could not save preferences to %s", PREFERENCES_FILE)


def _load_settings() -> dict:
    """Return the saved preferences merged over the defaults."""

    data = _load_preferences()
    result = dict(DEFAULT_PREFERENCES)

    for key in _LANGUAGE_KEYS.values():
        code = data.get(key)
        if isinstance(code, str) and code in LANGUAGES:
            result[key] = code

    user_agent = data.get("user_agent")
    if isinstance(user_agent, str) and user_agent.strip():
        result["user_agent"] = user_agent.strip()

    timeout = data.get("timeout")
    if isinstance(timeout, (int, float)) and not isinstance(timeout, bool) and timeout > 0:
        result["timeout"] = float(timeout)

    return result


def _save_language(box: BoxIdentity, code: str) -> None:
    key = _LANGUAGE_KEYS.get(box)
    if key is None:
        return
    data = _load_preferences()
    data[key] = code
    _save_preferences(data)


class EditorHost(UiHost, Protocol):  # pragma: no cover - protocol is for type checking only
    def get_selection(self, box: BoxIdentity) -> str: ...

    def delete_selection(self, box: BoxIdentity) -> None: ...

    def insert_at_cursor(self, box: BoxIdentity, text: str) -> None: ...


class IdiomApp:
    """Tracks which box is active and focused and turns UI actions into work.

    The window calls into this class from its event handlers; all methods run
    on the UI thread.
    """

    def __init__(
        self,
        host: EditorHost,
        scheduler: Scheduler,
        *,
        translator: Optional[TranslatorProtocol] = None,
        clipboard_module=pyperclip,
        reporter: Optional[StatusReporter] = None,
        worker_starter: Callable[[Callable[[], None]], None] = start_daemon_thread,
        language_saver: Callable[[BoxIdentity, str], None] = _save_language,
    ) -> None:
        if clipboard_module is None:
            raise RuntimeError(
                "The 'pyperclip' package is required. Install it with 'pip install pyperclip'."
            )
        self._host = host
        self._clipboard = clipboard_module
        self._reporter: StatusReporter = reporter or LoggingReporter(logger)
        self._language_saver = language_saver
        self.active = BoxIdentity.NONE
        self.focused = BoxIdentity.TOP
        self.orchestrator = TranslationOrchestrator(
            host,
            scheduler,
            translator if translator is not None else GoogleTranslateClient(),
            reporter=self._reporter,
            worker_starter=worker_starter,
        )

    def translate_box(self, box: BoxIdentity) -> bool:
        # A refused click must not move the save target away from the running job.
        if not self.orchestrator.busy:
            self.active = box
        return self.orchestrator.translate(box)

    def retranslate(self) -> bool:
        return self.orchestrator.translate(self.active)

    def language_changed(self, box: BoxIdentity, code: str) -> None:
        """Remember the new language, then translate the active box again."""

        self._language_saver(box, code)
        self.retranslate()

    def seed_from_selection(self, text: Optional[str]) -> None:
        """Put ``text`` into the top box and translate it."""

        if text is None:
            self._reporter.error("The primary selection is empty")
            return
        self.active = BoxIdentity.TOP
        self._host.set_text(BoxIdentity.TOP, text)
        self.orchestrator.translate(BoxIdentity.TOP)

    def focus_in(self, box: BoxIdentity) -> None:
        self.focused = box

    def focus_out(self, box: BoxIdentity) -> None:
        if self.focused is box:
            self.focused = BoxIdentity.NONE

    def clear(self) -> None:
        self._host.set_text(BoxIdentity.TOP, "")
        self._host.set_text(BoxIdentity.BOTTOM, "")

    @property
    def save_target(self) -> BoxIdentity:
        """The box a save writes: the destination of the last translation."""

        if self.active is BoxIdentity.NONE:
            return BoxIdentity.BOTTOM
        return self.active.other

    def open_file(self, path: str) -> bool:
        try:
            loaded = read_text_file(path)
        except OSError as exc:
            self._reporter.error(f"Could not open {path}: {exc.strerror or exc}")
            return False
        self._host.set_text(BoxIdentity.TOP, loaded.text)
        if loaded.lossy:
            self._reporter.error(f"{path} is not valid UTF-8; invalid bytes were replaced")
        else:
            self._reporter.info(f"Opened {path}")
        return True

    def save_file(self, path: str) -> bool:
        try:
            write_text_file(path, self._host.get_text(self.save_target))
        except OSError as exc:
            self._reporter.error(f"Could not save {path}: {exc.strerror or exc}")
            return False
        self._reporter.info(f"Saved {path}")
        return True

    def copy(self) -> bool:
        box = self.focused
        if box is BoxIdentity.NONE:
            return False
        text = self._host.get_selection(box)
        if not text:
            return False
        try:
            self._clipboard.copy(text)
        except Exception as exc:
            self._report_clipboard_error(exc)
            return False
        return True

    def cut(self) -> bool:
        if not self.copy():
            return False
        self._host.delete_selection(self.focused)
        return True

    def paste(self) -> bool:
        box = self.focused
        if box is BoxIdentity.NONE:
            return False
        try:
            text = self._clipboard.paste()
        except Exception as exc:
            self._report_clipboard_error(exc)
            return False
        if not text:
            return False
        self._host.insert_at_cursor(box, text)
        return True

    def shutdown(self) -> None:
        self.orchestrator.shutdown()

    def _report_clipboard_error(self, exc: Exception) -> None:
        if pyperclip is not None and isinstance(exc, pyperclip.PyperclipException):
            message = f"Failed to access clipboard: {exc}"
        else:
            message = f"Unexpected error while accessing clipboard: {exc}"
        self._reporter.error(message)


class _UsageArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(EX_USAGE, f"{self.prog}: error: {message}\n")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = _UsageArgumentParser(
        prog="idiom", description="Translate the written word between two text boxes."
    )
    parser.add_argument(
        "-p",
        dest="primary",
        action="store_true",
        help="Translate the primary selection on startup.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    log = _get_logger()
    settings = _load_settings()

    from idiom_window import TranslatorWindow

    window = TranslatorWindow(
        LANGUAGES,
        top_language=settings["top_language"],
        bottom_language=settings["bottom_language"],
    )
    translator = GoogleTranslateClient(
        timeout=settings["timeout"], user_agent=settings["user_agent"]
    )
    app = IdiomApp(window, window, translator=translator, reporter=window.reporter)
    window.attach(app)
    if args.primary:
        window.request_primary_selection(app.seed_from_selection)
    log.info("Idiom started")
    window.run()


if __name__ == "__main__":
    main()

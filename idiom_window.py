"""The tkinter window hosting the two translation boxes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional

try:
    import tkinter as tk
    from tkinter import filedialog, messagebox, scrolledtext, ttk
except ImportError as exc:  # pragma: no cover - tkinter ships with most Python builds
    raise SystemExit("tkinter is required to display the translation window") from exc

try:  # pragma: no cover - optional dependency for the window icon
    from PIL import Image, ImageDraw, ImageTk  # type: ignore
except ImportError:  # pragma: no cover - the window simply has no icon
    Image = None  # type: ignore
    ImageDraw = None  # type: ignore
    ImageTk = None  # type: ignore

from translation_worker import BoxIdentity

if TYPE_CHECKING:  # pragma: no cover
    from idiom_app import IdiomApp


logger = logging.getLogger("idiom.window")

ICON_SIZE = 64


def create_icon_image(size: int = ICON_SIZE) -> "Image.Image":
    """Draw the application icon: two stacked text panes with an arrow between."""

    if Image is None or ImageDraw is None:
        raise RuntimeError(
            "The 'Pillow' package is required to draw the window icon. Install it with 'pip install Pillow'."
        )

    image = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    margin = size // 8
    middle = size // 2
    pane = (255, 255, 255, 255)
    outline = (28, 114, 206, 255)
    draw.rectangle((margin, margin, size - margin, middle - 4), fill=pane, outline=outline, width=2)
    draw.rectangle((margin, middle + 4, size - margin, size - margin), fill=pane, outline=outline, width=2)
    for offset in range(3):
        y = margin + 6 + offset * 5
        if y < middle - 6:
            draw.line((margin + 5, y, size - margin - 5, y), fill=outline, width=1)
    draw.polygon(
        ((middle - 6, middle - 3), (middle + 6, middle - 3), (middle, middle + 5)),
        fill=(217, 48, 37, 255),
    )
    return image


class StatusBarReporter:
    """Show status messages in the window's status bar and log them."""

    def __init__(self, window: "TranslatorWindow") -> None:
        self._window = window

    def info(self, message: str) -> None:
        logger.info(message)
        self._window.show_status(message)

    def error(self, message: str) -> None:
        logger.error(message)
        self._window.show_status(message, error=True)


class TranslatorWindow:
    """Main window: two text boxes, their language selectors and a status bar.

    The window implements the host and scheduler interfaces used by
    :class:`translation_worker.TranslationOrchestrator`.
    """

    def __init__(
        self,
        languages: Mapping[str, str],
        *,
        top_language: str,
        bottom_language: str,
    ) -> None:
        self._languages = dict(languages)
        self._codes_by_name = {name: code for code, name in self._languages.items()}
        self._app: Optional["IdiomApp"] = None
        self._closed = False
        self._icon_photo: Any = None
        self.reporter = StatusBarReporter(self)

        root = tk.Tk()
        self._root = root
        root.title("Idiom")
        root.geometry("800x400")
        root.protocol("WM_DELETE_WINDOW", self.close)
        self._apply_icon()

        self._build_menu()
        self._texts: Dict[BoxIdentity, scrolledtext.ScrolledText] = {}
        self._combos: Dict[BoxIdentity, ttk.Combobox] = {}

        panes = tk.PanedWindow(root, orient=tk.VERTICAL, sashwidth=6)
        panes.pack(fill=tk.BOTH, expand=True, padx=8, pady=(8, 0))
        panes.add(self._build_box(panes, BoxIdentity.TOP, top_language, "Translate ↓"), minsize=80)
        panes.add(self._build_box(panes, BoxIdentity.BOTTOM, bottom_language, "Translate ↑"), minsize=80)

        status_frame = tk.Frame(root)
        status_frame.pack(fill=tk.X, padx=8, pady=4)
        self._status = tk.Label(status_frame, anchor="w")
        self._status.pack(side=tk.LEFT, fill=tk.X, expand=True)
        self._progress = ttk.Progressbar(status_frame, mode="indeterminate", length=120)
        self._progress.pack(side=tk.RIGHT)

    def _apply_icon(self) -> None:
        if Image is None or ImageDraw is None or ImageTk is None:
            return
        try:
            self._icon_photo = ImageTk.PhotoImage(create_icon_image())
            self._root.iconphoto(True, self._icon_photo)
        except tk.TclError as exc:  # pragma: no cover - depends on the window manager
            logger.warning("Could not set window icon: %s", exc)

    def _build_menu(self) -> None:
        menubar = tk.Menu(self._root)

        file_menu = tk.Menu(menubar, tearoff=0)
        file_menu.add_command(label="New", command=lambda: self._dispatch("clear"))
        file_menu.add_command(label="Open…", command=self._on_open)
        file_menu.add_command(label="Save…", command=self._on_save)
        file_menu.add_separator()
        file_menu.add_command(label="Quit", command=self.close)
        menubar.add_cascade(label="File", menu=file_menu)

        edit_menu = tk.Menu(menubar, tearoff=0)
        edit_menu.add_command(label="Cut", command=lambda: self._dispatch("cut"))
        edit_menu.add_command(label="Copy", command=lambda: self._dispatch("copy"))
        edit_menu.add_command(label="Paste", command=lambda: self._dispatch("paste"))
        menubar.add_cascade(label="Edit", menu=edit_menu)

        help_menu = tk.Menu(menubar, tearoff=0)
        help_menu.add_command(label="About", command=self._on_about)
        menubar.add_cascade(label="Help", menu=help_menu)

        self._root.configure(menu=menubar)

    def _build_box(self, parent: tk.Widget, box: BoxIdentity, language: str, label: str) -> tk.Frame:
        frame = tk.Frame(parent)

        controls = tk.Frame(frame)
        controls.pack(fill=tk.X, pady=(0, 4))
        combo = ttk.Combobox(
            controls,
            state="readonly",
            values=list(self._languages.values()),
        )
        combo.set(self._languages.get(language, language))
        combo.bind("<<ComboboxSelected>>", lambda _event: self._on_language_selected(box))
        combo.pack(side=tk.LEFT)
        self._combos[box] = combo

        button = tk.Button(controls, text=label, command=lambda: self._dispatch("translate_box", box))
        button.pack(side=tk.RIGHT)

        text = scrolledtext.ScrolledText(frame, wrap=tk.WORD, height=8, undo=True)
        text.pack(fill=tk.BOTH, expand=True)
        text.bind("<FocusIn>", lambda _event: self._dispatch("focus_in", box))
        text.bind("<FocusOut>", lambda _event: self._dispatch("focus_out", box))
        self._texts[box] = text
        return frame

    def attach(self, app: "IdiomApp") -> None:
        self._app = app

    def run(self) -> None:
        self._root.mainloop()

    def close(self) -> None:
        if self._closed:
            return
        if self._app is not None:
            self._app.shutdown()
        self._closed = True
        self._root.destroy()

    def request_primary_selection(self, callback: Callable[[Optional[str]], None]) -> None:
        """Read the PRIMARY selection once the main loop is running."""

        def deliver() -> None:
            try:
                text: Optional[str] = self._root.selection_get(selection="PRIMARY")
            except tk.TclError:
                text = None
            callback(text)

        self._root.after_idle(deliver)

    def _dispatch(self, action: str, *args: Any) -> None:
        if self._app is None or self._closed:
            return
        getattr(self._app, action)(*args)

    def _on_language_selected(self, box: BoxIdentity) -> None:
        code = self.get_language(box)
        if code is not None:
            self._dispatch("language_changed", box, code)

    def _on_open(self) -> None:
        path = filedialog.askopenfilename(parent=self._root, title="Open File")
        if path:
            self._dispatch("open_file", path)

    def _on_save(self) -> None:
        path = filedialog.asksaveasfilename(parent=self._root, title="Save File")
        if path:
            self._dispatch("save_file", path)

    def _on_about(self) -> None:
        messagebox.showinfo(
            "About Idiom",
            "Idiom\n\nA utility to translate the written word.",
            parent=self._root,
        )

    # Host interface

    def get_text(self, box: BoxIdentity) -> str:
        return self._texts[box].get("1.0", "end-1c")

    def set_text(self, box: BoxIdentity, text: str) -> None:
        widget = self._texts[box]
        widget.delete("1.0", tk.END)
        widget.insert("1.0", text)

    def get_language(self, box: BoxIdentity) -> Optional[str]:
        name = self._combos[box].get()
        return self._codes_by_name.get(name)

    def get_selection(self, box: BoxIdentity) -> str:
        try:
            return self._texts[box].get(tk.SEL_FIRST, tk.SEL_LAST)
        except tk.TclError:
            return ""

    def delete_selection(self, box: BoxIdentity) -> None:
        try:
            self._texts[box].delete(tk.SEL_FIRST, tk.SEL_LAST)
        except tk.TclError:
            pass

    def insert_at_cursor(self, box: BoxIdentity, text: str) -> None:
        self._texts[box].insert(tk.INSERT, text)

    def report_progress_pulse(self) -> None:
        self._progress.step(10)

    def report_progress_done(self) -> None:
        self._progress.stop()
        self._progress["value"] = 0

    def is_closed(self) -> bool:
        return self._closed

    def show_status(self, message: str, *, error: bool = False) -> None:
        if self._closed:
            return
        self._status.configure(text=message, fg="#d93025" if error else "black")

    # Scheduler interface

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> str:
        return self._root.after(delay_ms, callback)

    def cancel(self, handle: str) -> None:
        if self._closed:
            return
        try:
            self._root.after_cancel(handle)
        except tk.TclError:
            pass

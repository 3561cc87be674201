"""Loading files into the text boxes and saving them back out."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

PathLike = Union[str, "os.PathLike[str]"]


@dataclass(frozen=True)
class LoadedText:
    text: str
    # True when some bytes were not valid UTF-8 and became U+FFFD.
    lossy: bool = False


def decode_text(data: bytes) -> LoadedText:
    try:
        return LoadedText(data.decode("utf-8"))
    except UnicodeDecodeError:
        return LoadedText(data.decode("utf-8", errors="replace"), lossy=True)


def read_text_file(path: PathLike) -> LoadedText:
    """Return the file's contents decoded as UTF-8.

    Bytes that are not valid UTF-8 become U+FFFD and the result is marked
    lossy, so saving it back would not reproduce the original file.
    """

    return decode_text(Path(path).read_bytes())


def write_text_file(path: PathLike, text: str) -> None:
    """Write ``text`` followed by a single newline."""

    Path(path).write_bytes(text.encode("utf-8") + b"\n")

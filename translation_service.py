"""Translation utilities for the Idiom application."""

from __future__ import annotations

import enum
import json
import logging
import re
import socket
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


logger = logging.getLogger("idiom.translation")

ENDPOINT = "https://translate.googleapis.com/translate_a/single"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64; rv:128.0) Gecko/20100101 Firefox/128.0"
)
DEFAULT_TIMEOUT = 10.0

_DOUBLED_COMMA = re.compile(rb"(?<=,),")


class ErrorKind(enum.Enum):
    TRANSPORT_FAILURE = "transport failure"
    MALFORMED_RESPONSE = "malformed response"
    RESOURCE_EXHAUSTION = "resource exhaustion"


class TranslationError(RuntimeError):
    """Raised when the translation service cannot complete a request."""

    kind = ErrorKind.TRANSPORT_FAILURE


class TransportFailure(TranslationError):
    """The endpoint could not be reached or answered with an HTTP error."""


class MalformedResponse(TranslationError):
    """The response body could not be parsed into sentence fragments."""

    kind = ErrorKind.MALFORMED_RESPONSE


class ResourceExhaustion(TranslationError):
    kind = ErrorKind.RESOURCE_EXHAUSTION


@dataclass(frozen=True)
class TranslationRequest:
    text: str
    source_language: Optional[str] = None
    target_language: Optional[str] = None


@dataclass(frozen=True)
class TranslationResponse:
    fragments: Tuple[str, ...] = ()

    @property
    def text(self) -> str:
        return "".join(self.fragments)


@dataclass(frozen=True)
class HttpRequest:
    url: str
    method: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None


def build_request(
    text: str,
    source_language: Optional[str],
    target_language: Optional[str],
    *,
    user_agent: str = DEFAULT_USER_AGENT,
) -> HttpRequest:
    """Build the POST request that asks the endpoint to translate ``text``.

    Languages travel in the query string and are left out when not given so the
    service falls back to its own defaults. The text itself is sent as the
    ``q`` form field to stay clear of URL length limits.
    """

    if not text:
        raise ValueError("Cannot build a translation request for empty text")

    params = [("client", "gtx")]
    if source_language:
        params.append(("sl", source_language))
    if target_language:
        params.append(("tl", target_language))
    params.extend([("dt", "t"), ("ie", "UTF-8"), ("oe", "UTF-8")])

    url = f"{ENDPOINT}?{urllib.parse.urlencode(params)}"
    body = urllib.parse.urlencode({"q": text}, quote_via=urllib.parse.quote, safe="")
    headers = {
        "User-Agent": user_agent,
        "Content-Type": "application/x-www-form-urlencoded;charset=utf-8",
    }
    return HttpRequest(url=url, method="POST", headers=headers, body=body.encode("ascii"))


def sanitize_commas(raw: bytes) -> bytes:
    """Blank out every comma that directly follows another comma.

    The endpoint pads empty array slots as ``,,``. Replacing the second comma
    with a space keeps the body the same length; ``,,,`` becomes ``,  ``.
    """

    return _DOUBLED_COMMA.sub(b" ", raw)


def _blank_dangling_commas(text: str) -> str:
    # A comma followed only by whitespace before a closing bracket is left over
    # after sanitizing ``,,]``. Blank it outside of string literals.
    chars = list(text)
    in_string = False
    escaped = False
    pending: Optional[int] = None
    for index, char in enumerate(chars):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
            pending = None
        elif char == ",":
            pending = index
        elif char in "]}":
            if pending is not None:
                chars[pending] = " "
            pending = None
        elif not char.isspace():
            pending = None
    return "".join(chars)


def extract_translation(raw: bytes) -> TranslationResponse:
    """Parse a raw response body into its ordered translated fragments."""

    sanitized = sanitize_commas(raw)
    try:
        document = json.loads(_blank_dangling_commas(sanitized.decode("utf-8")))
    except UnicodeDecodeError as exc:
        raise MalformedResponse(f"Response is not valid UTF-8: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise MalformedResponse(f"Invalid response from Google Translate: {exc}") from exc

    try:
        sentences = document[0]
    except (IndexError, KeyError, TypeError) as exc:
        raise MalformedResponse("Unexpected translation response structure") from exc
    if not isinstance(document, list) or not isinstance(sentences, list):
        raise MalformedResponse("Unexpected translation response structure")

    fragments = []
    for pair in sentences:
        if not isinstance(pair, list) or not pair:
            raise MalformedResponse(f"Unexpected sentence pair: {pair!r}")
        fragment = pair[0]
        if fragment is None:
            continue
        if not isinstance(fragment, str):
            raise MalformedResponse(f"Unexpected sentence fragment: {fragment!r}")
        fragments.append(fragment)

    return TranslationResponse(fragments=tuple(fragments))


class GoogleTranslateClient:
    """Minimal client for the unofficial Google Translate web API."""

    def __init__(
        self,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent

    def translate(self, request: TranslationRequest) -> TranslationResponse:
        if not request.text:
            raise TranslationError("Cannot translate empty text")

        http_request = build_request(
            request.text,
            request.source_language,
            request.target_language,
            user_agent=self.user_agent,
        )
        urllib_request = urllib.request.Request(
            http_request.url,
            data=http_request.body,
            headers=http_request.headers,
            method=http_request.method,
        )

        logger.debug(
            "Requesting translation %s -> %s (%d characters)",
            request.source_language or "auto",
            request.target_language or "default",
            len(request.text),
        )
        try:
            with urllib.request.urlopen(urllib_request, timeout=self.timeout) as response:
                payload = response.read()
        except urllib.error.HTTPError as exc:
            raise TransportFailure(
                f"Google Translate answered with HTTP {exc.code}: {exc.reason}"
            ) from exc
        except urllib.error.URLError as exc:
            if isinstance(exc.reason, socket.timeout):
                raise TransportFailure("Request to Google Translate timed out") from exc
            raise TransportFailure(
                f"Network error while contacting Google Translate: {exc.reason}"
            ) from exc
        except socket.timeout as exc:
            raise TransportFailure("Request to Google Translate timed out") from exc
        except OSError as exc:
            raise TransportFailure(
                f"Network error while contacting Google Translate: {exc}"
            ) from exc

        return extract_translation(payload)

# =============================================================================
# core/services/reference_scanner.py - Asset Reference Scanner
# =============================================================================
# Walks arbitrary document trees and reports string leaves that point at
# binary content, with the path to reach them.
#
# Classification order for a string leaf:
#   1. inline    - data:<mime>;base64,...
#   2. canonical - starts with the object storage public base URL
#   3. legacy    - matches the configured legacy storage pattern
#
# Also hosts the parsers that turn a reference into something usable:
# decoded inline bytes, a legacy object name, or a canonical object key.
# =============================================================================

from __future__ import annotations

import base64
import binascii
import logging
import re
from collections.abc import Callable, Iterable
from typing import Any
from urllib.parse import unquote, urlsplit

from app.exceptions import ReferenceParseError
from core.models.references import DataUri, ReferenceKind, ScanHit
from lib.utils import document_id_of

logger = logging.getLogger(__name__)

HitCallback = Callable[[str, str, ReferenceKind], None]

ROOT_PATH = "(root)"

INTERESTING_FIELD_RE = re.compile(r"(logo|cover|photo|avatar|image|gallery|banner|thumbnail)", re.IGNORECASE)

_INLINE_PREFIX_RE = re.compile(r"^data:([a-zA-Z0-9.+-]+/[a-zA-Z0-9.+-]+)[;,]")
_DATA_URI_RE = re.compile(r"^data:([a-zA-Z0-9.+-]+/[a-zA-Z0-9.+-]+);base64,([A-Za-z0-9+/=\s]+)$")


# =============================================================================
# Parsers
# =============================================================================

def parse_data_uri(value: str) -> DataUri:
    """
    Decode an inline base64 data URI.

    Raises:
        ReferenceParseError: If the value isn't a well-formed base64 data URI
    """
    match = _DATA_URI_RE.match(value.strip())
    if not match:
        raise ReferenceParseError(value, "not a base64 data URI")
    mime, payload = match.groups()
    # Padding in stored payloads is unreliable; normalize it before decoding
    payload = "".join(payload.split()).rstrip("=")
    if "=" in payload or len(payload) % 4 == 1:
        raise ReferenceParseError(value, "invalid base64 payload")
    payload += "=" * (-len(payload) % 4)
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ReferenceParseError(value, f"invalid base64 payload: {e}") from e
    return DataUri(mime=mime.lower(), data=data)


def inline_mime(value: str) -> str | None:
    """MIME type declared by an inline reference, without decoding it."""
    match = _INLINE_PREFIX_RE.match(value.strip())
    return match.group(1).lower() if match else None


def parse_legacy_object_name(url: str) -> str | None:
    """
    Extract the object name from a legacy storage URL.

    Handles ".../o/<url-encoded name>" download URLs and
    "storage.googleapis.com/<bucket>/<name>" URLs.

    Example:
        parse_legacy_object_name("https://legacy.example.com/o/foo%2Fbar.jpg")
        # -> "foo/bar.jpg"
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return None

    path = parts.path
    marker = path.find("/o/")
    if marker >= 0:
        name = unquote(path[marker + 3:])
        return name or None

    if parts.netloc.lower() == "storage.googleapis.com":
        segments = [s for s in path.split("/") if s]
        if len(segments) >= 2:
            return unquote("/".join(segments[1:]))
    return None


def parse_canonical_key(url: str, canonical_base: str) -> str | None:
    """
    Extract the object key from a canonical public URL.

    Example:
        parse_canonical_key("https://cdn.x.com/logos/b1/1_logo.png", "https://cdn.x.com")
        # -> "logos/b1/1_logo.png"
    """
    base = canonical_base.rstrip("/")
    if not url.startswith(base + "/"):
        return None
    rest = url[len(base):]
    rest = rest.split("?", 1)[0].split("#", 1)[0]
    key = unquote(rest.lstrip("/"))
    return key or None


# =============================================================================
# Classification
# =============================================================================

class ReferenceClassifier:
    """
    Decides whether a string is an asset reference, and of which kind.

    Example:
        classifier = ReferenceClassifier("https://cdn.x.com", re.compile("legacy\\.example\\.com"))
        classifier.classify("data:image/png;base64,iVBO")  # ReferenceKind.INLINE
    """

    def __init__(self, canonical_base: str, legacy_pattern: re.Pattern[str] | None = None):
        self.canonical_base = canonical_base.rstrip("/")
        self.legacy_pattern = legacy_pattern

    def is_inline(self, value: str) -> bool:
        return bool(_INLINE_PREFIX_RE.match(value))

    def is_canonical(self, value: str) -> bool:
        return bool(self.canonical_base) and value.startswith(self.canonical_base + "/")

    def is_legacy(self, value: str) -> bool:
        return self.legacy_pattern is not None and self.legacy_pattern.search(value) is not None

    def classify(self, value: Any) -> ReferenceKind | None:
        if not isinstance(value, str):
            return None
        s = value.strip()
        if not s:
            return None
        if self.is_inline(s):
            return ReferenceKind.INLINE
        if self.is_canonical(s):
            return ReferenceKind.CANONICAL
        if self.is_legacy(s):
            return ReferenceKind.LEGACY
        return None

    def object_key_for(self, reference: str, kind: ReferenceKind) -> str | None:
        """Storage key a legacy or canonical reference should resolve to."""
        if kind == ReferenceKind.CANONICAL:
            return parse_canonical_key(reference, self.canonical_base)
        if kind == ReferenceKind.LEGACY:
            return parse_legacy_object_name(reference)
        return None


# =============================================================================
# Scanner
# =============================================================================

class ReferenceScanner:
    """
    Recursive tree walker.

    walk() reports every classified string leaf; walk_interesting() only
    reports leaves under asset-like field names (logo, image, ...).
    """

    def __init__(self, classifier: ReferenceClassifier):
        self.classifier = classifier

    def walk(self, value: Any, on_hit: HitCallback, path: str = "") -> None:
        """Call on_hit(path, reference, kind) for each reference in value."""
        self._walk(value, on_hit, path, last_key="", interesting_only=False)

    def walk_interesting(self, value: Any, on_hit: HitCallback, path: str = "") -> None:
        self._walk(value, on_hit, path, last_key="", interesting_only=True)

    def _walk(
        self,
        value: Any,
        on_hit: HitCallback,
        path: str,
        last_key: str,
        interesting_only: bool,
    ) -> None:
        if isinstance(value, str):
            kind = self.classifier.classify(value)
            if kind is None:
                return
            if interesting_only and not _is_interesting(path, last_key):
                return
            on_hit(path or ROOT_PATH, value.strip(), kind)
            return

        if isinstance(value, list):
            for i, item in enumerate(value):
                self._walk(item, on_hit, f"{path}[{i}]", last_key, interesting_only)
            return

        if isinstance(value, dict):
            for key, item in value.items():
                key = str(key)
                next_path = f"{path}.{key}" if path else key
                self._walk(item, on_hit, next_path, key, interesting_only)

    def scan_document(
        self,
        collection: str,
        document: dict[str, Any],
        kinds: Iterable[ReferenceKind] | None = None,
        interesting_only: bool = False,
    ) -> list[ScanHit]:
        """Collect ScanHits for one document, optionally filtered by kind."""
        wanted = set(kinds) if kinds is not None else None
        doc_id = document_id_of(document)
        hits: list[ScanHit] = []

        def collect(field_path: str, reference: str, kind: ReferenceKind) -> None:
            if wanted is None or kind in wanted:
                hits.append(ScanHit(collection, doc_id, field_path, reference, kind))

        body = {k: v for k, v in document.items() if k != "id"}
        if interesting_only:
            self.walk_interesting(body, collect)
        else:
            self.walk(body, collect)
        return hits


def _is_interesting(path: str, last_key: str) -> bool:
    key = last_key or path.rsplit(".", 1)[-1]
    return bool(INTERESTING_FIELD_RE.search(key) or INTERESTING_FIELD_RE.search(path))

"""Tag grammar for structured commands embedded in assistant text.

The model writes bracketed markers inside otherwise free-form chat:

    [SITEMAP: Home, About Us, Contact]
    [METADATA: businessName=Austin Tacos, domain=tacos.example]
    [STYLES: primaryColor=#FF5733]
    [PREVIEW: section=hero] ...html... [/PREVIEW]
    [CLEAR_PREVIEW]
    [GENERATE_INDEX] ...html... [/GENERATE_INDEX]
    [GET_APPROVED_SECTIONS]

Each kind has its own recognizer returning an optional value. A marker whose
body does not parse is logged and treated as absent, so one malformed tag can
never break a chat turn. Nothing in this module raises.
"""

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Tuple

from sitechat.errors import ParseError
from sitechat.logger import excerpt, get_logger

logger = get_logger(__name__)

SITEMAP = "sitemap"
METADATA = "metadata"
STYLES = "styles"
PREVIEW = "preview"
CLEAR_PREVIEW = "clearPreview"
GENERATE_INDEX = "generateIndex"
GET_APPROVED_SECTIONS = "getApprovedSections"

MARKERS = {
    SITEMAP: "[SITEMAP:",
    METADATA: "[METADATA:",
    STYLES: "[STYLES:",
    PREVIEW: "[PREVIEW:",
    CLEAR_PREVIEW: "[CLEAR_PREVIEW]",
    GENERATE_INDEX: "[GENERATE_INDEX]",
    GET_APPROVED_SECTIONS: "[GET_APPROVED_SECTIONS]",
}

_SITEMAP_RE = re.compile(r"\[SITEMAP:\s*([^\]]+)\]")
_METADATA_RE = re.compile(r"\[METADATA:\s*([^\]]+)\]")
_STYLES_RE = re.compile(r"\[STYLES:\s*([^\]]+)\]")
_PREVIEW_RE = re.compile(r"\[PREVIEW:\s*section=([\w-]+)\s*\]([\s\S]*?)\[/PREVIEW\]")
_GENERATE_INDEX_RE = re.compile(r"\[GENERATE_INDEX\]([\s\S]*?)\[/GENERATE_INDEX\]")

# Spans removed for display, paired forms first so their bodies go with them.
_STRIP_PATTERNS = [
    re.compile(r"\[PREVIEW:[\s\S]*?\[/PREVIEW\]"),
    re.compile(r"\[GENERATE_INDEX\][\s\S]*?\[/GENERATE_INDEX\]"),
    re.compile(r"\[SITEMAP:[^\]]*\]"),
    re.compile(r"\[METADATA:[^\]]*\]"),
    re.compile(r"\[STYLES:[^\]]*\]"),
    re.compile(r"\[CLEAR_PREVIEW\]"),
    re.compile(r"\[GET_APPROVED_SECTIONS\]"),
]
_EXTRA_NEWLINES_RE = re.compile(r"\n{3,}")


@dataclass(frozen=True)
class Detection:
    """Everything recognized in one message. Absent kinds are None/False."""

    sitemap: Optional[Tuple[str, ...]] = None
    metadata: Optional[Dict[str, str]] = None
    styles: Optional[Dict[str, str]] = None
    preview: Optional[Tuple[str, str]] = None
    clear_preview: bool = False
    generate_index: Optional[str] = None
    get_approved_sections: bool = False

    def kinds(self) -> FrozenSet[str]:
        found = set()
        if self.sitemap is not None:
            found.add(SITEMAP)
        if self.metadata is not None:
            found.add(METADATA)
        if self.styles is not None:
            found.add(STYLES)
        if self.preview is not None:
            found.add(PREVIEW)
        if self.clear_preview:
            found.add(CLEAR_PREVIEW)
        if self.generate_index is not None:
            found.add(GENERATE_INDEX)
        if self.get_approved_sections:
            found.add(GET_APPROVED_SECTIONS)
        return frozenset(found)

    def is_empty(self) -> bool:
        return not self.kinds()


def parse_pairs(body: str) -> Dict[str, str]:
    """Parse `k=v, k2=v2`. Values keep any further `=`; blank sides are dropped."""
    pairs = {}
    for chunk in body.split(","):
        key, *value_parts = chunk.split("=")
        key = key.strip()
        value = "=".join(value_parts).strip()
        if key and value:
            pairs[key] = value
    return pairs


def _malformed(kind: str, text: str) -> None:
    error = ParseError(f"Malformed {kind} tag")
    logger.warning(f"{error}: {excerpt(text)}")


def extract_sitemap(text: str) -> Optional[Tuple[str, ...]]:
    match = _SITEMAP_RE.search(text)
    if not match:
        return None
    pages = tuple(p.strip() for p in match.group(1).split(",") if p.strip())
    return pages or None


def extract_metadata(text: str) -> Optional[Dict[str, str]]:
    match = _METADATA_RE.search(text)
    if not match:
        return None
    return parse_pairs(match.group(1)) or None


def extract_styles(text: str) -> Optional[Dict[str, str]]:
    match = _STYLES_RE.search(text)
    if not match:
        return None
    return parse_pairs(match.group(1)) or None


def extract_preview(text: str) -> Optional[Tuple[str, str]]:
    match = _PREVIEW_RE.search(text)
    if not match:
        return None
    html = match.group(2).strip()
    if not html:
        return None
    return match.group(1), html


def extract_generate_index(text: str) -> Optional[str]:
    match = _GENERATE_INDEX_RE.search(text)
    if not match:
        return None
    return match.group(1).strip() or None


def _recognize(kind: str, recognizer, text: str):
    if MARKERS[kind] not in text:
        return None
    try:
        value = recognizer(text)
    except Exception as e:
        logger.error(f"Failed to extract {kind}: {e}", exc_info=True)
        return None
    if value is None:
        _malformed(kind, text)
    return value


class TagGrammar:
    """Recognizes and removes command tags. Stateless."""

    def detect(self, text: str) -> Detection:
        if not isinstance(text, str) or not text:
            return Detection()

        detection = Detection(
            sitemap=_recognize(SITEMAP, extract_sitemap, text),
            metadata=_recognize(METADATA, extract_metadata, text),
            styles=_recognize(STYLES, extract_styles, text),
            preview=_recognize(PREVIEW, extract_preview, text),
            clear_preview=MARKERS[CLEAR_PREVIEW] in text,
            generate_index=_recognize(GENERATE_INDEX, extract_generate_index, text),
            get_approved_sections=MARKERS[GET_APPROVED_SECTIONS] in text,
        )
        if not detection.is_empty():
            logger.debug(f"Detected tags: {sorted(detection.kinds())}")
        return detection

    def has_tags(self, text: str) -> bool:
        return not self.detect(text).is_empty()

    def tag_kinds(self, text: str) -> FrozenSet[str]:
        return self.detect(text).kinds()

    def strip_tags(self, text: str) -> str:
        """Remove every recognized tag span for display.

        Runs to a fixed point so that removing one span can never expose a
        new tag to a later call.
        """
        if not isinstance(text, str):
            return text

        current = text
        while True:
            cleaned = current
            for pattern in _STRIP_PATTERNS:
                cleaned = pattern.sub("", cleaned)
            cleaned = _EXTRA_NEWLINES_RE.sub("\n\n", cleaned).strip()
            if cleaned == current:
                return cleaned
            current = cleaned

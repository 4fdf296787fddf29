"""Command values extracted from one assistant message.

Commands are transient: built per inbound message, applied once by the
dispatcher, then discarded.
"""

from dataclasses import dataclass, field
from typing import ClassVar, Dict, Tuple, Union


@dataclass(frozen=True)
class SetSitemap:
    kind: ClassVar[str] = "sitemap"
    pages: Tuple[str, ...]


@dataclass(frozen=True)
class MergeMetadata:
    kind: ClassVar[str] = "metadata"
    entries: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class MergeStyles:
    kind: ClassVar[str] = "styles"
    entries: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SetPreview:
    kind: ClassVar[str] = "preview"
    section: str
    html: str


@dataclass(frozen=True)
class ClearPreview:
    kind: ClassVar[str] = "clearPreview"


@dataclass(frozen=True)
class GenerateFinalSite:
    kind: ClassVar[str] = "generateIndex"
    html: str


@dataclass(frozen=True)
class RequestApprovedSections:
    kind: ClassVar[str] = "getApprovedSections"


Command = Union[
    SetSitemap,
    MergeMetadata,
    MergeStyles,
    SetPreview,
    ClearPreview,
    GenerateFinalSite,
    RequestApprovedSections,
]

"""Typed event bus between the protocol layer and the UI that renders it"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List

from sitechat.logger import get_logger

logger = get_logger(__name__)


class EventKind(str, Enum):
    SITEMAP_UPDATED = "sitemapUpdated"
    METADATA_UPDATED = "metadataUpdated"
    STYLES_UPDATED = "stylesUpdated"
    PREVIEW_UPDATED = "previewUpdated"
    PREVIEW_CLEARED = "previewCleared"
    APPROVED_SECTIONS_LOADED = "approvedSectionsLoaded"
    INDEX_GENERATED = "indexGenerated"
    SECTION_APPROVED = "sectionApproved"
    REFRESH_PREVIEW = "refreshPreview"
    APPROVAL_CONTROLS = "approvalControls"
    SYSTEM_NOTICE = "systemNotice"


@dataclass(frozen=True)
class Event:
    kind: EventKind
    payload: dict = field(default_factory=dict)


Handler = Callable[[Event], None]


class EventBus:
    """Fans published events out to subscribers of that kind.

    A failing subscriber is logged and does not stop delivery to the others.
    """

    def __init__(self):
        self.subscribers: Dict[EventKind, List[Handler]] = {}

    def subscribe(self, kind: EventKind, handler: Handler) -> Callable[[], None]:
        self.subscribers.setdefault(kind, []).append(handler)

        def unsubscribe():
            handlers = self.subscribers.get(kind, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def subscribe_all(self, handler: Handler) -> Callable[[], None]:
        cancels = [self.subscribe(kind, handler) for kind in EventKind]

        def unsubscribe():
            for cancel in cancels:
                cancel()

        return unsubscribe

    def publish(self, kind: EventKind, payload: dict | None = None) -> Event:
        event = Event(kind=kind, payload=payload or {})
        for handler in list(self.subscribers.get(kind, [])):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Subscriber for {kind.value} failed: {e}", exc_info=True)
        return event

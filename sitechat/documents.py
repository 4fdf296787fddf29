"""Server-side project state operations.

Every mutation is a merge or an overwrite keyed by name, so a request repeated
by a client retry leaves the documents exactly as a single request would.
"""

from typing import Dict, List, Optional

from sitechat import db
from sitechat.logger import get_logger
from sitechat.utils import build_pages, now_iso, render_preview_page, styles_to_css

logger = get_logger(__name__)

SITEMAP = "sitemap"
METADATA = "metadata"
STYLES = "styles"
PREVIEW = "preview"
CONVERSATION = "conversation"
PUBLISHED = "published"

INDEX_FILE = "index.html"
STYLES_FILE = "styles.css"


def preview_url(session_id: str) -> str:
    return f"/prospects/{session_id}/{INDEX_FILE}"


def initialize_session(session_id: str) -> bool:
    """Create the folder and blank live artifact. Returns True when created."""
    if db.read_file(session_id, INDEX_FILE) is not None:
        return False
    db.write_file(session_id, INDEX_FILE, render_preview_page())
    logger.info(f"Initialized session folder for {session_id}")
    return True


def set_sitemap(session_id: str, names: List[str]) -> dict:
    initialize_session(session_id)
    sitemap = {"pages": build_pages(names), "updatedAt": now_iso()}
    db.set(session_id, SITEMAP, sitemap)
    logger.info(f"Sitemap updated for {session_id}: {len(sitemap['pages'])} pages")
    return sitemap


def _merge(session_id: str, name: str, updates: Dict[str, str]) -> Dict[str, str]:
    initialize_session(session_id)
    current = db.get(session_id, name) or {}
    current.update(updates)
    db.set(session_id, name, current)
    return current


def merge_metadata(session_id: str, updates: Dict[str, str]) -> Dict[str, str]:
    metadata = _merge(session_id, METADATA, updates)
    logger.info(f"Metadata updated for {session_id}: {sorted(updates)}")
    return metadata


def merge_styles(session_id: str, updates: Dict[str, str]) -> Dict[str, str]:
    styles = _merge(session_id, STYLES, updates)
    db.write_file(session_id, STYLES_FILE, styles_to_css(styles))
    logger.info(f"Styles updated for {session_id}: {sorted(updates)}")
    return styles


def set_preview(session_id: str, section: str, html: str) -> str:
    """Replace the pending section and re-render the live artifact"""
    initialize_session(session_id)
    db.set(session_id, PREVIEW, {"section": section, "html": html, "updatedAt": now_iso()})
    db.write_file(session_id, INDEX_FILE, render_preview_page(html))
    logger.info(f"Preview updated: {section} for {session_id}")
    return preview_url(session_id)


def clear_preview(session_id: str) -> None:
    """Drop the pending section. Approved sections are not touched."""
    initialize_session(session_id)
    db.delete(session_id, PREVIEW)
    db.write_file(session_id, INDEX_FILE, render_preview_page())
    logger.info(f"Preview cleared for {session_id}")


def finalize(session_id: str, html: str) -> None:
    initialize_session(session_id)
    db.delete(session_id, PREVIEW)
    db.write_file(session_id, INDEX_FILE, html)
    db.set(session_id, PUBLISHED, {"publishedAt": now_iso()})
    logger.info(f"Final site generated for {session_id}")


def empty_conversation(session_id: str) -> dict:
    return {
        "userId": session_id,
        "messages": [],
        "approvedSections": {},
        "messageCount": 0,
    }


def get_conversation(session_id: str) -> dict:
    return db.get(session_id, CONVERSATION) or empty_conversation(session_id)


def save_conversation(
    session_id: str,
    messages: Optional[List[dict]] = None,
    approved_section: Optional[dict] = None,
) -> dict:
    initialize_session(session_id)
    conversation = get_conversation(session_id)
    conversation.setdefault("approvedSections", {})

    if messages is not None:
        conversation["messages"] = messages
        conversation["messageCount"] = len(messages)

    if approved_section is not None:
        section = approved_section["section"]
        conversation["approvedSections"][section] = {
            "html": approved_section["html"],
            "approvedAt": now_iso(),
        }
        logger.info(f"Section approved: {section} for {session_id}")

    conversation["savedAt"] = now_iso()
    db.set(session_id, CONVERSATION, conversation)
    logger.info(
        f"Conversation saved for {session_id} ({conversation.get('messageCount', 0)} messages)"
    )
    return conversation


def read_sitemap(session_id: str) -> dict:
    return db.get(session_id, SITEMAP) or {"pages": []}


def read_metadata(session_id: str) -> dict:
    return db.get(session_id, METADATA) or {}


def read_styles(session_id: str) -> dict:
    return db.get(session_id, STYLES) or {}

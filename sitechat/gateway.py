"""Typed operations against the remote project document of one session"""

from typing import Dict, List, Optional, Sequence

from sitechat.client import ResilientClient
from sitechat.errors import ProtocolError
from sitechat.logger import get_logger
from sitechat.models import (
    ApprovedSection,
    Conversation,
    ConversationMessage,
    ConversationResponse,
    MetadataResponse,
    Page,
    PreviewResponse,
    SaveConversationResponse,
    SitemapResponse,
    StylesResponse,
    SuccessResponse,
)

logger = get_logger(__name__)


class ProjectStateGateway:
    def __init__(self, client: ResilientClient, user_id: str):
        if not user_id:
            raise ValueError("ProjectStateGateway requires user_id")
        self.client = client
        self.user_id = user_id

    async def set_sitemap(self, pages: Sequence[str]) -> List[Page]:
        result = await self.client.request(
            "POST",
            "/api/update-sitemap",
            {"userId": self.user_id, "pages": list(pages)},
            envelope=SitemapResponse,
        )
        logger.info(f"Sitemap updated for {self.user_id}: {len(result.sitemap.pages)} pages")
        return result.sitemap.pages

    async def merge_metadata(self, entries: Dict[str, str]) -> Dict[str, str]:
        result = await self.client.request(
            "POST",
            "/api/update-metadata",
            {"userId": self.user_id, "data": dict(entries)},
            envelope=MetadataResponse,
        )
        return result.metadata

    async def merge_styles(self, entries: Dict[str, str]) -> Dict[str, str]:
        result = await self.client.request(
            "POST",
            "/api/update-styles",
            {"userId": self.user_id, "styles": dict(entries)},
            envelope=StylesResponse,
        )
        return result.styles

    async def set_preview(self, section: str, html: str) -> PreviewResponse:
        return await self.client.request(
            "POST",
            "/api/update-preview",
            {"userId": self.user_id, "section": section, "html": html},
            envelope=PreviewResponse,
        )

    async def clear_preview(self) -> None:
        await self.client.request(
            "POST",
            "/api/update-preview/clear",
            {"userId": self.user_id},
            envelope=SuccessResponse,
        )

    async def finalize(self, html: str) -> None:
        """Publish the generated page. The session stays editable afterwards."""
        await self.client.request(
            "POST",
            "/api/generate-index",
            {"userId": self.user_id, "html": html},
            envelope=SuccessResponse,
        )

    async def get_conversation(self) -> Conversation:
        result = await self.client.request(
            "GET",
            f"/api/get-conversation/{self.user_id}",
            envelope=ConversationResponse,
        )
        return result.conversation

    async def fetch_approved_sections(self) -> Dict[str, ApprovedSection]:
        conversation = await self.get_conversation()
        return conversation.approvedSections

    async def save_conversation(
        self,
        messages: Optional[Sequence[ConversationMessage]] = None,
        approved_section: Optional[dict] = None,
    ) -> int:
        payload = {"userId": self.user_id}
        if messages is not None:
            payload["messages"] = [m.model_dump() for m in messages]
        if approved_section is not None:
            payload["approvedSection"] = approved_section
        result = await self.client.request(
            "POST",
            "/api/save-conversation",
            payload,
            envelope=SaveConversationResponse,
        )
        return result.messageCount

    async def approve_section(self, section: str, html: str) -> None:
        await self.save_conversation(approved_section={"section": section, "html": html})
        logger.info(f"Section approved for {self.user_id}: {section}")

    async def health(self) -> dict:
        try:
            return await self.client.request("GET", "/health")
        except ProtocolError as e:
            logger.error(f"Health check failed: {e}")
            return {"status": "error", "error": str(e)}

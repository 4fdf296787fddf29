"""Approval state machine for the live preview surface.

    EMPTY            --propose-->  PENDING_APPROVAL
    PENDING_APPROVAL --propose-->  PENDING_APPROVAL
    PENDING_APPROVAL --approve-->  APPROVED
    APPROVED         --propose-->  PENDING_APPROVAL
    any              --clear---->  EMPTY
    any              --finalize->  FINALIZED

The artifact behind the surface is rewritten in place at a stable address, so
every refresh signal carries a fresh `t=` token.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

import config
from sitechat.errors import NoPendingPreview
from sitechat.events import EventBus, EventKind
from sitechat.gateway import ProjectStateGateway
from sitechat.logger import get_logger
from sitechat.models import ApprovedSection, PendingPreview
from sitechat.utils import add_freshness, now_iso

logger = get_logger(__name__)


class PreviewState(str, Enum):
    EMPTY = "empty"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    FINALIZED = "finalized"


@dataclass
class ApprovalResult:
    approved: bool
    section: Optional[str] = None
    condition: Optional[NoPendingPreview] = None


class PreviewSynchronizer:
    def __init__(
        self,
        gateway: ProjectStateGateway,
        events: EventBus,
        refresh_delay_ms: int = config.PREVIEW_REFRESH_DELAY_MS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.gateway = gateway
        self.events = events
        self.refresh_delay_ms = refresh_delay_ms
        self._sleep = sleep

        self.state = PreviewState.EMPTY
        self.pending: Optional[PendingPreview] = None
        self.approved_sections: Dict[str, ApprovedSection] = {}
        self.approval_controls_visible = False
        self.surface_url = f"/prospects/{gateway.user_id}/index.html"

    async def propose(self, section: str, html: str) -> str:
        """Store a new pending section, superseding any unapproved one"""
        receipt = await self.gateway.set_preview(section, html)
        self.pending = PendingPreview(section=section, html=html)
        self.state = PreviewState.PENDING_APPROVAL
        self.surface_url = receipt.previewUrl
        self._set_approval_controls(True)
        await self.refresh()
        logger.info(f"Preview pending approval: {section}")
        return receipt.previewUrl

    async def approve(self, section: Optional[str] = None) -> ApprovalResult:
        """Commit the pending section. With nothing pending this is a no-op."""
        if self.pending is None or (section and section != self.pending.section):
            condition = NoPendingPreview(
                f"No pending preview for section {section!r}"
                if section
                else "No pending preview to approve"
            )
            logger.warning(f"Approval skipped in state {self.state.value}: {condition}")
            return ApprovalResult(approved=False, section=section, condition=condition)

        pending = self.pending
        await self.gateway.approve_section(pending.section, pending.html)
        self.approved_sections[pending.section] = ApprovedSection(
            html=pending.html, approvedAt=now_iso()
        )
        self.pending = None
        self.state = PreviewState.APPROVED
        self._set_approval_controls(False)
        self.events.publish(EventKind.SECTION_APPROVED, {"section": pending.section})
        await self.refresh()
        return ApprovalResult(approved=True, section=pending.section)

    async def clear(self) -> None:
        await self.gateway.clear_preview()
        self.pending = None
        self.state = PreviewState.EMPTY
        self._set_approval_controls(False)
        await self.refresh()

    async def finalize(self, html: str) -> None:
        await self.gateway.finalize(html)
        self.pending = None
        self.state = PreviewState.FINALIZED
        self.surface_url = f"/prospects/{self.gateway.user_id}/index.html"
        self._set_approval_controls(False)
        await self.refresh()

    async def refresh(self) -> str:
        if self.refresh_delay_ms:
            await self._sleep(self.refresh_delay_ms / 1000)
        url = add_freshness(self.surface_url)
        self.events.publish(EventKind.REFRESH_PREVIEW, {"url": url})
        return url

    def _set_approval_controls(self, visible: bool) -> None:
        self.approval_controls_visible = visible
        self.events.publish(EventKind.APPROVAL_CONTROLS, {"visible": visible})

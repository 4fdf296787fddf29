"""Applies the commands found in one assistant message.

Order per message is fixed: sitemap, metadata, styles, then preview or
clear-preview (clear wins when both are present), then approved-section
lookup, then final-site generation. Metadata and styles land before a preview
that may reference them.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sitechat.commands import (
    ClearPreview,
    Command,
    GenerateFinalSite,
    MergeMetadata,
    MergeStyles,
    RequestApprovedSections,
    SetPreview,
    SetSitemap,
)
from sitechat.events import EventBus, EventKind
from sitechat.gateway import ProjectStateGateway
from sitechat.logger import get_logger
from sitechat.models import ApprovedSection
from sitechat.preview import PreviewSynchronizer
from sitechat.tagging import Detection, TagGrammar

logger = get_logger(__name__)

_DATA_KINDS = {SetSitemap.kind, MergeMetadata.kind, MergeStyles.kind}
_SURFACE_KINDS = {SetPreview.kind, ClearPreview.kind, GenerateFinalSite.kind}


@dataclass
class CommandFailure:
    kind: str
    error: Exception


@dataclass
class DispatchReport:
    applied: List[str] = field(default_factory=list)
    failures: List[CommandFailure] = field(default_factory=list)
    approved_sections: Optional[Dict[str, ApprovedSection]] = None

    @property
    def ok(self) -> bool:
        return not self.failures


def plan_commands(detection: Detection) -> List[Command]:
    commands: List[Command] = []
    if detection.sitemap is not None:
        commands.append(SetSitemap(pages=detection.sitemap))
    if detection.metadata is not None:
        commands.append(MergeMetadata(entries=detection.metadata))
    if detection.styles is not None:
        commands.append(MergeStyles(entries=detection.styles))
    if detection.clear_preview:
        commands.append(ClearPreview())
    elif detection.preview is not None:
        section, html = detection.preview
        commands.append(SetPreview(section=section, html=html))
    if detection.get_approved_sections:
        commands.append(RequestApprovedSections())
    if detection.generate_index is not None:
        commands.append(GenerateFinalSite(html=detection.generate_index))
    return commands


class CommandDispatcher:
    def __init__(
        self,
        gateway: ProjectStateGateway,
        preview: PreviewSynchronizer,
        events: EventBus,
        grammar: Optional[TagGrammar] = None,
    ):
        self.gateway = gateway
        self.preview = preview
        self.events = events
        self.grammar = grammar or TagGrammar()
        self._handlers = {
            SetSitemap: self._apply_sitemap,
            MergeMetadata: self._apply_metadata,
            MergeStyles: self._apply_styles,
            SetPreview: self._apply_preview,
            ClearPreview: self._apply_clear_preview,
            RequestApprovedSections: self._apply_get_approved_sections,
            GenerateFinalSite: self._apply_generate_index,
        }

    async def dispatch(self, text: str) -> DispatchReport:
        return await self.apply(plan_commands(self.grammar.detect(text)))

    async def apply(self, commands: List[Command]) -> DispatchReport:
        report = DispatchReport()
        for command in commands:
            try:
                await self._handlers[type(command)](command, report)
                report.applied.append(command.kind)
            except Exception as e:
                logger.error(f"Failed to apply {command.kind}: {e}", exc_info=True)
                report.failures.append(CommandFailure(kind=command.kind, error=e))

        applied = set(report.applied)
        if applied & _DATA_KINDS and not applied & _SURFACE_KINDS:
            await self.preview.refresh()

        if report.failures:
            logger.warning(
                f"Dispatch finished with {len(report.failures)} failure(s): "
                f"{[f.kind for f in report.failures]}"
            )
        return report

    async def _apply_sitemap(self, command: SetSitemap, report: DispatchReport):
        pages = await self.gateway.set_sitemap(command.pages)
        self.events.publish(
            EventKind.SITEMAP_UPDATED, {"pages": [p.model_dump() for p in pages]}
        )

    async def _apply_metadata(self, command: MergeMetadata, report: DispatchReport):
        metadata = await self.gateway.merge_metadata(command.entries)
        self.events.publish(EventKind.METADATA_UPDATED, {"metadata": metadata})

    async def _apply_styles(self, command: MergeStyles, report: DispatchReport):
        styles = await self.gateway.merge_styles(command.entries)
        self.events.publish(EventKind.STYLES_UPDATED, {"styles": styles})

    async def _apply_preview(self, command: SetPreview, report: DispatchReport):
        preview_url = await self.preview.propose(command.section, command.html)
        self.events.publish(
            EventKind.PREVIEW_UPDATED,
            {"section": command.section, "previewUrl": preview_url},
        )

    async def _apply_clear_preview(self, command: ClearPreview, report: DispatchReport):
        await self.preview.clear()
        self.events.publish(EventKind.PREVIEW_CLEARED)

    async def _apply_get_approved_sections(
        self, command: RequestApprovedSections, report: DispatchReport
    ):
        sections = await self.gateway.fetch_approved_sections()
        report.approved_sections = sections
        self.events.publish(
            EventKind.APPROVED_SECTIONS_LOADED,
            {"sections": {name: s.model_dump() for name, s in sections.items()}},
        )

    async def _apply_generate_index(self, command: GenerateFinalSite, report: DispatchReport):
        await self.preview.finalize(command.html)
        self.events.publish(EventKind.INDEX_GENERATED)

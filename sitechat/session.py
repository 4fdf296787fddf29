"""Conversation session: one round trip per user turn, plus resumption"""

import asyncio
from dataclasses import dataclass
from typing import Dict, List, Optional

from pydantic import ValidationError

import config
from sitechat.client import ResilientClient
from sitechat.dispatcher import CommandDispatcher, DispatchReport
from sitechat.errors import InvalidResponseShape, ProtocolError, TurnInProgress
from sitechat.events import EventBus, EventKind
from sitechat.gateway import ProjectStateGateway
from sitechat.logger import get_logger
from sitechat.models import ApprovedSection, ConversationMessage, SessionExport
from sitechat.preview import ApprovalResult, PreviewSynchronizer
from sitechat.tagging import TagGrammar
from sitechat.utils import now_iso

logger = get_logger(__name__)

RESUME_INSTRUCTION = (
    "SYSTEM: Resumed session detected. Please use your tools to read the "
    "conversation, metadata, sitemap and styles to catch yourself up on our "
    "progress. Then greet the user naturally and let them know where we left off."
)

GREETING = (
    "Hey! I'm here to build your website with you. Do you have a site "
    "already or are we building from scratch?"
)

APPROVAL_MESSAGE = "Approved!"


@dataclass
class TurnResult:
    """Result of one turn"""

    status: str  # "success" or "error"
    message: str
    reply: Optional[str] = None
    dispatch: Optional[DispatchReport] = None
    persisted: bool = False


@dataclass
class SessionStart:
    resumed: bool
    message_count: int = 0
    greeting: Optional[str] = None
    catch_up: Optional[TurnResult] = None


@dataclass
class Approval:
    result: ApprovalResult
    turn: Optional[TurnResult] = None
    error: Optional[str] = None


def extract_reply_text(response: dict) -> str:
    """Join the text blocks of a chat envelope `{content: [{type, text}, ...]}`.

    The envelope must have a non-empty content list whose first block carries
    text; anything else is InvalidResponseShape, never an empty string.
    """
    if not response or not isinstance(response, dict):
        raise InvalidResponseShape("Empty response from API")
    content = response.get("content")
    if not isinstance(content, list):
        raise InvalidResponseShape("Invalid response structure: missing content array")
    if not content:
        raise InvalidResponseShape("Invalid response structure: empty content array")
    first = content[0]
    if not isinstance(first, dict) or not first.get("text"):
        raise InvalidResponseShape("Invalid response structure: missing text in content")

    blocks = [
        block["text"]
        for block in content
        if isinstance(block, dict) and block.get("type", "text") == "text" and block.get("text")
    ]
    if not blocks:
        raise InvalidResponseShape("Invalid response structure: no text blocks")
    return "\n".join(blocks)


def format_approved_sections(sections: Dict[str, ApprovedSection]) -> str:
    if not sections:
        return "There are no approved sections yet."
    parts = ["Here are the approved sections:", ""]
    for name, section in sections.items():
        parts.append(f"**{name.upper()}:**\n{section.html}\n")
    return "\n".join(parts).strip()


class ConversationSession:
    def __init__(
        self,
        user_id: str,
        client: ResilientClient,
        gateway: ProjectStateGateway,
        preview: PreviewSynchronizer,
        dispatcher: CommandDispatcher,
        events: EventBus,
        grammar: Optional[TagGrammar] = None,
    ):
        self.user_id = user_id
        self.client = client
        self.gateway = gateway
        self.preview = preview
        self.dispatcher = dispatcher
        self.events = events
        self.grammar = grammar or TagGrammar()

        self.history: List[ConversationMessage] = []
        self.resumed = False
        # Set when stored entries could not be loaded; saving would drop them.
        self.history_incomplete = False
        self._turn_lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._turn_lock.locked()

    def _claim(self) -> None:
        if self._turn_lock.locked():
            raise TurnInProgress("A turn is already in flight")

    async def start(self) -> SessionStart:
        """Load persisted history and, when there is any, run a catch-up turn.

        A failure to load is raised rather than treated as a new session, so a
        later save can never overwrite history that merely failed to load.
        """
        conversation = await self.gateway.get_conversation()
        loaded = self._load_messages(conversation.messages)
        if self.history_incomplete:
            self.events.publish(
                EventKind.SYSTEM_NOTICE,
                {
                    "message": "Some saved messages could not be loaded. History will not be saved this session.",
                    "error": True,
                },
            )

        if not loaded:
            logger.info(f"Session {self.user_id}: new session")
            return SessionStart(resumed=False, greeting=GREETING)

        self.history.extend(loaded)
        self.resumed = True
        logger.info(f"Session {self.user_id}: resuming with {len(loaded)} messages")

        catch_up = await self._guarded_turn(
            ConversationMessage(role="system", content=RESUME_INSTRUCTION)
        )
        return SessionStart(resumed=True, message_count=len(loaded), catch_up=catch_up)

    async def send_turn(self, user_text: str) -> TurnResult:
        if not user_text or not user_text.strip():
            raise ValueError("Message must be a non-empty string")
        return await self._guarded_turn(ConversationMessage(role="user", content=user_text))

    async def approve_pending(self, section: Optional[str] = None) -> Approval:
        """Approve the pending preview and tell the assistant to move on.

        The approval write and the follow-up turn run as one guarded unit, so no
        other turn can interleave with them.
        """
        self._claim()
        async with self._turn_lock:
            pending = self.preview.pending
            try:
                result = await self.preview.approve(section)
            except ProtocolError as e:
                logger.error(f"Session {self.user_id}: approval failed: {e}")
                notice = f"Error: could not approve section: {e}"
                self.events.publish(EventKind.SYSTEM_NOTICE, {"message": notice, "error": True})
                failed = ApprovalResult(
                    approved=False, section=section or (pending.section if pending else None)
                )
                return Approval(result=failed, error=notice)

            if not result.approved:
                return Approval(result=result)

            self.events.publish(
                EventKind.SYSTEM_NOTICE,
                {"message": f"{result.section.upper()} section approved!"},
            )
            turn = await self._turn(ConversationMessage(role="user", content=APPROVAL_MESSAGE))
            return Approval(result=result, turn=turn)

    async def clear(self) -> bool:
        """Start over: drop the history locally and in storage.

        Approved sections are kept. Returns whether the empty history was saved.
        """
        self._claim()
        async with self._turn_lock:
            self.history = []
            self.resumed = False
            self.history_incomplete = False
            logger.info(f"Session {self.user_id}: cleared")
            return await self._persist_history()

    def export(self) -> dict:
        return SessionExport(
            userId=self.user_id,
            messages=list(self.history),
            exportedAt=now_iso(),
        ).model_dump()

    async def import_session(self, data: dict) -> bool:
        """Replace the history with an exported one. Invalid data changes nothing."""
        try:
            imported = SessionExport.model_validate(data)
        except ValidationError as e:
            logger.error(f"Session {self.user_id}: invalid session data: {e.error_count()} error(s)")
            return False

        self._claim()
        async with self._turn_lock:
            self.history = list(imported.messages)
            self.resumed = bool(self.history)
            self.history_incomplete = False
            logger.info(f"Session {self.user_id}: imported {len(self.history)} messages")
            await self._persist_history()
            return True

    async def _guarded_turn(self, message: ConversationMessage) -> TurnResult:
        self._claim()
        async with self._turn_lock:
            return await self._turn(message)

    async def _turn(self, message: ConversationMessage) -> TurnResult:
        """One round trip. The caller holds the turn lock."""
        self.history.append(message)
        return await self._round_trip()

    async def _round_trip(self) -> TurnResult:
        logger.info(f"Session {self.user_id}: sending turn ({len(self.history)} messages)")
        try:
            response = await self.client.request(
                "POST",
                "/api/chat",
                {
                    "messages": [m.model_dump() for m in self.history],
                    "userId": self.user_id,
                },
            )
            reply = extract_reply_text(response)
        except ProtocolError as e:
            logger.error(f"Session {self.user_id}: turn failed: {e}")
            notice = f"Error: {e}"
            self.events.publish(EventKind.SYSTEM_NOTICE, {"message": notice, "error": True})
            return TurnResult(status="error", message=notice)

        self.history.append(ConversationMessage(role="assistant", content=reply))

        report = await self.dispatcher.dispatch(reply)
        if report.approved_sections is not None:
            self.history.append(
                ConversationMessage(
                    role="system",
                    content=format_approved_sections(report.approved_sections),
                )
            )
            self.events.publish(
                EventKind.SYSTEM_NOTICE,
                {"message": f"Loaded {len(report.approved_sections)} approved sections"},
            )
        if report.failures:
            failed = ", ".join(f.kind for f in report.failures)
            self.events.publish(
                EventKind.SYSTEM_NOTICE,
                {"message": f"Some updates could not be saved: {failed}", "error": True},
            )

        persisted = await self._persist_history()
        return TurnResult(
            status="success",
            message=self.grammar.strip_tags(reply),
            reply=reply,
            dispatch=report,
            persisted=persisted,
        )

    async def _persist_history(self) -> bool:
        if self.history_incomplete:
            logger.warning(
                f"Session {self.user_id}: not saving, stored history has entries that could not be loaded"
            )
            return False
        try:
            count = await self.gateway.save_conversation(self.history)
        except ProtocolError as e:
            logger.error(f"Session {self.user_id}: failed to save conversation: {e}")
            return False
        logger.info(f"Session {self.user_id}: conversation saved ({count} messages)")
        return True

    def _load_messages(self, raw_messages: List[dict]) -> List[ConversationMessage]:
        """Validate stored entries. `ai` is the legacy spelling of `assistant`."""
        messages = []
        for raw in raw_messages:
            data = dict(raw) if isinstance(raw, dict) else {}
            if data.get("role") == "ai":
                data["role"] = "assistant"
            try:
                messages.append(ConversationMessage(**data))
            except (TypeError, ValidationError) as e:
                self.history_incomplete = True
                logger.warning(f"Session {self.user_id}: cannot load stored message: {e}")
        return messages


def build_session(
    user_id: str,
    api_url: str = config.API_URL,
    client: Optional[ResilientClient] = None,
    events: Optional[EventBus] = None,
) -> ConversationSession:
    """Wire a session and its collaborators for one session identifier"""
    client = client or ResilientClient(api_url)
    events = events or EventBus()
    grammar = TagGrammar()
    gateway = ProjectStateGateway(client, user_id)
    preview = PreviewSynchronizer(gateway, events)
    dispatcher = CommandDispatcher(gateway, preview, events, grammar)
    return ConversationSession(
        user_id=user_id,
        client=client,
        gateway=gateway,
        preview=preview,
        dispatcher=dispatcher,
        events=events,
        grammar=grammar,
    )

from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Literal


class ConversationMessage(BaseModel):
    model_config = {"frozen": True}

    role: Literal["user", "assistant", "system"]
    content: str
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())


class Page(BaseModel):
    name: str
    slug: str
    order: int


class Sitemap(BaseModel):
    pages: List[Page] = Field(default_factory=list)
    updatedAt: Optional[str] = None


class ApprovedSection(BaseModel):
    html: str
    approvedAt: str


class PendingPreview(BaseModel):
    section: str
    html: str


class ApprovedSectionPayload(BaseModel):
    section: str
    html: str


# --- request bodies (wire contract) ---


class ChatRequest(BaseModel):
    messages: List[ConversationMessage]
    userId: Optional[str] = None


class SitemapUpdate(BaseModel):
    userId: str
    pages: List[str] = Field(min_length=1)


class MetadataUpdate(BaseModel):
    userId: str
    data: Dict[str, str]


class StylesUpdate(BaseModel):
    userId: str
    styles: Dict[str, str]


class PreviewUpdate(BaseModel):
    userId: str
    section: str = Field(min_length=1)
    html: str = Field(min_length=1)


class PreviewClear(BaseModel):
    userId: str


class FinalizeRequest(BaseModel):
    userId: str
    html: str = Field(min_length=1)


class SaveConversationRequest(BaseModel):
    userId: str
    messages: Optional[List[ConversationMessage]] = None
    approvedSection: Optional[ApprovedSectionPayload] = None


# --- response envelopes ---


class SitemapResponse(BaseModel):
    success: Literal[True]
    sitemap: Sitemap


class MetadataResponse(BaseModel):
    success: Literal[True]
    metadata: Dict[str, str]


class StylesResponse(BaseModel):
    success: Literal[True]
    styles: Dict[str, str]


class PreviewResponse(BaseModel):
    success: Literal[True]
    section: str
    previewUrl: str


class SuccessResponse(BaseModel):
    success: Literal[True]


class Conversation(BaseModel):
    messages: List[dict] = Field(default_factory=list)
    approvedSections: Dict[str, ApprovedSection] = Field(default_factory=dict)
    messageCount: int = 0


class ConversationResponse(BaseModel):
    success: Literal[True]
    conversation: Conversation


class SaveConversationResponse(BaseModel):
    success: Literal[True]
    messageCount: int


class SessionExport(BaseModel):
    userId: Optional[str] = None
    messages: List[ConversationMessage]
    exportedAt: Optional[str] = None

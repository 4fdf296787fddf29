# --- include all imports here ---
import asyncio

from fastapi import APIRouter, HTTPException

from sitechat import documents, llm
from sitechat.logger import get_logger
from sitechat.models import (
    ChatRequest,
    FinalizeRequest,
    MetadataUpdate,
    PreviewClear,
    PreviewUpdate,
    SaveConversationRequest,
    SitemapUpdate,
    StylesUpdate,
)
from sitechat.utils import is_valid_session_id, now_iso

logger = get_logger(__name__)


router = APIRouter()


def _require_session_id(session_id: str | None) -> str:
    if not session_id or not is_valid_session_id(session_id):
        raise HTTPException(status_code=400, detail="Invalid userId")
    return session_id


@router.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "ok", "timestamp": now_iso()}


@router.post("/api/chat")
async def chat(request: ChatRequest):
    """Forward the conversation to the model and return a content envelope"""
    session_id = request.userId
    if session_id is not None:
        _require_session_id(session_id)

    logger.info(f"Chat request with {len(request.messages)} messages")
    generation = await asyncio.to_thread(
        llm.forward,
        [m.model_dump(include={"role", "content"}) for m in request.messages],
        session_id,
    )

    if generation.status == "unavailable":
        raise HTTPException(status_code=503, detail=generation.message)
    if generation.status == "error":
        raise HTTPException(status_code=502, detail=generation.message)

    logger.info(f"Chat response ready ({generation.tool_calls} tool calls)")
    return {"content": [{"type": "text", "text": generation.message}]}


@router.post("/api/update-sitemap")
async def update_sitemap(request: SitemapUpdate):
    session_id = _require_session_id(request.userId)
    try:
        sitemap = documents.set_sitemap(session_id, request.pages)
        return {"success": True, "sitemap": sitemap}
    except Exception as e:
        logger.error(f"Error updating sitemap for {session_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.post("/api/update-metadata")
async def update_metadata(request: MetadataUpdate):
    session_id = _require_session_id(request.userId)
    try:
        metadata = documents.merge_metadata(session_id, request.data)
        return {"success": True, "metadata": metadata}
    except Exception as e:
        logger.error(f"Error updating metadata for {session_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.post("/api/update-styles")
async def update_styles(request: StylesUpdate):
    session_id = _require_session_id(request.userId)
    try:
        styles = documents.merge_styles(session_id, request.styles)
        return {"success": True, "styles": styles}
    except Exception as e:
        logger.error(f"Error updating styles for {session_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.post("/api/update-preview")
async def update_preview(request: PreviewUpdate):
    """Write one pending section into the live artifact"""
    session_id = _require_session_id(request.userId)
    try:
        url = documents.set_preview(session_id, request.section, request.html)
        return {"success": True, "section": request.section, "previewUrl": url}
    except Exception as e:
        logger.error(f"Error updating preview for {session_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.post("/api/update-preview/clear")
async def clear_preview(request: PreviewClear):
    """Reset the live artifact to its empty state"""
    session_id = _require_session_id(request.userId)
    try:
        documents.clear_preview(session_id)
        return {"success": True}
    except Exception as e:
        logger.error(f"Error clearing preview for {session_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.post("/api/generate-index")
async def generate_index(request: FinalizeRequest):
    """Publish the generated page as the session's live artifact"""
    session_id = _require_session_id(request.userId)
    try:
        documents.finalize(session_id, request.html)
        return {"success": True}
    except Exception as e:
        logger.error(f"Error generating index for {session_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.get("/api/get-conversation/{user_id}")
async def get_conversation(user_id: str):
    """Return conversation data including approved sections"""
    session_id = _require_session_id(user_id)
    try:
        conversation = documents.get_conversation(session_id)
        return {"success": True, "conversation": conversation}
    except Exception as e:
        logger.error(f"Error getting conversation for {session_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@router.post("/api/save-conversation")
async def save_conversation(request: SaveConversationRequest):
    session_id = _require_session_id(request.userId)
    try:
        conversation = documents.save_conversation(
            session_id,
            messages=(
                [m.model_dump() for m in request.messages]
                if request.messages is not None
                else None
            ),
            approved_section=(
                request.approvedSection.model_dump() if request.approvedSection else None
            ),
        )
        return {"success": True, "messageCount": conversation.get("messageCount", 0)}
    except Exception as e:
        logger.error(f"Error saving conversation for {session_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")

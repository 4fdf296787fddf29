"""
LLM module for handling AI model interactions
"""

import json
from typing import Any, Dict, List

import openai
from pydantic import BaseModel

import config
from sitechat import documents
from sitechat.logger import excerpt, get_logger
from sitechat.prompt import build_system_prompt

logger = get_logger(__name__)

# Initialize OpenRouter client
openrouter_client = (
    openai.OpenAI(
        base_url="https://openrouter.ai/api/v1",
        api_key=config.OPENROUTER_API_KEY,
    )
    if config.OPENROUTER_API_KEY
    else None
)


class Generation(BaseModel):
    status: str  # "success", "error" or "unavailable"
    message: str
    tool_calls: int = 0


def _tool(name: str, description: str) -> dict:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {"type": "object", "properties": {}, "required": []},
        },
    }


# Read-only project tools, bound server-side to the caller's session
TOOLS = [
    _tool(
        "read_conversation",
        "Reads the full conversation history. Use this when resuming a session to catch up on what's been discussed.",
    ),
    _tool(
        "read_metadata",
        "Reads the business data and asset mappings collected so far.",
    ),
    _tool(
        "read_sitemap",
        "Reads the page structure defined so far.",
    ),
    _tool(
        "read_styles",
        "Reads brand colors, fonts and reference site collected so far.",
    ),
]


def run_tool(name: str, session_id: str) -> Dict[str, Any]:
    """Execute one read tool against the session's documents"""
    logger.info(f"Tool called: {name} for {session_id}")

    if name == "read_conversation":
        conversation = documents.get_conversation(session_id)
        messages = conversation.get("messages", [])
        return {
            "success": True,
            "messages": messages,
            "messageCount": len(messages),
            "approvedSections": sorted(conversation.get("approvedSections", {})),
        }
    if name == "read_metadata":
        metadata = documents.read_metadata(session_id)
        return {
            "success": True,
            "metadata": metadata,
            "message": None if metadata else "No metadata collected yet",
        }
    if name == "read_sitemap":
        pages = documents.read_sitemap(session_id).get("pages", [])
        return {"success": True, "pages": pages, "pageCount": len(pages)}
    if name == "read_styles":
        styles = documents.read_styles(session_id)
        return {
            "success": True,
            "styles": styles,
            "message": None if styles else "No brand styles set yet",
        }

    return {"success": False, "error": f"Unknown tool: {name}"}


def _to_openai_messages(session_id: str | None, messages: List[dict]) -> List[dict]:
    converted = [{"role": "system", "content": build_system_prompt(session_id)}]
    for message in messages:
        converted.append({"role": message["role"], "content": message["content"]})
    return converted


def _assistant_tool_message(message) -> dict:
    return {
        "role": "assistant",
        "content": message.content or "",
        "tool_calls": [
            {
                "id": call.id,
                "type": "function",
                "function": {
                    "name": call.function.name,
                    "arguments": call.function.arguments or "{}",
                },
            }
            for call in message.tool_calls
        ],
    }


def forward(messages: List[dict], session_id: str | None = None, client=None) -> Generation:
    """Run one chat completion, resolving read-tool calls along the way"""
    selected_client = client or openrouter_client
    if selected_client is None:
        logger.error("OpenRouter client not initialized")
        return Generation(
            status="unavailable",
            message="OpenRouter client not initialized. Check OPENROUTER_API_KEY.",
        )

    openai_messages = _to_openai_messages(session_id, messages)
    request = {
        "model": config.OPENROUTER_MODEL,
        "max_tokens": config.LLM_MAX_TOKENS,
        "messages": openai_messages,
    }
    if session_id:
        request["tools"] = TOOLS

    try:
        logger.info(f"Calling OpenRouter API with model: {config.OPENROUTER_MODEL}")
        response = selected_client.chat.completions.create(**request)
        choice = response.choices[0]

        iterations = 0
        while (
            choice.finish_reason == "tool_calls"
            and choice.message.tool_calls
            and iterations < config.MAX_TOOL_ITERATIONS
        ):
            iterations += 1
            logger.info(f"Tool use detected (iteration {iterations})")
            openai_messages.append(_assistant_tool_message(choice.message))
            for call in choice.message.tool_calls:
                result = run_tool(call.function.name, session_id)
                openai_messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": call.id,
                        "content": json.dumps(result),
                    }
                )
            response = selected_client.chat.completions.create(**request)
            choice = response.choices[0]

        if iterations >= config.MAX_TOOL_ITERATIONS:
            logger.warning("Max tool use iterations reached")

        text = choice.message.content
        if not text:
            logger.error(f"LLM returned no text (finish_reason={choice.finish_reason})")
            return Generation(status="error", message="No response from LLM API")

        logger.info(f"LLM response: length {len(text)}, preview: {excerpt(text)}")
        return Generation(status="success", message=text, tool_calls=iterations)

    except Exception as e:
        logger.error(f"Error in LLM forward: {str(e)}", exc_info=True)
        return Generation(status="error", message=f"LLM API error: {str(e)}")

from __future__ import annotations

from typing import Any, List, Optional, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from agent.core.errors import UpstreamCallError
from config.settings import Settings, get_settings


ASSISTANT_ROLES = ("assistant", "ai", "model")


def build_model(settings: Optional[Settings] = None) -> BaseChatModel:
    settings = settings or get_settings()
    if not settings.google_api_key:
        raise RuntimeError(
            "GEMINI_API_KEY not set. Please configure it in environment or .env"
        )

    # Gemini is forced into JSON mode; the system instruction describes the shape.
    return ChatGoogleGenerativeAI(
        model=settings.gemini_model,
        google_api_key=settings.google_api_key,
        temperature=settings.temperature,
        top_p=settings.top_p,
        max_output_tokens=settings.max_output_tokens,
        response_mime_type="application/json",
    )


def to_lc_messages(history: Sequence[Any], message: str) -> List[BaseMessage]:
    """Project frontend history plus the new message onto chat turns.

    The caller is expected to pass an already trimmed slice of history.
    """
    messages: List[BaseMessage] = []
    for item in history or []:
        if not isinstance(item, dict):
            continue
        content = item.get("content")
        if not content:
            continue
        if not isinstance(content, str):
            content = str(content)
        role = str(item.get("role") or "").lower()
        if role in ASSISTANT_ROLES:
            messages.append(AIMessage(content=content))
        else:
            # Default unknown to HumanMessage for safety
            messages.append(HumanMessage(content=content))
    messages.append(HumanMessage(content=message))
    return messages


def _message_text(result: Any) -> str:
    content = getattr(result, "content", result)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type", "text") == "text":
                parts.append(part.get("text") or "")
        return "".join(parts)
    return ""


async def generate_reply(
    model: BaseChatModel,
    system_instruction: str,
    turns: List[BaseMessage],
) -> str:
    """Send one request to the model and return its raw reply text."""
    messages: List[BaseMessage] = [SystemMessage(content=system_instruction), *turns]
    try:
        result = await model.ainvoke(messages)
    except Exception as exc:
        raise UpstreamCallError(f"Gemini call failed: {exc}") from exc
    return _message_text(result)

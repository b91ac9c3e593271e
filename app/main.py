from __future__ import annotations

import json
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from langchain_core.language_models.chat_models import BaseChatModel
from pydantic import BaseModel, Field

from agent.agent import build_model, generate_reply, to_lc_messages
from agent.core.errors import ClientInputError, MalformedModelOutput, UpstreamCallError
from agent.core.parsing import extract_json_object
from agent.core.prompt import build_system_instruction
from agent.core.state import resolve_state
from config.settings import Settings, get_settings


logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="[%(asctime)s] %(levelname)s - %(message)s",
)
logger = logging.getLogger("turomoko")

MESSAGE_REQUIRED = "message (string) is required"
SERVER_ERROR = "Server error calling Gemini"
NO_REPLY_TEXT = "Sorry—no response text returned."
BODY_TOO_LARGE = "request entity too large"


class ChatRequest(BaseModel):
    # Left untyped: bad values get our own 400 and state is echoed verbatim.
    message: Any = Field(None, description="User's latest message")
    state: Any = Field(None, description="Frontend-owned conversation state, echoed back")
    history: Any = Field(
        None,
        description="Previous turns, oldest first (frontend-managed)",
    )


def parse_chat_request(body: Any) -> ChatRequest:
    if not isinstance(body, dict):
        raise ClientInputError(MESSAGE_REQUIRED)
    req = ChatRequest.model_validate(body)
    if not isinstance(req.message, str) or not req.message:
        raise ClientInputError(MESSAGE_REQUIRED)
    return req


def get_chat_model(request: Request) -> BaseChatModel:
    app_state = request.app.state
    if app_state.chat_model is None:
        app_state.chat_model = build_model(app_state.settings)
    return app_state.chat_model


def _declared_length(request: Request) -> int:
    try:
        return int(request.headers.get("content-length") or 0)
    except ValueError:
        return 0


def _is_empty_reply(reply: Any) -> bool:
    # Mirrors the frontend's falsy check: an empty object still counts as a reply.
    if isinstance(reply, (dict, list)):
        return False
    return not reply


def create_app(
    settings: Optional[Settings] = None,
    chat_model: Optional[BaseChatModel] = None,
) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(title="Turomoko Tutor API", version="1.0.0")
    app.state.settings = settings
    app.state.chat_model = chat_model

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.post("/api/chat")
    async def chat(request: Request):
        if _declared_length(request) > settings.max_body_bytes:
            logger.info("Rejected chat request: declared body over %s bytes", settings.max_body_bytes)
            return JSONResponse(status_code=413, content={"error": BODY_TOO_LARGE})

        raw_body = await request.body()
        if len(raw_body) > settings.max_body_bytes:
            logger.info("Rejected chat request: body of %s bytes", len(raw_body))
            return JSONResponse(status_code=413, content={"error": BODY_TOO_LARGE})

        try:
            body = json.loads(raw_body)
        except ValueError:
            body = None

        try:
            req = parse_chat_request(body)
        except ClientInputError as exc:
            logger.info("Rejected chat request: %s", exc)
            return JSONResponse(status_code=400, content={"error": str(exc)})

        history = req.history if isinstance(req.history, list) else []
        limit = settings.history_limit
        history = history[-limit:] if limit > 0 else []

        try:
            model = get_chat_model(request)
            slots = resolve_state(req.state)
            logger.info(
                "Incoming chat: intent=%s learning_state=%s history_turns=%s message_len=%s",
                slots["intent"],
                slots["learningState"],
                len(history),
                len(req.message),
            )
            system_instruction = build_system_instruction(req.state)
            turns = to_lc_messages(history, req.message)
            raw_text = await generate_reply(model, system_instruction, turns)
            reply = extract_json_object(raw_text)
        except MalformedModelOutput as exc:
            logger.exception("Gemini reply had no usable JSON object: %s", exc)
            return JSONResponse(status_code=500, content={"error": SERVER_ERROR})
        except UpstreamCallError as exc:
            logger.exception("Upstream model call failed: %s", exc)
            return JSONResponse(status_code=500, content={"error": SERVER_ERROR})
        except Exception as exc:
            logger.exception("Chat processing failed: %s", exc)
            return JSONResponse(status_code=500, content={"error": SERVER_ERROR})

        if _is_empty_reply(reply):
            reply = NO_REPLY_TEXT

        response_body = {"reply": reply}
        # An omitted state stays omitted; an explicit null is echoed as null.
        if "state" in req.model_fields_set:
            response_body["state"] = req.state
        logger.info("Model responded: reply_type=%s", type(reply).__name__)
        return response_body

    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = get_settings()
    if not settings.google_api_key:
        raise RuntimeError("Missing GEMINI_API_KEY in environment.")
    logger.info("API running on %s:%s", settings.app_base_url, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()

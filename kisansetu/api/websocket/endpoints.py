import json
import logging

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect, status

from kisansetu.core.config import settings
from kisansetu.core.security import verify_jwt

from .actions import actions
from .manager import manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/voice")
async def voice_websocket_endpoint(websocket: WebSocket):
    token_header: str | None = websocket.headers.get("Authorization")
    if not token_header or not token_header.startswith("Bearer "):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    token = token_header.split(" ")[1]
    try:
        user_payload = await verify_jwt(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    user_id: str = user_payload["sub"]
    language: str = user_payload.get("language", settings.VOICE_LANGUAGE)
    session = await manager.connect(websocket, user_id, language)

    try:
        while True:
            raw_data = await websocket.receive_text()
            try:
                message = json.loads(raw_data)
            except json.JSONDecodeError:
                message = None
            if not isinstance(message, dict):
                await session.send_error("error", status.HTTP_400_BAD_REQUEST, "Invalid JSON")
                continue

            action = message.get("action")
            data = message.get("data") or {}
            if action in actions:
                await actions[action](session, data)
            else:
                await session.send_error(
                    "error", status.HTTP_400_BAD_REQUEST, f"Unknown action: {action}"
                )
    except WebSocketDisconnect:
        logger.info("Voice socket closed for user %s", user_id)
    finally:
        await manager.disconnect(session)

import asyncio
import logging

from fastapi import status

from kisansetu.core.exceptions import OperationCancelled, PermissionDenied

from .session import VoiceSocketSession

logger = logging.getLogger(__name__)


async def voice_start_handler(session: VoiceSocketSession, data: dict):
    session.recorder.microphone_permission = data.get("microphone_permission") == "granted"
    if data.get("extension"):
        session.recorder.extension = data["extension"]
    try:
        await session.pipeline.start_recording()
    except PermissionDenied as e:
        await session.send_error("voice_start", status.HTTP_403_FORBIDDEN, str(e))


async def voice_chunk_handler(session: VoiceSocketSession, data: dict):
    chunk = data.get("audio")
    if not chunk:
        await session.send_error(
            "voice_chunk", status.HTTP_400_BAD_REQUEST, "audio is required for voice_chunk"
        )
        return
    try:
        session.recorder.feed(chunk)
    except ValueError as e:
        await session.send_error("voice_chunk", status.HTTP_400_BAD_REQUEST, str(e))


async def _answer_turn(session: VoiceSocketSession, data: dict):
    try:
        await session.refresh_location_hint(data)
        await session.pipeline.complete_turn()
    except OperationCancelled:
        logger.info("Voice turn for user %s was cancelled", session.user_id)
    except Exception:
        logger.exception("Voice turn failed for user %s", session.user_id)
        await session.send_error(
            "voice_stop",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Sorry, I had trouble processing your request. Please try recording again.",
        )


async def voice_stop_handler(session: VoiceSocketSession, data: dict):
    # Runs in the background so voice_interrupt is received while speaking.
    session.turn_task = asyncio.create_task(_answer_turn(session, data))


async def voice_cancel_handler(session: VoiceSocketSession, data: dict):
    await session.pipeline.cancel_recording()


async def voice_interrupt_handler(session: VoiceSocketSession, data: dict):
    await session.pipeline.interrupt()


actions = {
    "voice_start": voice_start_handler,
    "voice_chunk": voice_chunk_handler,
    "voice_stop": voice_stop_handler,
    "voice_cancel": voice_cancel_handler,
    "voice_interrupt": voice_interrupt_handler,
}

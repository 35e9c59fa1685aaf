import asyncio
import json
import logging
from typing import Optional

from fastapi import WebSocket
from pydantic import ValidationError

from kisansetu.collections.user_profile import get_latest_user_profile
from kisansetu.core.exceptions import NoLocationAvailable
from kisansetu.models.location import DeviceLocationReport, LocationSource, UserProfile
from kisansetu.models.conversation import ConversationTurn
from kisansetu.models.voice import VoiceState
from kisansetu.services.geo_resolver import ClientReportedLocation, GeoResolver
from kisansetu.services.voice_devices import GeminiSpeechSynthesizer, StreamedAudioRecorder
from kisansetu.services.voice_pipeline import GeminiAudioInference, VoiceTurnPipeline
from kisansetu.services.weather_service import DEFAULT_LOCATION_HINT, get_location_hint

logger = logging.getLogger(__name__)


class VoiceSocketSession:
    """Voice assistant state for one open socket."""

    def __init__(self, websocket: WebSocket, user_id: str, language: str) -> None:
        self.websocket = websocket
        self.user_id = user_id
        self.closed = False
        self.recorder = StreamedAudioRecorder()
        self.pipeline = VoiceTurnPipeline(
            recorder=self.recorder,
            synthesizer=GeminiSpeechSynthesizer(emitter=self.send),
            inference=GeminiAudioInference(),
            language=language,
            on_state_change=self._on_state_change,
            on_answer=self._on_answer,
        )
        self.turn_task: Optional[asyncio.Task] = None
        self._location_resolved = False

    async def send(self, payload: dict) -> None:
        if self.closed:
            return
        await self.websocket.send_text(json.dumps(payload, default=str))

    async def send_error(self, action: str, status_code: int, message: str) -> None:
        await self.send(
            {"action": action, "error": {"status_code": status_code, "message": message}}
        )

    async def _on_state_change(self, state: VoiceState) -> None:
        await self.send({"action": "voice_state", "data": {"state": state.value}})

    async def _on_answer(self, turn: ConversationTurn, error: Optional[str]) -> None:
        # Sent before playback starts so the text shows while the audio renders.
        await self.send({"action": "voice_answer", "data": {"text": turn.text, "error": error}})

    async def _latest_profile(self) -> Optional[UserProfile]:
        return await get_latest_user_profile(self.user_id)

    async def refresh_location_hint(self, data: dict) -> None:
        """Resolves the place named in the voice instruction once per socket."""
        if self._location_resolved:
            return
        try:
            report = DeviceLocationReport.model_validate(data)
        except ValidationError as e:
            logger.warning("Ignoring malformed location report: %s", e)
            report = DeviceLocationReport()

        resolver = GeoResolver(ClientReportedLocation(report), profile_lookup=self._latest_profile)
        try:
            location = await resolver.resolve()
        except NoLocationAvailable:
            hint = DEFAULT_LOCATION_HINT
        else:
            if location.source == LocationSource.DEFAULT:
                hint = DEFAULT_LOCATION_HINT
            else:
                hint = await get_location_hint(location.coordinates)

        self.pipeline.location_hint = hint
        self._location_resolved = True

    async def close(self) -> None:
        self.closed = True
        if self.turn_task is not None and not self.turn_task.done():
            self.turn_task.cancel()
        await self.pipeline.close()

import base64
import binascii
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from langchain_core.language_models import BaseChatModel

from kisansetu.core.cancellation import CancellationToken
from kisansetu.core.config import settings
from kisansetu.core.exceptions import InferenceUnavailable
from kisansetu.core.genai_client import get_tts_model
from kisansetu.models.voice import RecordedClip

logger = logging.getLogger(__name__)

StreamEmitter = Callable[[dict], Awaitable[None]]

DEFAULT_RECORDING_EXTENSION = ".m4a"


class VoiceName(str, Enum):
    KORE = "Kore"
    PUCK = "Puck"
    CHARON = "Charon"
    AOEDE = "Aoede"


class StreamedAudioRecorder:
    """
    Recorder fed by base64 audio chunks the phone streams over the socket.
    Microphone permission is whatever the client last reported.
    """

    def __init__(
        self,
        microphone_permission: bool = False,
        extension: str = DEFAULT_RECORDING_EXTENSION,
        max_bytes: int = settings.MAX_RECORDING_BYTES,
    ) -> None:
        self.microphone_permission = microphone_permission
        self.extension = extension
        self.max_bytes = max_bytes
        self.filename = f"recording{extension}"
        self._buffer = bytearray()
        self._recording = False

    @property
    def recording(self) -> bool:
        return self._recording

    async def has_permission(self) -> bool:
        return self.microphone_permission

    async def start(self) -> None:
        self.filename = f"recording{self.extension}"
        self._buffer = bytearray()
        self._recording = True

    def feed(self, chunk_base64: str) -> int:
        """
        Appends one chunk and returns the buffered size. Ignored unless
        recording. A chunk that would pass `max_bytes` is rejected whole.
        """
        if not self._recording:
            return len(self._buffer)
        try:
            chunk = base64.b64decode(chunk_base64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError("Audio chunk is not valid base64") from e
        if len(self._buffer) + len(chunk) > self.max_bytes:
            raise ValueError(f"Recording exceeds the {self.max_bytes} byte limit")
        self._buffer.extend(chunk)
        return len(self._buffer)

    async def stop(self) -> RecordedClip:
        self._recording = False
        clip = RecordedClip(filename=self.filename, data=bytes(self._buffer))
        self._buffer = bytearray()
        return clip

    async def discard(self) -> None:
        self._recording = False
        self._buffer = bytearray()


class GeminiSpeechSynthesizer:
    """Renders text with the Gemini TTS model and streams the audio to the client."""

    def __init__(
        self,
        emitter: StreamEmitter,
        chat_model: Optional[BaseChatModel] = None,
        voice_name: VoiceName = VoiceName.KORE,
    ) -> None:
        self.emitter = emitter
        self.voice_name = voice_name
        self._chat_model = chat_model

    @property
    def chat_model(self) -> BaseChatModel:
        if self._chat_model is None:
            self._chat_model = get_tts_model()
        return self._chat_model

    async def speak(self, text: str, language: str, token: CancellationToken) -> None:
        tts_prompt = f"Say clearly and a little faster in the language {language}: {text}"
        try:
            response = await self.chat_model.ainvoke(
                tts_prompt,
                speech_config={
                    "voice_config": {
                        "prebuilt_voice_config": {"voice_name": self.voice_name.value}
                    }
                },
            )
        except Exception as e:
            raise InferenceUnavailable(str(e)) from e

        data = response.additional_kwargs.get("audio")
        if not data:
            raise InferenceUnavailable("TTS response has no audio data.")

        token.raise_if_cancelled("speech")
        if isinstance(data, (bytes, bytearray)):
            data = base64.b64encode(data).decode("ascii")
        await self.emitter(
            {"action": "voice_speech", "data": {"audio": data, "mime_type": "audio/wav"}}
        )

    async def stop(self) -> None:
        await self.emitter({"action": "voice_speech_stop"})

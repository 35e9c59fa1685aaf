import base64
import logging
import os
from typing import Awaitable, Callable, Optional, Protocol

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage
from langchain_core.prompts import PromptTemplate

from kisansetu.core.cancellation import CancellationToken, run_with_timeout
from kisansetu.core.config import settings
from kisansetu.core.exceptions import (
    EmptyRecording,
    InferenceUnavailable,
    MalformedModelOutput,
    OperationCancelled,
    PermissionDenied,
    ProcessingTimeout,
)
from kisansetu.core.genai_client import get_voice_model
from kisansetu.core.langchain_message_adapter import (
    coerce_model_reply,
    model_reply_text,
)
from kisansetu.models.conversation import ConversationSession, ConversationTurn, Speaker
from kisansetu.models.model_reply import ModelReply
from kisansetu.models.voice import RecordedClip, TranscribedAnswer, VoiceState
from kisansetu.prompts.voice_prompt import VOICE_ANSWER_PROMPT
from kisansetu.services.response_formatter import format_response
from kisansetu.services.weather_service import DEFAULT_LOCATION_HINT

logger = logging.getLogger(__name__)

AUDIO_MIME_TYPES = {
    ".wav": "audio/wav",
    ".mp3": "audio/mpeg",
    ".ogg": "audio/ogg",
    ".webm": "audio/webm",
}
DEFAULT_AUDIO_MIME_TYPE = "audio/m4a"

StateListener = Callable[[VoiceState], Awaitable[None]]
# Receives the assistant turn and, for apologies, the failure name.
AnswerListener = Callable[[ConversationTurn, Optional[str]], Awaitable[None]]


def audio_mime_type(filename: str) -> str:
    extension = os.path.splitext(filename or "")[1].lower()
    return AUDIO_MIME_TYPES.get(extension, DEFAULT_AUDIO_MIME_TYPE)


def voice_apology_message(error: Exception) -> str:
    """Plain-language assistant text for a failed voice turn."""
    if isinstance(error, ProcessingTimeout):
        return "Sorry, that took too long to process. Please try asking again."
    if isinstance(error, EmptyRecording):
        return "Recording was empty. Please try speaking again."

    message = str(error).lower()
    if "invalid argument" in message:
        return "Audio format issue detected. Please try recording again with a shorter message."
    if "quota" in message or "limit" in message:
        return "API limit reached. Please try again in a few minutes."
    if "network" in message or "fetch" in message or "connect" in message:
        return "Network error. Please check your internet connection and try again."
    return "Sorry, I had trouble processing your request. Please try recording again."


class AudioRecorder(Protocol):
    async def has_permission(self) -> bool: ...

    async def start(self) -> None: ...

    async def stop(self) -> RecordedClip: ...

    async def discard(self) -> None: ...


class SpeechSynthesizer(Protocol):
    async def speak(self, text: str, language: str, token: CancellationToken) -> None: ...

    async def stop(self) -> None: ...


class MultimodalInference(Protocol):
    async def answer(
        self,
        instruction: str,
        audio_base64: str,
        mime_type: str,
        token: CancellationToken,
    ) -> ModelReply: ...


class GeminiAudioInference:
    """Sends an instruction plus inline base64 audio to a Gemini chat model."""

    def __init__(self, chat_model: Optional[BaseChatModel] = None) -> None:
        self._chat_model = chat_model

    @property
    def chat_model(self) -> BaseChatModel:
        if self._chat_model is None:
            self._chat_model = get_voice_model()
        return self._chat_model

    async def answer(
        self,
        instruction: str,
        audio_base64: str,
        mime_type: str,
        token: CancellationToken,
    ) -> ModelReply:
        token.raise_if_cancelled("voice inference")
        message = HumanMessage(
            content=[
                {"type": "text", "text": instruction},
                {"type": "media", "data": audio_base64, "mime_type": mime_type},
            ]
        )
        try:
            response = await self.chat_model.ainvoke([message])
        except Exception as e:
            raise InferenceUnavailable(str(e)) from e
        token.raise_if_cancelled("voice inference")
        return coerce_model_reply(response)


class AudioSession:
    """
    The shared device audio session. `prepare` configures it once and is a
    no-op while the readiness flag is set; `release` clears it on teardown.
    """

    def __init__(self, configure: Optional[Callable[[bool], Awaitable[None]]] = None) -> None:
        self._configure = configure
        self.ready = False

    async def prepare(self) -> None:
        if self.ready:
            return
        if self._configure is not None:
            await self._configure(True)
        self.ready = True

    async def release(self) -> None:
        if not self.ready:
            return
        if self._configure is not None:
            await self._configure(False)
        self.ready = False


class VoiceTurnPipeline:
    """
    One record -> multimodal inference -> speak round trip at a time.

    States run IDLE -> RECORDING -> PROCESSING -> SPEAKING -> IDLE, with
    cancel (RECORDING -> IDLE) and interrupt (SPEAKING -> IDLE) shortcuts.
    Starting while RECORDING or PROCESSING and stopping outside RECORDING are
    no-ops.
    """

    def __init__(
        self,
        recorder: AudioRecorder,
        synthesizer: SpeechSynthesizer,
        inference: Optional[MultimodalInference] = None,
        conversation: Optional[ConversationSession] = None,
        audio_session: Optional[AudioSession] = None,
        location_hint: str = DEFAULT_LOCATION_HINT,
        language: str = settings.VOICE_LANGUAGE,
        inference_timeout: float = settings.VOICE_INFERENCE_TIMEOUT_SECONDS,
        speech_timeout: float = settings.SPEECH_TIMEOUT_SECONDS,
        on_state_change: Optional[StateListener] = None,
        on_answer: Optional[AnswerListener] = None,
    ) -> None:
        self.recorder = recorder
        self.synthesizer = synthesizer
        self.inference = inference or GeminiAudioInference()
        self.conversation = conversation or ConversationSession()
        self.audio_session = audio_session or AudioSession()
        self.location_hint = location_hint
        self.language = language
        self.inference_timeout = inference_timeout
        self.speech_timeout = speech_timeout
        self.on_state_change = on_state_change
        self.on_answer = on_answer
        self._state = VoiceState.IDLE
        self._inference_token: Optional[CancellationToken] = None
        self._speech_token: Optional[CancellationToken] = None
        self._instruction = PromptTemplate.from_template(VOICE_ANSWER_PROMPT)

    @property
    def state(self) -> VoiceState:
        return self._state

    async def _set_state(self, state: VoiceState) -> None:
        if state == self._state:
            return
        self._state = state
        if self.on_state_change is not None:
            await self.on_state_change(state)

    async def _append_answer(self, text: str, error: Optional[str] = None) -> None:
        turn = ConversationTurn(speaker=Speaker.ASSISTANT, text=text)
        self.conversation.append(turn)
        if self.on_answer is not None:
            await self.on_answer(turn, error)

    def instruction(self) -> str:
        return self._instruction.format(location=self.location_hint, language=self.language)

    async def start_recording(self) -> None:
        if self._state in (VoiceState.RECORDING, VoiceState.PROCESSING):
            return
        if self._state == VoiceState.SPEAKING:
            await self.interrupt()

        if not await self.recorder.has_permission():
            raise PermissionDenied("microphone")

        await self.audio_session.prepare()
        await self.recorder.start()
        await self._set_state(VoiceState.RECORDING)

    async def cancel_recording(self) -> None:
        if self._state != VoiceState.RECORDING:
            return
        await self.recorder.discard()
        await self._set_state(VoiceState.IDLE)

    async def stop_recording(self) -> Optional[TranscribedAnswer]:
        """
        Stops capture and answers the recorded question.

        Returns None without side effects unless RECORDING. Raises
        EmptyRecording, ProcessingTimeout or InferenceUnavailable after
        returning to IDLE; nothing is appended to the conversation then.
        """
        if self._state != VoiceState.RECORDING:
            return None
        await self._set_state(VoiceState.PROCESSING)

        token = CancellationToken()
        self._inference_token = token
        try:
            clip = await self.recorder.stop()
            if clip.is_empty:
                raise EmptyRecording("Recording file is empty")

            mime_type = audio_mime_type(clip.filename)
            audio_base64 = base64.b64encode(clip.data).decode("ascii")
            reply = await run_with_timeout(
                self.inference.answer(self.instruction(), audio_base64, mime_type, token),
                timeout=self.inference_timeout,
                token=token,
                operation="voice inference",
            )
            raw_text = model_reply_text(reply)
        except Exception:
            await self._set_state(VoiceState.IDLE)
            raise
        finally:
            self._inference_token = None

        text = format_response(raw_text)
        await self._append_answer(text)
        spoken = await self._speak(text)
        return TranscribedAnswer(
            text=text, raw_text=raw_text, mime_type=mime_type, spoken=spoken
        )

    async def complete_turn(self) -> Optional[TranscribedAnswer]:
        """
        `stop_recording` for callers that render failures as conversation:
        a failed turn becomes a spoken apology appended as an assistant turn.
        """
        try:
            return await self.stop_recording()
        except (
            ProcessingTimeout,
            InferenceUnavailable,
            MalformedModelOutput,
            EmptyRecording,
        ) as e:
            logger.warning("Voice turn failed: %s", e)
            text = voice_apology_message(e)
            await self._append_answer(text, error=type(e).__name__)
            spoken = await self._speak(text)
            return TranscribedAnswer(text=text, spoken=spoken, error=type(e).__name__)

    async def _speak(self, text: str) -> bool:
        await self._set_state(VoiceState.SPEAKING)
        token = CancellationToken()
        self._speech_token = token
        try:
            await self.audio_session.prepare()
            await run_with_timeout(
                self.synthesizer.speak(text, self.language, token),
                timeout=self.speech_timeout,
                token=token,
                operation="speech",
            )
            return True
        except ProcessingTimeout as e:
            logger.warning("%s; giving up on speaking", e)
            await self.synthesizer.stop()
            return False
        except OperationCancelled:
            return False
        except Exception:
            logger.exception("Speech playback failed")
            return False
        finally:
            self._speech_token = None
            if self._state == VoiceState.SPEAKING:
                await self._set_state(VoiceState.IDLE)

    async def interrupt(self) -> None:
        """Stops playback immediately; the conversation log is left as is."""
        if self._state != VoiceState.SPEAKING:
            return
        if self._speech_token is not None:
            self._speech_token.cancel()
        await self.synthesizer.stop()
        await self._set_state(VoiceState.IDLE)

    async def close(self) -> None:
        if self._inference_token is not None:
            self._inference_token.cancel()
        if self._state == VoiceState.RECORDING:
            await self.recorder.discard()
        await self.interrupt()
        await self.audio_session.release()
        await self._set_state(VoiceState.IDLE)

import asyncio
import base64

import pytest

from kisansetu.core.exceptions import (
    EmptyRecording,
    InferenceUnavailable,
    OperationCancelled,
    PermissionDenied,
    ProcessingTimeout,
)
from kisansetu.models.conversation import Speaker
from kisansetu.models.voice import VoiceState
from kisansetu.services.voice_pipeline import (
    AudioSession,
    VoiceTurnPipeline,
    audio_mime_type,
    voice_apology_message,
)
from tests.fakes import FakeInference, FakeRecorder, FakeSynthesizer, wait_for_state


def _pipeline(recorder=None, synthesizer=None, inference=None, **kwargs):
    states = []

    async def _record_state(state):
        states.append(state)

    pipeline = VoiceTurnPipeline(
        recorder=recorder or FakeRecorder(),
        synthesizer=synthesizer or FakeSynthesizer(),
        inference=inference or FakeInference(),
        on_state_change=_record_state,
        **kwargs,
    )
    return pipeline, states


async def test_full_turn_answers_and_speaks():
    recorder = FakeRecorder(data=b"audio", filename="question.m4a")
    synthesizer = FakeSynthesizer()
    inference = FakeInference(reply="**Tip:** water the crop at dawn")
    pipeline, states = _pipeline(recorder, synthesizer, inference, language="te-IN")

    await pipeline.start_recording()
    answer = await pipeline.stop_recording()

    assert answer.text == "💡 Tip: 💧 water the 🌾 crop at dawn"
    assert answer.raw_text == "**Tip:** water the crop at dawn"
    assert answer.mime_type == "audio/m4a"
    assert answer.spoken is True
    assert states == [
        VoiceState.RECORDING,
        VoiceState.PROCESSING,
        VoiceState.SPEAKING,
        VoiceState.IDLE,
    ]
    _, audio_base64, mime_type = inference.calls[0]
    assert base64.b64decode(audio_base64) == b"audio"
    assert mime_type == "audio/m4a"
    assert synthesizer.spoken == [(answer.text, "te-IN")]
    turns = pipeline.conversation.as_history()
    assert [(turn.speaker, turn.text) for turn in turns] == [(Speaker.ASSISTANT, answer.text)]


async def test_stop_while_idle_is_a_no_op():
    inference = FakeInference()
    pipeline, states = _pipeline(inference=inference)

    assert await pipeline.stop_recording() is None
    assert await pipeline.complete_turn() is None
    assert len(pipeline.conversation) == 0
    assert inference.calls == []
    assert states == []


async def test_start_while_recording_is_a_no_op():
    recorder = FakeRecorder()
    pipeline, _ = _pipeline(recorder)

    await pipeline.start_recording()
    await pipeline.start_recording()

    assert recorder.started == 1
    assert pipeline.state == VoiceState.RECORDING


async def test_start_while_processing_is_a_no_op():
    recorder = FakeRecorder()
    pipeline, states = _pipeline(recorder, inference=FakeInference(delay=5))

    await pipeline.start_recording()
    turn = asyncio.create_task(pipeline.stop_recording())
    await wait_for_state(pipeline, VoiceState.PROCESSING)

    await pipeline.start_recording()

    assert recorder.started == 1
    assert pipeline.state == VoiceState.PROCESSING
    assert states == [VoiceState.RECORDING, VoiceState.PROCESSING]

    await pipeline.close()
    with pytest.raises(OperationCancelled):
        await turn
    assert pipeline.state == VoiceState.IDLE


async def test_missing_microphone_permission_raises():
    recorder = FakeRecorder(permission=False)
    pipeline, _ = _pipeline(recorder)

    with pytest.raises(PermissionDenied) as exc_info:
        await pipeline.start_recording()

    assert exc_info.value.resource == "microphone"
    assert recorder.started == 0
    assert pipeline.state == VoiceState.IDLE


async def test_cancel_discards_the_recording():
    recorder = FakeRecorder()
    pipeline, _ = _pipeline(recorder)

    await pipeline.start_recording()
    await pipeline.cancel_recording()

    assert recorder.discarded == 1
    assert pipeline.state == VoiceState.IDLE
    assert await pipeline.stop_recording() is None


async def test_empty_recording_raises_and_leaves_conversation_alone():
    pipeline, _ = _pipeline(FakeRecorder(data=b""))

    await pipeline.start_recording()
    with pytest.raises(EmptyRecording):
        await pipeline.stop_recording()

    assert pipeline.state == VoiceState.IDLE
    assert len(pipeline.conversation) == 0


async def test_inference_timeout_becomes_spoken_apology():
    synthesizer = FakeSynthesizer()
    pipeline, _ = _pipeline(
        synthesizer=synthesizer,
        inference=FakeInference(delay=5),
        inference_timeout=0.05,
    )

    await pipeline.start_recording()
    answer = await pipeline.complete_turn()

    assert answer.error == "ProcessingTimeout"
    assert answer.text == "Sorry, that took too long to process. Please try asking again."
    assert synthesizer.spoken[0][0] == answer.text
    assert pipeline.conversation.as_history()[-1].text == answer.text
    assert pipeline.state == VoiceState.IDLE


async def test_inference_timeout_raises_from_stop_recording():
    pipeline, _ = _pipeline(inference=FakeInference(delay=5), inference_timeout=0.05)

    await pipeline.start_recording()
    with pytest.raises(ProcessingTimeout):
        await pipeline.stop_recording()

    assert pipeline.state == VoiceState.IDLE
    assert len(pipeline.conversation) == 0


async def test_speech_timeout_keeps_the_answer():
    synthesizer = FakeSynthesizer(delay=5)
    pipeline, _ = _pipeline(synthesizer=synthesizer, speech_timeout=0.05)

    await pipeline.start_recording()
    answer = await pipeline.stop_recording()

    assert answer.spoken is False
    assert synthesizer.stops == 1
    assert len(pipeline.conversation) == 1
    assert pipeline.state == VoiceState.IDLE


async def test_speech_failure_keeps_the_answer():
    pipeline, _ = _pipeline(synthesizer=FakeSynthesizer(error=InferenceUnavailable("tts down")))

    await pipeline.start_recording()
    answer = await pipeline.stop_recording()

    assert answer.spoken is False
    assert len(pipeline.conversation) == 1
    assert pipeline.state == VoiceState.IDLE


async def test_interrupt_stops_speaking_immediately():
    synthesizer = FakeSynthesizer(delay=5)
    pipeline, _ = _pipeline(synthesizer=synthesizer, speech_timeout=10)

    await pipeline.start_recording()
    turn = asyncio.create_task(pipeline.stop_recording())
    await wait_for_state(pipeline, VoiceState.SPEAKING)

    await pipeline.interrupt()
    answer = await turn

    assert answer.spoken is False
    assert synthesizer.stops == 1
    assert len(pipeline.conversation) == 1
    assert pipeline.state == VoiceState.IDLE


async def test_starting_while_speaking_interrupts_first():
    recorder = FakeRecorder()
    synthesizer = FakeSynthesizer(delay=5)
    pipeline, _ = _pipeline(recorder, synthesizer, speech_timeout=10)

    await pipeline.start_recording()
    turn = asyncio.create_task(pipeline.stop_recording())
    await wait_for_state(pipeline, VoiceState.SPEAKING)

    await pipeline.start_recording()
    await turn

    assert synthesizer.stops == 1
    assert recorder.started == 2
    assert pipeline.state == VoiceState.RECORDING


async def test_audio_session_is_configured_once():
    calls = []

    async def _configure(active):
        calls.append(active)

    audio_session = AudioSession(configure=_configure)
    pipeline, _ = _pipeline(audio_session=audio_session)

    for _ in range(2):
        await pipeline.start_recording()
        await pipeline.stop_recording()
    await pipeline.close()

    assert calls == [True, False]
    assert audio_session.ready is False


async def test_instruction_names_the_location():
    pipeline, _ = _pipeline(location_hint="Guntur, Andhra Pradesh, India")
    assert "Guntur, Andhra Pradesh, India" in pipeline.instruction()


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("clip.wav", "audio/wav"),
        ("clip.MP3", "audio/mpeg"),
        ("clip.ogg", "audio/ogg"),
        ("clip.webm", "audio/webm"),
        ("clip.m4a", "audio/m4a"),
        ("clip", "audio/m4a"),
    ],
)
def test_audio_mime_type(filename, expected):
    assert audio_mime_type(filename) == expected


@pytest.mark.parametrize(
    "error, fragment",
    [
        (ProcessingTimeout("voice inference", 30), "took too long"),
        (EmptyRecording("empty"), "speaking again"),
        (InferenceUnavailable("400 Invalid argument provided"), "Audio format issue"),
        (InferenceUnavailable("429 Quota exceeded"), "API limit reached"),
        (InferenceUnavailable("Network request failed"), "internet connection"),
        (InferenceUnavailable("500 internal"), "trouble processing"),
    ],
)
def test_voice_apology_messages(error, fragment):
    assert fragment in voice_apology_message(error)


def _listening_pipeline(inference, synthesizer):
    events = []

    async def _record_state(state):
        events.append(("state", state))

    async def _record_answer(turn, error):
        events.append(("answer", turn.text, error))

    pipeline = VoiceTurnPipeline(
        recorder=FakeRecorder(),
        synthesizer=synthesizer,
        inference=inference,
        on_state_change=_record_state,
        on_answer=_record_answer,
        inference_timeout=0.05,
        speech_timeout=10,
    )
    return pipeline, events


async def test_answer_is_announced_before_speaking():
    synthesizer = FakeSynthesizer(delay=5)
    pipeline, events = _listening_pipeline(FakeInference(reply="Sow millets."), synthesizer)

    await pipeline.start_recording()
    turn = asyncio.create_task(pipeline.complete_turn())
    await wait_for_state(pipeline, VoiceState.SPEAKING)

    assert events[-2:] == [
        ("answer", "Sow millets.", None),
        ("state", VoiceState.SPEAKING),
    ]

    await pipeline.interrupt()
    await turn


async def test_apology_is_announced_before_speaking():
    synthesizer = FakeSynthesizer()
    pipeline, events = _listening_pipeline(FakeInference(delay=1), synthesizer)

    await pipeline.start_recording()
    answer = await pipeline.complete_turn()

    answer_index = events.index(("answer", answer.text, "ProcessingTimeout"))
    assert events[answer_index + 1] == ("state", VoiceState.SPEAKING)
    assert synthesizer.spoken[0][0] == answer.text

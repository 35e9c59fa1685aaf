import pytest
from pydantic import ValidationError

from kisansetu.models.conversation import (
    ConversationSession,
    ConversationTurn,
    PromptContext,
    Speaker,
)
from kisansetu.models.location import Coordinates
from kisansetu.services.soil_profile_service import fallback_soil_profile


def test_turns_keep_append_order():
    session = ConversationSession()
    session.append(ConversationTurn(speaker=Speaker.USER, text="first"))
    session.append(ConversationTurn(speaker=Speaker.ASSISTANT, text="second"))

    assert [turn.text for turn in session.as_history()] == ["first", "second"]
    assert len(session) == 2


def test_history_is_a_snapshot():
    session = ConversationSession()
    session.append(ConversationTurn(speaker=Speaker.USER, text="first"))
    snapshot = session.as_history()

    session.append(ConversationTurn(speaker=Speaker.ASSISTANT, text="second"))

    assert len(snapshot) == 1
    assert isinstance(snapshot, tuple)


def test_turns_are_immutable():
    turn = ConversationTurn(speaker=Speaker.USER, text="hi")
    with pytest.raises(ValidationError):
        turn.text = "changed"


def test_prompt_context_freezes_history():
    coords = Coordinates(latitude=20.0, longitude=78.0)
    turns = [ConversationTurn(speaker=Speaker.USER, text="hi")]

    context = PromptContext(
        soil=fallback_soil_profile(coords), location=coords, question="q", history=turns
    )
    turns.append(ConversationTurn(speaker=Speaker.ASSISTANT, text="later"))

    assert isinstance(context.history, tuple)
    assert len(context.history) == 1


def test_coordinates_are_range_checked():
    with pytest.raises(ValidationError):
        Coordinates(latitude=91.0, longitude=0.0)


def test_appended_turn_is_last_in_history():
    session = ConversationSession([ConversationTurn(speaker=Speaker.USER, text="earlier")])
    turn = ConversationTurn(speaker=Speaker.ASSISTANT, text="now")
    before = len(session.as_history())

    session.append(turn)
    history = session.as_history()

    assert history[-1] == turn
    assert len(history) == before + 1

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from kisansetu.core.exceptions import InferenceUnavailable, MalformedModelOutput
from kisansetu.core.langchain_message_adapter import coerce_model_reply
from kisansetu.models.conversation import ConversationTurn, Speaker
from kisansetu.models.model_reply import PlainText, StructuredText
from kisansetu.services.text_generation import TextGenerationClient
from tests.fakes import FakeChatModel


async def test_generate_sends_system_history_and_prompt():
    model = FakeChatModel(reply=AIMessage(content="Plant groundnut."))
    client = TextGenerationClient(chat_model=model, system_prompt="Be brief.")
    history = [ConversationTurn(speaker=Speaker.USER, text="hi")]

    reply = await client.generate("What now?", history=history, language="te")

    messages, _ = model.calls[0]
    assert isinstance(messages[0], SystemMessage)
    assert "Be brief." in messages[0].content
    assert "te" in messages[0].content
    assert isinstance(messages[1], HumanMessage)
    assert messages[-1].content == "What now?"
    assert reply == PlainText(text="Plant groundnut.")


async def test_call_failure_becomes_inference_unavailable():
    client = TextGenerationClient(chat_model=FakeChatModel(error=TimeoutError("slow")))
    with pytest.raises(InferenceUnavailable):
        await client.generate("anything")


def test_content_blocks_are_joined():
    message = AIMessage(
        content=[{"type": "text", "text": "Line one"}, {"type": "text", "text": "Line two"}]
    )
    assert coerce_model_reply(message) == StructuredText(text="Line one\nLine two")


def test_mapping_with_text_is_structured():
    assert coerce_model_reply({"text": "ok"}) == StructuredText(text="ok")


def test_unsupported_reply_is_malformed():
    with pytest.raises(MalformedModelOutput):
        coerce_model_reply(12)

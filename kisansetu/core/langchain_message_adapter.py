from __future__ import annotations

from typing import Any, Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

from kisansetu.core.exceptions import MalformedModelOutput
from kisansetu.models.conversation import ConversationTurn, Speaker
from kisansetu.models.model_reply import ModelReply, PlainText, StructuredText


def conversation_turn_to_langchain(turn: ConversationTurn) -> BaseMessage:
    if turn.speaker == Speaker.ASSISTANT:
        return AIMessage(content=turn.text)
    return HumanMessage(content=turn.text)


def conversation_to_langchain(turns: Sequence[ConversationTurn]) -> list[BaseMessage]:
    return [conversation_turn_to_langchain(turn) for turn in turns]


def _join_text_blocks(blocks: list[Any]) -> str:
    text_values = []
    for block in blocks:
        if isinstance(block, str):
            text_values.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            text_values.append(block.get("text") or "")
    return "\n".join([text for text in text_values if text]).strip()


def coerce_model_reply(value: Any) -> ModelReply:
    """
    Normalizes whatever the generative endpoint handed back into a ModelReply.

    Accepts a bare string, a LangChain message (string or content-block list),
    or a mapping carrying a ``text`` field.
    """
    if isinstance(value, (PlainText, StructuredText)):
        return value

    if isinstance(value, str):
        return PlainText(text=value)

    if isinstance(value, BaseMessage):
        if isinstance(value.content, str):
            return PlainText(text=value.content)
        if isinstance(value.content, list):
            return StructuredText(text=_join_text_blocks(value.content))

    if isinstance(value, dict) and isinstance(value.get("text"), str):
        return StructuredText(text=value["text"])

    raise MalformedModelOutput(
        f"Unsupported model reply of type {type(value).__name__}"
    )


def model_reply_text(reply: ModelReply) -> str:
    return reply.text

import logging
from typing import Callable, Optional, Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage
from langchain_core.prompts import ChatPromptTemplate

from kisansetu.core.exceptions import InferenceUnavailable
from kisansetu.core.genai_client import get_advisory_model
from kisansetu.core.langchain_message_adapter import (
    coerce_model_reply,
    conversation_to_langchain,
)
from kisansetu.models.conversation import ConversationTurn
from kisansetu.models.model_reply import ModelReply
from kisansetu.prompts.advisory_prompt import ADVISORY_SYSTEM_PROMPT

logger = logging.getLogger(__name__)


def build_system_messages(system_prompt: str, language: str) -> list[BaseMessage]:
    prompt = ChatPromptTemplate.from_messages(
        [
            (
                "system",
                "{system_prompt}\n\nUser specified language: {language}",
            )
        ]
    )
    return prompt.format_messages(
        system_prompt=system_prompt,
        language=language,
    )


class TextGenerationClient:
    """
    Single-shot text generation against a chat model.

    Any failure of the underlying call surfaces as InferenceUnavailable; the
    reply is normalized to a ModelReply at this boundary.
    """

    def __init__(
        self,
        chat_model: Optional[BaseChatModel] = None,
        model_factory: Callable[[], BaseChatModel] = get_advisory_model,
        system_prompt: str = ADVISORY_SYSTEM_PROMPT,
    ) -> None:
        self._chat_model = chat_model
        self._model_factory = model_factory
        self.system_prompt = system_prompt

    @property
    def chat_model(self) -> BaseChatModel:
        if self._chat_model is None:
            self._chat_model = self._model_factory()
        return self._chat_model

    async def generate(
        self,
        prompt: str,
        history: Sequence[ConversationTurn] = (),
        language: str = "en",
    ) -> ModelReply:
        messages = (
            build_system_messages(self.system_prompt, language)
            + conversation_to_langchain(history)
            + [HumanMessage(content=prompt)]
        )
        try:
            response = await self.chat_model.ainvoke(messages)
        except Exception as e:
            logger.warning("Text generation call failed: %s", e)
            raise InferenceUnavailable(str(e)) from e
        return coerce_model_reply(response)

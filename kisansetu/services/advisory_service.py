import logging
from typing import Optional
from uuid import uuid4

from kisansetu.core.exceptions import (
    InferenceUnavailable,
    MalformedModelOutput,
    NoLocationAvailable,
)
from kisansetu.core.langchain_message_adapter import model_reply_text
from kisansetu.models.advisory import AdvisoryExchange
from kisansetu.models.conversation import (
    ConversationSession,
    ConversationTurn,
    PromptContext,
    Speaker,
)
from kisansetu.models.location import ResolvedLocation
from kisansetu.models.soil_profile import SoilProfile
from kisansetu.services.advisory_prompt_builder import build_prompt_from_context
from kisansetu.services.geo_resolver import GeoResolver
from kisansetu.services.response_formatter import format_response
from kisansetu.services.soil_profile_service import SoilProfileResolver
from kisansetu.services.text_generation import TextGenerationClient

logger = logging.getLogger(__name__)

COMMON_QUESTIONS = [
    "What crops should I add?",
    "When is the right time to cut the crops?",
    "What kind of pesticides should I use and fertilizers?",
    "When to sell?",
    "How to maximize profits?",
]

LOCATION_REQUIRED_MESSAGE = (
    "📍 Please enable location access so I can give advice for your soil and climate."
)

ADVISORY_APOLOGY_MESSAGE = (
    "⚠️ Sorry, I could not get an answer right now. Please try again in a moment."
)


class AdvisorySession:
    """
    State behind one advisory chat screen. The soil profile and location are
    resolved on the first question and kept in memory until the session is
    discarded.
    """

    def __init__(self, owner_id: str, language: str = "en", session_id: Optional[str] = None):
        self.id = session_id or uuid4().hex
        self.owner_id = owner_id
        self.language = language
        self.conversation = ConversationSession()
        self.location: Optional[ResolvedLocation] = None
        self.soil_profile: Optional[SoilProfile] = None


class AdvisorySessionStore:
    def __init__(self) -> None:
        self._sessions: dict[str, AdvisorySession] = {}

    def create(self, owner_id: str, language: str = "en") -> AdvisorySession:
        session = AdvisorySession(owner_id=owner_id, language=language)
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> Optional[AdvisorySession]:
        return self._sessions.get(session_id)

    def discard(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None


class AdvisoryService:
    def __init__(
        self,
        soil_resolver: Optional[SoilProfileResolver] = None,
        text_client: Optional[TextGenerationClient] = None,
    ) -> None:
        self.soil_resolver = soil_resolver or SoilProfileResolver()
        self.text_client = text_client or TextGenerationClient()

    async def _soil_context(
        self, session: AdvisorySession, geo_resolver: GeoResolver
    ) -> tuple[ResolvedLocation, SoilProfile]:
        if session.location is None:
            session.location = await geo_resolver.resolve()
        if session.soil_profile is None:
            session.soil_profile = await self.soil_resolver.resolve(
                session.location.coordinates
            )
        return session.location, session.soil_profile

    async def ask(
        self,
        session: AdvisorySession,
        question: str,
        geo_resolver: GeoResolver,
    ) -> AdvisoryExchange:
        """
        Runs one advisory turn. Always appends and returns an assistant turn:
        the formatted answer, a location-required message, or an apology.
        """
        history = session.conversation.as_history()
        user_turn = ConversationTurn(speaker=Speaker.USER, text=question)
        session.conversation.append(user_turn)

        try:
            location, soil_profile = await self._soil_context(session, geo_resolver)
        except NoLocationAvailable as e:
            logger.info("Advisory session %s has no location: %s", session.id, e)
            return self._reply(session, user_turn, LOCATION_REQUIRED_MESSAGE)

        context = PromptContext(
            soil=soil_profile,
            location=location.coordinates,
            question=question,
            history=history,
        )
        try:
            reply = await self.text_client.generate(
                build_prompt_from_context(context), language=session.language
            )
            text = format_response(model_reply_text(reply))
        except (InferenceUnavailable, MalformedModelOutput) as e:
            logger.warning("Advisory answer failed for session %s: %s", session.id, e)
            text = ADVISORY_APOLOGY_MESSAGE

        return self._reply(session, user_turn, text, location, soil_profile)

    @staticmethod
    def _reply(
        session: AdvisorySession,
        user_turn: ConversationTurn,
        text: str,
        location: Optional[ResolvedLocation] = None,
        soil_profile: Optional[SoilProfile] = None,
    ) -> AdvisoryExchange:
        assistant_turn = ConversationTurn(speaker=Speaker.ASSISTANT, text=text)
        session.conversation.append(assistant_turn)
        return AdvisoryExchange(
            user_turn=user_turn,
            assistant_turn=assistant_turn,
            location_source=location.source if location else None,
            soil_profile=soil_profile,
        )

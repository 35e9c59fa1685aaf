from typing import Optional, Sequence

from langchain_core.prompts import PromptTemplate

from kisansetu.models.conversation import ConversationTurn, PromptContext, Speaker
from kisansetu.models.location import Coordinates
from kisansetu.models.soil_profile import SoilProfile
from kisansetu.prompts.advisory_prompt import (
    ADVISORY_HISTORY_HEADER,
    ADVISORY_PROMPT_TEMPLATE,
)

UNKNOWN_TEXT = "Unknown"
UNKNOWN_VALUE = "?"

SPEAKER_LABELS = {
    Speaker.USER: "Farmer",
    Speaker.ASSISTANT: "Assistant",
}

_template = PromptTemplate.from_template(ADVISORY_PROMPT_TEMPLATE)


def _text_or(value: Optional[str], placeholder: str) -> str:
    if value is None:
        return placeholder
    value = value.strip()
    return value or placeholder


def format_coordinates(location: Optional[Coordinates]) -> str:
    if location is None:
        return UNKNOWN_TEXT
    return f"{location.latitude:.4f}, {location.longitude:.4f}"


def format_history(history: Sequence[ConversationTurn]) -> str:
    lines = [f"{SPEAKER_LABELS[turn.speaker]}: {turn.text}" for turn in history]
    return "\n".join([ADVISORY_HISTORY_HEADER, *lines])


def build_advisory_prompt(
    profile: Optional[SoilProfile],
    location: Optional[Coordinates],
    history: Sequence[ConversationTurn],
    question: str,
) -> str:
    """
    Renders the advisory prompt. The section layout is fixed: missing text
    fields print as "Unknown", missing values as "?", and the question is
    passed through verbatim.
    """
    soil = profile.model_dump() if profile is not None else {}

    body = _template.format(
        country=_text_or(soil.get("country"), UNKNOWN_TEXT),
        region=_text_or(soil.get("region"), UNKNOWN_TEXT),
        coordinates=format_coordinates(location),
        soil_type=_text_or(soil.get("soil_type"), UNKNOWN_TEXT),
        ph=_text_or(soil.get("ph"), UNKNOWN_VALUE),
        climate=_text_or(soil.get("climate"), UNKNOWN_TEXT),
        clay=_text_or(soil.get("clay"), UNKNOWN_VALUE),
        sand=_text_or(soil.get("sand"), UNKNOWN_VALUE),
        silt=_text_or(soil.get("silt"), UNKNOWN_VALUE),
        nitrogen=_text_or(soil.get("nitrogen"), UNKNOWN_VALUE),
        question=question,
    )
    if not history:
        return body
    return f"{format_history(history)}\n\n{body}"


def build_prompt_from_context(context: PromptContext) -> str:
    return build_advisory_prompt(
        profile=context.soil,
        location=context.location,
        history=context.history,
        question=context.question,
    )

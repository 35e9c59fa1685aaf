from datetime import datetime
from enum import Enum
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kisansetu.models.location import Coordinates
from kisansetu.models.soil_profile import SoilProfile


class Speaker(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ConversationTurn(BaseModel):
    model_config = ConfigDict(frozen=True)

    speaker: Speaker
    text: str
    ts: float = Field(default_factory=lambda: datetime.now().timestamp())


class ConversationSession:
    """Append-only, ordered log of turns owned by a single advisory or voice session."""

    def __init__(self, turns: Sequence[ConversationTurn] = ()) -> None:
        self._turns: list[ConversationTurn] = list(turns)

    def append(self, turn: ConversationTurn) -> None:
        self._turns.append(turn)

    def as_history(self) -> tuple[ConversationTurn, ...]:
        return tuple(self._turns)

    def __len__(self) -> int:
        return len(self._turns)


class PromptContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    soil: SoilProfile
    location: Optional[Coordinates] = None
    question: str
    history: tuple[ConversationTurn, ...] = ()

    @field_validator("history", mode="before")
    @classmethod
    def _freeze_history(cls, value):
        if value is None:
            return ()
        return tuple(value)

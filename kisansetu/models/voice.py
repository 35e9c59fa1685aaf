from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class VoiceState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    PROCESSING = "processing"
    SPEAKING = "speaking"


class RecordedClip(BaseModel):
    model_config = ConfigDict(frozen=True)

    filename: str = Field(description="Name of the captured file, used for its extension.")
    data: bytes = Field(default=b"")

    @property
    def is_empty(self) -> bool:
        return len(self.data) == 0


class TranscribedAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = Field(description="Formatted answer, as displayed and spoken.")
    raw_text: str = Field(default="", description="Unformatted model reply.")
    mime_type: Optional[str] = Field(default=None, description="MIME type of the sent clip.")
    spoken: bool = Field(
        default=False,
        description="False when speech timed out, failed or was interrupted.",
    )
    error: Optional[str] = Field(
        default=None, description="Failure name when the text is an apology."
    )

from typing import List, Optional

from pydantic import BaseModel, Field

from kisansetu.models.conversation import ConversationTurn
from kisansetu.models.location import DeviceLocationReport, LocationSource
from kisansetu.models.soil_profile import SoilProfile


class AdvisoryQuestionRequest(DeviceLocationReport):
    question: str = Field(min_length=1, description="Free-text question from the farmer.")


class AdvisoryExchange(BaseModel):
    user_turn: ConversationTurn
    assistant_turn: ConversationTurn
    location_source: Optional[LocationSource] = Field(
        default=None, description="Where the coordinates came from; None when unresolved."
    )
    soil_profile: Optional[SoilProfile] = Field(default=None)


class AdvisorySessionResponse(BaseModel):
    id: str
    common_questions: List[str] = Field(default_factory=list)

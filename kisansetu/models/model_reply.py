from typing import Literal, Union

from pydantic import BaseModel, ConfigDict


class PlainText(BaseModel):
    """Reply that arrived as a bare string."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["plain_text"] = "plain_text"
    text: str


class StructuredText(BaseModel):
    """Reply that arrived as content blocks and was joined at the boundary."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["structured_text"] = "structured_text"
    text: str


ModelReply = Union[PlainText, StructuredText]

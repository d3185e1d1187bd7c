# src/narrator_kit/assistant/models.py

from typing import Literal

from pydantic import BaseModel, Field

SuggestionType = Literal["narration", "dialogue", "action", "reference"]


class Suggestion(BaseModel):
    """A contextual hint for the game master."""

    type: SuggestionType = "narration"
    content: str = ""
    page_reference: str | None = None
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)

    class Config:
        extra = "forbid"


class OffTrackStatus(BaseModel):
    """Whether the players have wandered away from the adventure."""

    is_off_track: bool = False
    severity: float = Field(default=0.0, ge=0.0, le=1.0)
    reason: str = ""
    narrative_bridge: str | None = None

    class Config:
        extra = "forbid"


class ContextAnalysis(BaseModel):
    suggestions: list[Suggestion] = Field(default_factory=list)
    off_track_status: OffTrackStatus = Field(default_factory=OffTrackStatus)
    relevant_pages: list[str] = Field(default_factory=list)
    summary: str = ""

    class Config:
        extra = "forbid"


class DialogueOption(BaseModel):
    text: str
    tone: str = ""
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)

    class Config:
        extra = "forbid"


class NpcDialogue(BaseModel):
    """Lines a non-player character could say next."""

    npc_name: str
    options: list[DialogueOption] = Field(default_factory=list)

    class Config:
        extra = "forbid"

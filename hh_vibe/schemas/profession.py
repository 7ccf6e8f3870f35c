"""Profession card schemas.

A ProfessionCard is the persisted document behind a card slug. Its body
(schedule, stack, benefits, career path, skills, dialog) is produced by the
LLM; market numbers come from HeadHunter.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from hh_vibe.schemas.chat import ProfessionCardRef


class _CardModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ScheduleItem(_CardModel):
    """One beat of a typical working day."""

    time: str
    title: str
    emoji: str = ""
    description: str = ""
    detail: str = ""


class Benefit(_CardModel):
    """A perk of the profession."""

    icon: str = ""
    text: str


class CareerStage(_CardModel):
    """One rung of the linear career path."""

    level: str
    years: str = ""
    salary: str = ""
    current: bool | None = None


class Skill(_CardModel):
    """A skill with a 0-100 proficiency level for the card's seniority."""

    name: str
    level: int = Field(default=50, ge=0, le=100)


class Dialog(_CardModel):
    """A short interactive workplace situation."""

    message: str
    options: list[str] = Field(default_factory=list)
    response: str = ""


class UserPreferences(_CardModel):
    """Persona fields the card was personalised with."""

    location: str | None = None
    company_size: str | None = None
    specialization: str | None = None
    motivation: str | None = None
    work_style: str | None = None


class ProfessionCard(_CardModel):
    """Full persisted profession card.

    Extra keys written by other tools (images, comic strips, songs) are
    preserved when a card is loaded and saved again.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    slug: str
    profession: str
    level: str = "Middle"
    company: str = "IT-компания"
    vacancies: int = 0
    competition: str = "неизвестно"
    avg_salary: int | None = None
    top_companies: list[str] = Field(default_factory=list)
    schedule: list[ScheduleItem] = Field(default_factory=list)
    stack: list[str] = Field(default_factory=list)
    benefits: list[Benefit] = Field(default_factory=list)
    career_path: list[CareerStage] = Field(default_factory=list)
    skills: list[Skill] = Field(default_factory=list)
    dialog: Dialog | None = None
    images: list[str] = Field(default_factory=list)
    generated_at: str = Field(
        default_factory=lambda: datetime.now(UTC).isoformat(timespec="seconds")
    )
    is_it: bool | None = Field(default=None, alias="isIT")
    company_size: str | None = None
    location: str | None = None
    specialization: str | None = None
    user_preferences: UserPreferences | None = None

    def to_ref(self) -> ProfessionCardRef:
        """Return the chat-sized reference to this card."""
        return ProfessionCardRef(
            slug=self.slug,
            profession=self.profession,
            level=self.level,
            company=self.company,
            image=self.images[0] if self.images else None,
        )


class ProfessionSummary(_CardModel):
    """Catalog listing entry for GET /professions."""

    slug: str
    profession: str
    level: str
    company: str
    vacancies: int = 0
    competition: str = "неизвестно"
    location: str | None = None
    image: str | None = None


class GenerateCardRequest(_CardModel):
    """Request body for POST /professions/generate."""

    profession: str = Field(..., max_length=200)
    level: str = "Middle"
    company: str = "стартап"
    company_size: str | None = None
    location: str | None = None
    specialization: str | None = None

    @field_validator("profession", mode="before")
    @classmethod
    def strip_profession(cls, v: Any) -> Any:
        """Strip whitespace from the profession name."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("profession")
    @classmethod
    def profession_not_empty(cls, v: str) -> str:
        """Validate profession is not empty after stripping."""
        if not v:
            msg = "Profession cannot be empty"
            raise ValueError(msg)
        return v

"""Results returned by the text-analysis collaborator."""

from __future__ import annotations

from pydantic import BaseModel, Field

from panelkit.models.enums import FactCheckVerdict


class PromptSections(BaseModel):
    """Generated prompt content for one persona."""

    context: str = ""
    expertise: str = ""
    character: str = ""
    question: str = ""
    colleagues: str = ""
    selected_voice: str | None = None


class TransferBriefing(BaseModel):
    """Assessment of the departing persona's last turn."""

    grade: float = Field(default=0, ge=0, le=100)
    critique: str = ""
    memory_update: str = ""
    next_question: str = ""


class FactCheck(BaseModel):
    claim: str
    verdict: FactCheckVerdict = FactCheckVerdict.UNVERIFIABLE
    context: str = ""
    source: str | None = None


class Verdict(BaseModel):
    """Final evaluation of the whole conversation."""

    score: float = Field(default=0, ge=0, le=100)
    summary: str = ""
    fact_checks: list[FactCheck] = Field(default_factory=list)
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)
    plan: list[str] = Field(default_factory=list)

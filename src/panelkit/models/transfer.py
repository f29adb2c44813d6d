"""Hand-off request and context models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from panelkit.models.enums import TransferReason


class TransferRequest(BaseModel):
    """Validated arguments of a ``transfer`` tool call."""

    target_id: str
    reason: TransferReason = TransferReason.COLLEAGUE_INITIATED
    context: str = ""


class HandoffContext(BaseModel):
    """What the arriving persona is told about the hand-off."""

    from_name: str
    reason: TransferReason
    summary: str = ""
    excerpt: list[str] = Field(default_factory=list)

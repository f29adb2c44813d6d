"""Function declarations offered to personas, and validation of their calls."""

from __future__ import annotations

import logging
from typing import Any

from panelkit.errors import ToolCallValidationError
from panelkit.models.enums import TransferReason
from panelkit.models.persona import Persona, Roster, TicketLedger
from panelkit.models.transfer import TransferRequest

logger = logging.getLogger("panelkit.orchestration.tools")

TRANSFER_TOOL_NAME = "transfer"
END_SESSION_TOOL_NAME = "end_session"

END_SESSION_TOOL: dict[str, Any] = {
    "name": END_SESSION_TOOL_NAME,
    "description": (
        "End the interview. Call this after you have thanked the candidate "
        "and said goodbye. Nobody else will speak after you."
    ),
    "parameters": {"type": "object", "properties": {}},
}


def build_transfer_tool(targets: list[Persona]) -> dict[str, Any]:
    """Build the transfer tool with the colleague constrained to *targets*.

    Args:
        targets: Personas the caller may hand off to (non-empty).

    Returns:
        A declaration whose ``colleague`` parameter is an ``enum`` of the
        targets' persona ids.
    """
    if not targets:
        raise ValueError("build_transfer_tool needs at least one target")

    target_lines = [f"  - {p.id}: {p.name}" + (f" ({p.role})" if p.role else "") for p in targets]
    description = (
        "Pass the conversation to a colleague. Use this for ANY hand-over.\n"
        "Available colleagues:\n" + "\n".join(target_lines)
    )

    return {
        "name": TRANSFER_TOOL_NAME,
        "description": description,
        "parameters": {
            "type": "object",
            "properties": {
                "colleague": {
                    "type": "string",
                    "enum": [p.id for p in targets],
                    "description": "Id of the colleague to transfer to.",
                },
                "reason": {
                    "type": "string",
                    "enum": [r.value for r in TransferReason],
                    "description": (
                        "colleague_initiated: you are done with your question. "
                        "user_requested: the candidate asked for this colleague."
                    ),
                },
                "conversation_context": {
                    "type": "string",
                    "description": (
                        "Brief summary of the discussion and why the colleague is "
                        "taking over."
                    ),
                },
            },
            "required": ["colleague", "reason", "conversation_context"],
        },
    }


def build_tool_set(
    roster: Roster,
    ledger: TicketLedger,
    active_id: str,
    *,
    final_turn: bool,
) -> list[dict[str, Any]]:
    """Exactly one tool: end_session in final-turn mode, otherwise transfer."""
    targets = [roster.get(pid) for pid in ledger.eligible_targets(exclude=active_id)]
    if final_turn or not targets:
        return [END_SESSION_TOOL]
    return [build_transfer_tool(targets)]


def validate_transfer(
    arguments: dict[str, Any],
    roster: Roster,
    ledger: TicketLedger,
    active_id: str,
) -> TransferRequest:
    """Turn raw transfer arguments into a :class:`TransferRequest`.

    Raises:
        ToolCallValidationError: Unknown, exhausted or self target; the
            departing persona has no tickets; or an unknown reason.
    """
    raw_target = arguments.get("colleague")
    if not isinstance(raw_target, str) or not raw_target.strip():
        raise ToolCallValidationError(f"Missing transfer target: {arguments!r}")

    target = roster.resolve(raw_target)
    if target is None:
        raise ToolCallValidationError(f"Unknown transfer target: {raw_target!r}")
    if target.id == active_id:
        raise ToolCallValidationError(f"Persona {active_id} cannot transfer to itself")
    if ledger.remaining(target.id) <= 0:
        raise ToolCallValidationError(f"Transfer target {target.id} has no tickets left")
    if ledger.remaining(active_id) <= 0:
        raise ToolCallValidationError(f"Departing persona {active_id} has no tickets left")

    raw_reason = arguments.get("reason", TransferReason.COLLEAGUE_INITIATED.value)
    try:
        reason = TransferReason(raw_reason)
    except ValueError:
        raise ToolCallValidationError(f"Unknown transfer reason: {raw_reason!r}") from None

    context = arguments.get("conversation_context") or ""
    return TransferRequest(target_id=target.id, reason=reason, context=str(context))


def is_final_turn(ledger: TicketLedger, persona_id: str) -> bool:
    """Whether *persona_id* may only end the session.

    True when at most one ticket is left across the panel, when the
    persona itself has none, or when nobody else can take over.
    """
    if ledger.total() <= 1 or ledger.remaining(persona_id) <= 0:
        return True
    return not ledger.eligible_targets(exclude=persona_id)

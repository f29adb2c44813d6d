"""Session state machine, tools, prompts and the turn orchestrator."""

from panelkit.orchestration.configure import configure_persona, configure_roster
from panelkit.orchestration.orchestrator import EnrichmentResult, TurnOrchestrator
from panelkit.orchestration.prompts import (
    PERSONA_TEMPLATE,
    build_system_instruction,
    render_persona_prompt,
    update_persona_prompt,
)
from panelkit.orchestration.state import TRANSITIONS, Session, StatusTransition, can_fire
from panelkit.orchestration.tools import (
    END_SESSION_TOOL_NAME,
    TRANSFER_TOOL_NAME,
    build_tool_set,
    build_transfer_tool,
    is_final_turn,
    validate_transfer,
)

__all__ = [
    "END_SESSION_TOOL_NAME",
    "PERSONA_TEMPLATE",
    "TRANSFER_TOOL_NAME",
    "TRANSITIONS",
    "EnrichmentResult",
    "Session",
    "StatusTransition",
    "TurnOrchestrator",
    "build_system_instruction",
    "build_tool_set",
    "build_transfer_tool",
    "can_fire",
    "configure_persona",
    "configure_roster",
    "is_final_turn",
    "render_persona_prompt",
    "update_persona_prompt",
    "validate_transfer",
]

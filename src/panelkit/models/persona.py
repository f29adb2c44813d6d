"""Persona, roster and ticket ledger models."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from pydantic import BaseModel, Field


class Persona(BaseModel):
    """One AI conversational identity with its own voice and prompt.

    ``tickets`` is the initial turn budget; the live count is tracked by
    :class:`TicketLedger`.
    """

    id: str
    name: str
    role: str = ""
    description: str = ""
    voice: str = "Puck"
    prompt: str = ""
    tickets: int = Field(default=1, ge=0)


class Roster:
    """Ordered set of personas with unique ids."""

    def __init__(self, personas: Iterable[Persona]) -> None:
        self._personas: dict[str, Persona] = {}
        for persona in personas:
            if persona.id in self._personas:
                raise ValueError(f"Duplicate persona id: {persona.id}")
            self._personas[persona.id] = persona
        if not self._personas:
            raise ValueError("Roster needs at least one persona")

    def __iter__(self) -> Iterator[Persona]:
        return iter(self._personas.values())

    def __len__(self) -> int:
        return len(self._personas)

    def __contains__(self, persona_id: object) -> bool:
        return persona_id in self._personas

    @property
    def ids(self) -> list[str]:
        return list(self._personas)

    @property
    def first(self) -> Persona:
        return next(iter(self._personas.values()))

    def get(self, persona_id: str) -> Persona:
        try:
            return self._personas[persona_id]
        except KeyError:
            raise KeyError(f"Unknown persona: {persona_id}") from None

    def resolve(self, target: str) -> Persona | None:
        """Find a persona by exact id, or by display name ignoring case."""
        if target in self._personas:
            return self._personas[target]
        folded = target.strip().casefold()
        for persona in self._personas.values():
            if persona.name.casefold() == folded:
                return persona
        return None

    def with_prompt(self, persona_id: str, prompt: str) -> Persona:
        """Replace the stored prompt of one persona and return the new model."""
        updated = self.get(persona_id).model_copy(update={"prompt": prompt})
        self._personas[persona_id] = updated
        return updated

    def replace(self, persona: Persona) -> None:
        """Swap in a reconfigured persona with an existing id."""
        self.get(persona.id)
        self._personas[persona.id] = persona


class TicketLedger:
    """Remaining ticket count per persona.

    Counts never go negative and only decrease after setup.
    """

    def __init__(self, roster: Roster) -> None:
        self._order = roster.ids
        self._tickets: dict[str, int] = {p.id: p.tickets for p in roster}

    def remaining(self, persona_id: str) -> int:
        return self._tickets[persona_id]

    def total(self) -> int:
        return sum(self._tickets.values())

    def consume(self, persona_id: str) -> int:
        """Use one ticket of *persona_id* and return what is left."""
        left = self._tickets[persona_id]
        if left <= 0:
            raise ValueError(f"Persona {persona_id} has no tickets left")
        self._tickets[persona_id] = left - 1
        return left - 1

    def eligible_targets(self, exclude: str | None = None) -> list[str]:
        """Persona ids with tickets left, in roster order."""
        return [pid for pid in self._order if pid != exclude and self._tickets[pid] > 0]

    def snapshot(self) -> dict[str, int]:
        return dict(self._tickets)

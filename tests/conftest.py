"""Shared test fixtures and helpers."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from typing import Any

import numpy as np
import pytest

from panelkit.config import PanelConfig
from panelkit.models.persona import Persona, Roster
from panelkit.voice.audio_frame import AudioFrame
from panelkit.voice.pcm import float_to_pcm16


@pytest.fixture
def advance() -> Callable[[int], Coroutine[Any, Any, None]]:
    """Yield control to let pending tasks run without real delay.

    ::

        await advance()       # 10 yields (default)
        await advance(30)     # for hand-offs that chain several awaits
    """

    async def _advance(n: int = 10) -> None:
        for _ in range(n):
            await asyncio.sleep(0)

    return _advance


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def tick(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def make_persona(pid: str, name: str | None = None, tickets: int = 1, **kwargs: Any) -> Persona:
    return Persona(
        id=pid,
        name=name or pid.capitalize(),
        role=kwargs.pop("role", f"{pid} expert"),
        prompt=kwargs.pop("prompt", f"You are {name or pid.capitalize()}."),
        tickets=tickets,
        **kwargs,
    )


def make_roster(**tickets: int) -> Roster:
    """``make_roster(alice=1, bob=1)`` builds a roster in keyword order."""
    return Roster(make_persona(pid, tickets=count) for pid, count in tickets.items())


def make_pcm(num_samples: int, amplitude: float = 0.5, rate: int = 16000) -> AudioFrame:
    """A constant-level PCM16 frame."""
    samples = np.full(num_samples, amplitude, dtype=np.float32)
    return AudioFrame(data=float_to_pcm16(samples), sample_rate=rate)


def make_silence(num_samples: int, rate: int = 16000) -> AudioFrame:
    return AudioFrame(data=b"\x00\x00" * num_samples, sample_rate=rate)


@pytest.fixture
def fast_config() -> PanelConfig:
    """Config with every delay removed."""
    return PanelConfig(
        reopen_delay_s=0,
        greeting_delay_s=0,
        connect_timeout_s=1.0,
        idle_window_s=60.0,
    )

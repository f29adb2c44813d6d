"""Tests for the mock realtime and text-analysis providers."""

from __future__ import annotations

import pytest

from panelkit.models.enums import TransferReason
from panelkit.providers.brain.mock import MockTextAnalysisProvider
from panelkit.voice.realtime.base import RealtimeSession, RealtimeSessionState
from panelkit.voice.realtime.events import RealtimeEvent, RealtimeEventType
from panelkit.voice.realtime.mock import MockRealtimeProvider
from tests.conftest import make_persona


class TestMockRealtimeProvider:
    async def test_connect_records_and_opens(self) -> None:
        provider = MockRealtimeProvider()
        events: list[RealtimeEvent] = []
        provider.on_event(events.append)
        session = RealtimeSession(id="s1", persona_id="alice")

        await provider.connect(session, system_prompt="Hi", voice="Kore")

        assert session.state is RealtimeSessionState.ACTIVE
        assert provider.last_session is session
        assert provider.connects()[0].args["voice"] == "Kore"
        assert events[0].type is RealtimeEventType.OPENED

    async def test_no_auto_open(self) -> None:
        provider = MockRealtimeProvider(auto_open=False)
        events: list[RealtimeEvent] = []
        provider.on_event(events.append)
        session = RealtimeSession(id="s1", persona_id="alice")
        await provider.connect(session)
        assert events == []
        await provider.simulate_opened(session)
        assert events[0].type is RealtimeEventType.OPENED

    async def test_fail_connect(self) -> None:
        provider = MockRealtimeProvider(fail_connect=True)
        session = RealtimeSession(id="s1", persona_id="alice")
        with pytest.raises(ConnectionError):
            await provider.connect(session)
        assert session.state is RealtimeSessionState.ENDED
        assert provider.open_sessions == []

    async def test_async_callbacks_awaited(self) -> None:
        provider = MockRealtimeProvider()
        seen: list[str] = []

        async def on_event(event: RealtimeEvent) -> None:
            seen.append(event.type)

        provider.on_event(on_event)
        session = RealtimeSession(id="s1", persona_id="alice")
        await provider.connect(session)
        await provider.simulate_tool_call(session, "transfer", {"colleague": "bob"})
        await provider.disconnect(session)
        assert seen == ["opened", "tool_call", "closed"]


class TestMockTextAnalysisProvider:
    async def test_default_sections(self) -> None:
        brain = MockTextAnalysisProvider()
        sections = await brain.configure_persona(
            make_persona("alice"), [make_persona("bob")], "Pitch"
        )
        assert sections.context == "Pitch"
        assert "Bob" in sections.colleagues

    async def test_records_calls(self) -> None:
        brain = MockTextAnalysisProvider()
        await brain.brief_transfer("Alice", "Bob", "", "ctx", TransferReason.USER_REQUESTED)
        await brain.final_verdict("Alice: hi")
        assert [c.method for c in brain.calls] == ["brief_transfer", "final_verdict"]
        assert brain.calls[0].args["reason"] is TransferReason.USER_REQUESTED

    async def test_fail(self) -> None:
        brain = MockTextAnalysisProvider(fail=RuntimeError("down"))
        with pytest.raises(RuntimeError):
            await brain.final_verdict("x")
        assert len(brain.calls) == 1

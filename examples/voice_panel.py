"""panelkit - Live voice panel interview with Gemini, using local mic/speakers.

Three interviewers question you by voice, one at a time, handing the
conversation to each other until their tickets run out.  A background Gemini
model prepares their questions, briefs them at each hand-off and writes a
final verdict.  The mixed recording and transcript land in ./recordings.

Requirements:
    pip install panelkit[gemini,local-audio]

Run with:
    GOOGLE_API_KEY=... uv run python examples/voice_panel.py

Environment variables:
    GOOGLE_API_KEY      (required) Google API key
    GEMINI_LIVE_MODEL   Live model name
    SCENARIO            What you are presenting (default: a seed-stage pitch)
    CANDIDATE_BIO       One line about yourself
    RECORDINGS_DIR      Where artifacts are written (default: recordings)

Press Ctrl+C to end the session early.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal

from panelkit import (
    AudioCaptureEngine,
    AudioPlaybackScheduler,
    FileArtifactStore,
    PanelConfig,
    Persona,
    Roster,
    SoundDevicePlaybackSink,
    TurnOrchestrator,
    configure_roster,
)
from panelkit.providers.gemini import (
    GeminiConfig,
    GeminiLiveProvider,
    GeminiTextAnalysisProvider,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger("voice_panel")

PANEL = [
    Persona(
        id="vc",
        name="Marcus",
        role="Venture capitalist",
        description="Cares about market size, traction and the exit.",
        tickets=2,
    ),
    Persona(
        id="cto",
        name="Dr. Lin",
        role="Technical due-diligence lead",
        description="Probes architecture, scalability and technical debt.",
        tickets=1,
    ),
    Persona(
        id="customer",
        name="Sofia",
        role="Prospective customer",
        description="Asks about pricing, onboarding and support.",
        tickets=1,
    ),
]


async def main() -> None:
    api_key = os.environ.get("GOOGLE_API_KEY")
    if not api_key:
        print("Set GOOGLE_API_KEY to run this example.")
        print("  GOOGLE_API_KEY=... uv run python examples/voice_panel.py")
        return

    gemini = GeminiConfig(api_key=api_key)
    if os.environ.get("GEMINI_LIVE_MODEL"):
        gemini = gemini.model_copy(update={"live_model": os.environ["GEMINI_LIVE_MODEL"]})

    config = PanelConfig(
        candidate_bio=os.environ.get("CANDIDATE_BIO", ""),
        vad={"silence_duration_ms": 700},
    )
    scenario = os.environ.get(
        "SCENARIO",
        "A seed-stage pitch for a scheduling app for independent dental clinics.",
    )

    # --- Prepare the panel ---
    roster = Roster(PANEL)
    brain = GeminiTextAnalysisProvider(gemini)
    logger.info("Configuring %d interviewers...", len(roster))
    await configure_roster(brain, roster, scenario)

    # --- Audio ---
    capture = AudioCaptureEngine(
        sample_rate=config.input_sample_rate,
        frame_size=config.frame_size,
        gain=config.volume_gain,
    )
    playback = AudioPlaybackScheduler(
        sample_rate=config.output_sample_rate,
        guard_interval=config.playback_guard_s,
        gain=config.volume_gain,
        sink=SoundDevicePlaybackSink(sample_rate=config.output_sample_rate),
    )

    orchestrator = TurnOrchestrator(
        roster,
        GeminiLiveProvider(gemini),
        brain=brain,
        store=FileArtifactStore(os.environ.get("RECORDINGS_DIR", "recordings")),
        config=config,
        capture=capture,
        playback=playback,
    )

    await orchestrator.start()
    logger.info("Panel started. Speak into your microphone. Press Ctrl+C to stop.")

    # --- Run until the last interviewer ends the session, or Ctrl+C ---
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, lambda: asyncio.ensure_future(orchestrator.stop()))

    report = await orchestrator.wait_finished()
    await orchestrator.aclose()

    if report is None:
        return
    logger.info("Session %s after %d hand-offs", report.status, report.handoff_count)
    for entry in report.transcript:
        print(entry.as_line())
    if report.verdict is not None:
        print(f"\nScore: {report.verdict.score:.0f}/100")
        print(report.verdict.summary)
        for check in report.verdict.fact_checks:
            print(f"  [{check.verdict}] {check.claim}")
    if report.artifacts is not None:
        print(f"\nRecording: {report.artifacts.audio_uri}")


if __name__ == "__main__":
    asyncio.run(main())

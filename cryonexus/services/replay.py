"""Golden-path recordings replayed through the normal event protocol."""

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, AsyncGenerator, Optional

from pydantic import BaseModel, ValidationError

from cryonexus.logger import get_logger
from cryonexus.models.domain import SYNTHESIS_AGENT, Domain, DomainResults
from cryonexus.models.events import PipelineEvent, PipelineStatus
from cryonexus.models.routing import RoutingDecision
from cryonexus.models.synthesis import SynthesisOutput
from cryonexus.services.scoring import compute_compound_risk_score

if TYPE_CHECKING:
    from cryonexus.client.state import AnalysisState

logger = get_logger(__name__)


class RecordedAnalysis(BaseModel):
    """A complete analysis captured for later replay."""

    scenario: str
    orchestrator: RoutingDecision
    agent_results: DomainResults
    synthesis: SynthesisOutput

    @property
    def compound_risk_score(self) -> int:
        return compute_compound_risk_score(
            self.agent_results.severities(), self.orchestrator.event_categories
        )

    @classmethod
    def load(cls, path: Path) -> "RecordedAnalysis":
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        logger.info(f"Recording saved to {path}")

    @classmethod
    def from_state(cls, state: "AnalysisState") -> "RecordedAnalysis":
        """Capture a finished client-side analysis.

        Raises:
            ValueError: If the run has no routing decision or synthesis yet.
        """
        if state.routing is None or state.synthesis_output is None:
            raise ValueError("Only a completed analysis can be recorded")

        results = DomainResults()
        for domain, analysis in state.agent_results.items():
            if not analysis.narrative and state.agent_texts.get(domain):
                analysis = analysis.model_copy(update={"narrative": state.agent_texts[domain]})
            results = results.with_result(domain, analysis)

        synthesis = state.synthesis_output
        if not synthesis.narrative and state.synthesis_text:
            synthesis = synthesis.model_copy(update={"narrative": state.synthesis_text})

        return cls(
            scenario=state.scenario,
            orchestrator=state.routing,
            agent_results=results,
            synthesis=synthesis,
        )


def _normalize(scenario: str) -> str:
    return scenario.strip().lower()


class RecordingLibrary:
    """Recordings found in a directory, matched by scenario text."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self._recordings: Optional[dict[str, RecordedAnalysis]] = None

    def _load(self) -> dict[str, RecordedAnalysis]:
        recordings = {}
        if not self.directory.is_dir():
            logger.warning(f"Recordings directory not found: {self.directory}")
            return recordings

        for path in sorted(self.directory.glob("*.json")):
            try:
                recording = RecordedAnalysis.load(path)
            except (OSError, ValidationError) as e:
                logger.warning(f"Skipping unreadable recording {path.name}: {e}")
                continue
            recordings[_normalize(recording.scenario)] = recording

        logger.info(f"Loaded {len(recordings)} recordings from {self.directory}")
        return recordings

    @property
    def recordings(self) -> dict[str, RecordedAnalysis]:
        if self._recordings is None:
            self._recordings = self._load()
        return self._recordings

    def match(self, scenario: str) -> Optional[RecordedAnalysis]:
        """Recording whose scenario equals `scenario`, ignoring case and outer whitespace."""
        return self.recordings.get(_normalize(scenario))

    def __len__(self) -> int:
        return len(self.recordings)


def _word_chunks(text: str, size: int) -> list[str]:
    words = text.split(" ")
    return [" ".join(words[i:i + size]) + " " for i in range(0, len(words), size)]


async def replay_recording(
    recording: RecordedAnalysis,
    delay: float = 0.1,
    chunk_words: int = 10,
    synthesis_chunk_words: int = 8,
    chunk_delay: float = 0.02,
) -> AsyncGenerator[PipelineEvent, None]:
    """Yield a recorded analysis as the same event sequence a live run produces."""
    logger.info(f"Replaying recording: '{recording.scenario[:50]}'")

    yield PipelineEvent.status(PipelineStatus.ORCHESTRATING, "Analyzing scenario...")
    await asyncio.sleep(delay)
    yield PipelineEvent.orchestrator(recording.orchestrator)
    await asyncio.sleep(delay)

    yield PipelineEvent.status(PipelineStatus.ANALYZING, "Running specialist agents...")
    await asyncio.sleep(delay)

    for domain in Domain:
        analysis = recording.agent_results.get(domain)
        if analysis is None:
            continue
        if analysis.narrative:
            for chunk in _word_chunks(analysis.narrative, chunk_words):
                yield PipelineEvent.agent_chunk(domain.value, chunk)
                await asyncio.sleep(chunk_delay)
        yield PipelineEvent.agent_complete(domain.value, analysis, analysis.narrative)
        await asyncio.sleep(delay)

    yield PipelineEvent.status(PipelineStatus.SYNTHESIZING, "Generating synthesis...")
    await asyncio.sleep(delay)

    score = recording.compound_risk_score
    synthesis = recording.synthesis.model_copy(update={"compound_risk_score": score})
    if synthesis.narrative:
        for chunk in _word_chunks(synthesis.narrative, synthesis_chunk_words):
            yield PipelineEvent.synthesis_chunk(chunk)
            await asyncio.sleep(chunk_delay)

    yield PipelineEvent.agent_complete(SYNTHESIS_AGENT, synthesis, synthesis.narrative)
    await asyncio.sleep(delay)

    yield PipelineEvent.complete(score)

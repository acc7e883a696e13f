"""Scenario analysis endpoint."""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from sse_starlette.sse import EventSourceResponse

from cryonexus.api.schemas.request import AnalyzeRequest
from cryonexus.api.schemas.response import ErrorResponse
from cryonexus.api.services.analysis_service import AnalysisService
from cryonexus.logger import get_logger
from cryonexus.services.replay import RecordingLibrary, replay_recording
from cryonexus.services.sse_codec import to_sse_message

logger = get_logger(__name__)
router = APIRouter()

STREAM_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def get_analysis_service(request: Request) -> AnalysisService:
    """Dependency to get the AnalysisService built at startup."""
    return request.app.state.analysis_service


def get_recording_library(request: Request) -> Optional[RecordingLibrary]:
    """Dependency to get the golden-path recordings, if enabled."""
    return getattr(request.app.state, "recordings", None)


@router.post("/analyze", responses={400: {"model": ErrorResponse}})
async def analyze(
    request: AnalyzeRequest,
    service: AnalysisService = Depends(get_analysis_service),
    recordings: Optional[RecordingLibrary] = Depends(get_recording_library),
):
    """
    Analyze a catastrophic scenario with real-time agent output via SSE.

    Returns Server-Sent Events (SSE):
    - **status**: Pipeline phase changes (orchestrating, analyzing, synthesizing)
    - **orchestrator**: Routing decision for the scenario
    - **agent_chunk**: Narrative text streamed by a specialist
    - **agent_complete**: Structured result of a specialist or of synthesis
    - **synthesis_chunk**: Narrative text streamed by the synthesis agent
    - **complete**: Final event with the compound risk score
    - **error**: Specialist failure (with `agent`) or pipeline failure (without)
    """
    logger.info(f"Received analysis request: scenario='{request.scenario[:50]}...'")

    recording = recordings.match(request.scenario) if recordings is not None else None
    if recording is not None:
        logger.info("Serving golden-path recording")
        events = replay_recording(recording)
    else:
        events = service.generate_analysis_stream(request.scenario)

    async def event_generator():
        try:
            async for event in events:
                yield to_sse_message(event)
        finally:
            await events.aclose()

    return EventSourceResponse(event_generator(), headers=STREAM_HEADERS, sep="\n")

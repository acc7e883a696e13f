"""Tests for the pipeline orchestrator."""

import asyncio

import pytest

from cryonexus.api.services.analysis_service import AnalysisService
from cryonexus.models.domain import Domain
from cryonexus.models.events import EventName
from cryonexus.services.prompts import (
    ROUTER_SYSTEM_PROMPT,
    SYNTHESIS_SYSTEM_PROMPT,
    specialist_system_prompt,
)
from tests.factories import SUEZ_SCENARIO
from tests.fakes import FakeNews

SPECIALISTS = {d.value for d in Domain}


async def collect(service: AnalysisService, scenario: str = SUEZ_SCENARIO) -> list:
    return [event async for event in service.generate_analysis_stream(scenario)]


def names(events) -> list[str]:
    return [e.event.value for e in events]


def completes(events) -> dict:
    return {e.data["agent"]: e for e in events if e.event == EventName.AGENT_COMPLETE}


def errors(events) -> list:
    return [e for e in events if e.event == EventName.ERROR]


@pytest.mark.asyncio
async def test_end_to_end_scores_100(settings, scripted_llm, fake_news):
    service = AnalysisService(settings, llm=scripted_llm, news=fake_news)
    events = await collect(service)

    assert names(events)[:3] == ["status", "orchestrator", "status"]
    assert events[0].data == {"status": "orchestrating", "message": "Analyzing scenario..."}
    assert events[-1].event == EventName.COMPLETE
    assert events[-1].data == {"compound_risk_score": 100}
    assert [e for e in events if e.is_terminal] == [events[-1]]
    assert errors(events) == []

    done = completes(events)
    assert set(done) == SPECIALISTS | {"synthesis"}
    # The model's own estimate (42) is replaced by the computed score
    assert done["synthesis"].data["structured"]["compound_risk_score"] == 100
    assert done["synthesis"].data["narrative"] == "Cascading failure."


@pytest.mark.asyncio
async def test_specialists_settle_before_synthesis(settings, scripted_llm, fake_news):
    service = AnalysisService(settings, llm=scripted_llm, news=fake_news)
    events = await collect(service)

    synthesizing = next(
        i for i, e in enumerate(events)
        if e.event == EventName.STATUS and e.data["status"] == "synthesizing"
    )
    for i, event in enumerate(events):
        if event.data.get("agent") in SPECIALISTS:
            assert i < synthesizing


@pytest.mark.asyncio
async def test_agent_chunks_keep_order_and_precede_completion(settings, scripted_llm, fake_news):
    service = AnalysisService(settings, llm=scripted_llm, news=fake_news)
    events = await collect(service)

    for domain in Domain:
        own = [e for e in events if e.data.get("agent") == domain.value]
        assert [e.data.get("chunk") for e in own[:-1]] == [
            f"{domain.value} ", "assessment ", "text."
        ]
        assert own[-1].event == EventName.AGENT_COMPLETE
        assert own[-1].data["narrative"] == f"{domain.value} assessment text."
        assert own[-1].data["structured"]["narrative"] == f"{domain.value} assessment text."


@pytest.mark.asyncio
async def test_infrastructure_timeout_is_isolated(settings, scripted_llm, fake_news):
    scripted_llm.scripts[specialist_system_prompt(Domain.INFRASTRUCTURE)].delay = 5
    service = AnalysisService(settings, llm=scripted_llm, news=fake_news)
    events = await collect(service)

    [error] = errors(events)
    assert error.data == {"message": "Agent timed out after 0.5s", "agent": "infrastructure"}

    done = completes(events)
    assert set(done) == SPECIALISTS - {"infrastructure"} | {"synthesis"}
    assert events[-1].event == EventName.COMPLETE
    # 7/9/8/0/8 with geopolitical+economic: 6.85 * 1.3 * 10
    assert events[-1].data == {"compound_risk_score": 89}

    synthesis_prompt = next(p for tool, p in scripted_llm.prompts if tool == "report_synthesis")
    assert "=== INFRASTRUCTURE ANALYSIS ===\nNo analysis available" in synthesis_prompt


@pytest.mark.asyncio
async def test_specialist_failure_reports_agent_error(settings, scripted_llm, fake_news):
    scripted_llm.scripts[specialist_system_prompt(Domain.ECONOMY)].error = RuntimeError(
        "rate limited"
    )
    service = AnalysisService(settings, llm=scripted_llm, news=fake_news)
    events = await collect(service)

    assert [e.data for e in errors(events)] == [{"message": "rate limited", "agent": "economy"}]
    assert "economy" not in completes(events)
    assert events[-1].event == EventName.COMPLETE


@pytest.mark.asyncio
async def test_router_failure_is_fatal(settings, scripted_llm, fake_news):
    scripted_llm.scripts[ROUTER_SYSTEM_PROMPT].object_error = RuntimeError("router unavailable")
    service = AnalysisService(settings, llm=scripted_llm, news=fake_news)
    events = await collect(service)

    assert names(events) == ["status", "error"]
    assert events[-1].data == {"message": "router unavailable"}
    assert events[-1].is_terminal
    assert [tool for tool, _ in scripted_llm.prompts] == ["route_scenario"]


@pytest.mark.asyncio
async def test_synthesis_failure_is_fatal(settings, scripted_llm, fake_news):
    scripted_llm.scripts[SYNTHESIS_SYSTEM_PROMPT].error = RuntimeError("overloaded")
    service = AnalysisService(settings, llm=scripted_llm, news=fake_news)
    events = await collect(service)

    assert events[-1].event == EventName.ERROR
    assert events[-1].data == {"message": "overloaded"}
    assert EventName.COMPLETE not in [e.event for e in events]
    assert len(completes(events)) == 5


@pytest.mark.asyncio
async def test_router_timeout_is_fatal(settings, scripted_llm, fake_news):
    scripted_llm.scripts[ROUTER_SYSTEM_PROMPT].object_delay = 5
    service = AnalysisService(settings, llm=scripted_llm, news=fake_news)
    events = await collect(service)

    assert names(events) == ["status", "error"]
    assert events[-1].data == {"message": "Router timed out after 1s"}
    assert "agent" not in events[-1].data
    assert ROUTER_SYSTEM_PROMPT in scripted_llm.cancelled
    assert [tool for tool, _ in scripted_llm.prompts] == ["route_scenario"]
    assert fake_news.queries == {}


@pytest.mark.asyncio
async def test_synthesis_timeout_is_fatal(settings, scripted_llm, fake_news):
    scripted_llm.scripts[SYNTHESIS_SYSTEM_PROMPT].object_delay = 5
    service = AnalysisService(settings, llm=scripted_llm, news=fake_news)
    events = await collect(service)

    terminal = [e for e in events if e.is_terminal]
    assert terminal == [events[-1]]
    assert events[-1].event == EventName.ERROR
    assert events[-1].data == {"message": "Synthesis timed out after 1s"}
    assert EventName.COMPLETE not in [e.event for e in events]
    assert len(completes(events)) == 5
    assert SYNTHESIS_SYSTEM_PROMPT in scripted_llm.cancelled


@pytest.mark.asyncio
@pytest.mark.parametrize("scenario", ["", "x" * 501])
async def test_invalid_scenario_rejected_before_any_event(settings, scripted_llm, fake_news, scenario):
    service = AnalysisService(settings, llm=scripted_llm, news=fake_news)
    stream = service.generate_analysis_stream(scenario)
    with pytest.raises(ValueError):
        await stream.__anext__()
    assert scripted_llm.prompts == []


@pytest.mark.asyncio
async def test_boundary_length_accepted(settings, scripted_llm, fake_news):
    service = AnalysisService(settings, llm=scripted_llm, news=fake_news)
    events = await collect(service, "x" * 500)
    assert events[-1].event == EventName.COMPLETE


@pytest.mark.asyncio
async def test_news_context_per_domain(settings, scripted_llm):
    news = FakeNews("- Canal blocked by grounded ship")
    service = AnalysisService(settings, llm=scripted_llm, news=news)
    await collect(service)

    assert news.queries[Domain.FOOD_SUPPLY] == "South Asia wheat harvest heat"
    assert news.queries[Domain.CIVILIAN_IMPACT] == "heat wave hospital admissions"
    specialist_prompts = [p for tool, p in scripted_llm.prompts if tool.endswith("_analysis")]
    assert len(specialist_prompts) == 5
    assert all(
        p.startswith("RECENT NEWS CONTEXT:\n- Canal blocked by grounded ship") for p in specialist_prompts
    )


@pytest.mark.asyncio
async def test_closing_stream_cancels_running_agents(settings, scripted_llm, fake_news):
    slow = specialist_system_prompt(Domain.GEOPOLITICS)
    scripted_llm.scripts[slow].delay = 5
    service = AnalysisService(settings, llm=scripted_llm, news=fake_news)

    stream = service.generate_analysis_stream(SUEZ_SCENARIO)
    async for event in stream:
        if event.event == EventName.AGENT_COMPLETE:
            break
    await stream.aclose()
    await asyncio.sleep(0.05)

    assert slow in scripted_llm.cancelled


@pytest.mark.asyncio
async def test_close_releases_clients(settings, scripted_llm, fake_news):
    service = AnalysisService(settings, llm=scripted_llm, news=fake_news)
    await service.close()
    assert fake_news.closed

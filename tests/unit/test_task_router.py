"""Unit tests for ``TaskRouter`` and the delegatable task kinds.

Covers the confidence gate, entity-to-payload construction, clarifying
questions, handler failure folding, result formatting, and prefix dispatch.
"""

import pytest
from entities.router import (
    DELEGATED_TASKS,
    DELEGATION_ERROR_NOTE,
    DelegationState,
    EnrichBusinessProfile,
    FetchCompanyNews,
    FindAndScoreBusinesses,
    IndustryGrowth,
    TaskRouter,
    remote_handler_for,
)
from models import ClassificationResult, ClassifiedTurn

from tests.conftest import FakeAgentHandlerClient, handler_error


def _turn(
    task: str = "none",
    confidence: float = 0.9,
    entities: dict | None = None,
    reply: str = "Original reply.",
) -> ClassifiedTurn:
    return ClassifiedTurn(
        text_response=reply,
        classification=ClassificationResult(
            intent="find_businesses",
            entities=entities or {},
            suggested_next_task=task,
            confidence_score=confidence,
        ),
    )


# ── Gate ─────────────────────────────────────────────────────────────────


class TestDelegationGate:
    """Delegation requires a task and confidence strictly above threshold."""

    @pytest.mark.parametrize(
        ("task", "confidence", "expected"),
        [
            ("connector_find_and_score_businesses", 0.61, True),
            ("connector_find_and_score_businesses", 0.6, False),
            ("connector_find_and_score_businesses", 0.2, False),
            ("none", 0.99, False),
        ],
    )
    def test_should_delegate(self, task: str, confidence: float, expected: bool) -> None:
        router = TaskRouter(FakeAgentHandlerClient(), confidence_threshold=0.6)
        classification = ClassificationResult(suggested_next_task=task, confidence_score=confidence)
        assert router.should_delegate(classification) is expected

    async def test_below_threshold_keeps_reply_and_skips_handler(self) -> None:
        handlers = FakeAgentHandlerClient()
        router = TaskRouter(handlers)

        outcome = await router.route_classified(
            _turn("connector_find_and_score_businesses", 0.5, {"industry": "aerospace"}), "s1"
        )

        assert outcome.state == DelegationState.SKIPPED
        assert outcome.text_response == "Original reply."
        assert not outcome.invoked
        assert handlers.calls == []

    async def test_unknown_suggested_task_is_skipped(self) -> None:
        handlers = FakeAgentHandlerClient()
        router = TaskRouter(handlers)

        outcome = await router.route_classified(_turn("connector_teleport", 0.95), "s1")

        assert outcome.state == DelegationState.SKIPPED
        assert handlers.calls == []


# ── Clarification ────────────────────────────────────────────────────────


class TestClarification:
    """Missing entities replace the reply with a clarifying question."""

    async def test_connector_without_entities_asks_for_type_and_location(self) -> None:
        handlers = FakeAgentHandlerClient()
        router = TaskRouter(handlers)

        outcome = await router.route_classified(
            _turn("connector_find_and_score_businesses", 0.9, {}), "s1"
        )

        assert outcome.state == DelegationState.CLARIFICATION
        assert outcome.text_response == FindAndScoreBusinesses.clarifying_question
        assert "type of business" in outcome.text_response
        assert "Alabama city or region" in outcome.text_response
        assert handlers.calls == []

    async def test_analyst_needs_industry_and_location(self) -> None:
        router = TaskRouter(FakeAgentHandlerClient())

        outcome = await router.route_classified(
            _turn("analyst_get_industry_growth", 0.9, {"industry": "biotech"}), "s1"
        )

        assert outcome.state == DelegationState.CLARIFICATION
        assert outcome.text_response == IndustryGrowth.clarifying_question


# ── Invocation ───────────────────────────────────────────────────────────


class TestInvocation:
    """Handler calls, success formatting, and failure folding."""

    async def test_success_replaces_reply_with_summary(self) -> None:
        handlers = FakeAgentHandlerClient(
            {
                "connector-agent-handler": [
                    {"business": {"name": "Orbital Works", "category": "Aerospace"}, "score": 92}
                ]
            }
        )
        router = TaskRouter(handlers)

        outcome = await router.route_classified(
            _turn(
                "connector_find_and_score_businesses",
                0.9,
                {"industry": "aerospace", "location": "Huntsville"},
            ),
            "s1",
            {"clientType": "web"},
        )

        assert outcome.state == DelegationState.DELEGATED_OK
        assert "Orbital Works" in outcome.text_response
        assert handlers.calls == [
            (
                "connector-agent-handler",
                {
                    "task": "connector_find_and_score_businesses",
                    "payload": {
                        "searchCriteria": {"industry": "aerospace", "location": "Huntsville"},
                        "limit": 5,
                    },
                    "clientContext": {"clientType": "web"},
                    "sessionId": "s1",
                },
            )
        ]
        delegation = outcome.to_dict()
        assert delegation["state"] == "delegated_ok"
        assert delegation["handler"] == "connector-agent-handler"
        assert delegation["data"][0]["score"] == 92

    async def test_handler_error_appends_apology(self) -> None:
        handlers = FakeAgentHandlerClient(
            {"curator-agent-handler": handler_error("curator-agent-handler", "boom", 500)}
        )
        router = TaskRouter(handlers)

        outcome = await router.route_classified(
            _turn("curator_fetch_company_news", 0.8, {"company_name": "Adtran"}), "s1"
        )

        assert outcome.state == DelegationState.DELEGATED_ERROR
        assert outcome.text_response.startswith("Original reply.")
        assert outcome.text_response.endswith(DELEGATION_ERROR_NOTE)
        assert outcome.error == "boom"
        assert outcome.invoked

    async def test_missing_client_context_sent_as_empty_object(self) -> None:
        handlers = FakeAgentHandlerClient({"curator-agent-handler": {"name": "Adtran"}})
        router = TaskRouter(handlers)

        await router.route_classified(
            _turn("curator_enrich_business_profile", 0.9, {"company_id": "42"}), "s1"
        )

        _, body = handlers.calls[0]
        assert body["clientContext"] == {}
        assert body["payload"] == {"businessId": "42"}


# ── Direct dispatch ──────────────────────────────────────────────────────


class TestDispatchRemote:
    """Prefix routing for directly named tasks."""

    @pytest.mark.parametrize(
        ("task", "handler"),
        [
            ("connector_semantic_search_only", "connector-agent-handler"),
            ("analyst_get_industry_growth", "analyst-agent-handler"),
            ("curator_validate_business_data", "curator-agent-handler"),
            ("general_query", None),
            ("bamabot_chat_interaction", None),
        ],
    )
    def test_remote_handler_for(self, task: str, handler: str | None) -> None:
        assert remote_handler_for(task) == handler

    async def test_dispatch_has_no_gate(self) -> None:
        handlers = FakeAgentHandlerClient({"analyst-agent-handler": {"growthRate": "4%"}})
        router = TaskRouter(handlers)

        data = await router.dispatch_remote(
            "analyst_get_industry_growth", {"naicsCode": "3364"}, None, "s1"
        )

        assert data == {"growthRate": "4%"}
        assert handlers.calls[0][1]["task"] == "analyst_get_industry_growth"

    async def test_dispatch_unknown_prefix(self) -> None:
        router = TaskRouter(FakeAgentHandlerClient())
        with pytest.raises(LookupError):
            await router.dispatch_remote("weather_today", {}, None, "s1")


# ── Task kinds ───────────────────────────────────────────────────────────


class TestTaskKinds:
    """Entity mapping, payloads, and formatters per kind."""

    def test_registry_is_closed(self) -> None:
        assert set(DELEGATED_TASKS) == {
            "connector_find_and_score_businesses",
            "analyst_get_industry_growth",
            "curator_enrich_business_profile",
            "curator_fetch_company_news",
        }

    def test_find_and_score_accepts_semantic_text_alone(self) -> None:
        task = FindAndScoreBusinesses.from_entities(
            {"query_text_for_semantic_search": "drone startups"}
        )
        assert task.to_payload() == {"searchCriteria": {"queryText": "drone startups"}, "limit": 5}

    def test_find_and_score_uses_business_type(self) -> None:
        task = FindAndScoreBusinesses.from_entities({"business_type": "brewery"})
        assert task.industry == "brewery"

    def test_find_and_score_empty_result(self) -> None:
        task = FindAndScoreBusinesses(location="Mobile")
        assert "couldn't find" in task.summarize([])

    def test_find_and_score_tolerates_malformed_matches(self) -> None:
        task = FindAndScoreBusinesses(location="Mobile")
        summary = task.summarize(
            [
                {"business": None, "score": 40},
                {"business": {"name": "Gulf Marine", "category": 336, "location": ["Mobile"]}},
                "not a match",
            ]
        )

        lines = summary.splitlines()
        assert lines[1] == "- Unnamed business - match score 40"
        assert lines[2] == "- Gulf Marine (336, ['Mobile'])"
        assert lines[3] == "- Unnamed business"

    def test_industry_growth_payload_and_summary(self) -> None:
        task = IndustryGrowth.from_entities({"naics_code": "3364", "location": "Huntsville"})
        assert task.to_payload() == {"naicsCode": "3364", "location": "Huntsville"}
        summary = task.summarize({"growthRate": "6.2%", "trend": "up"})
        assert "growthRate: 6.2%" in summary
        assert "trend: up" in summary

    def test_enrich_profile_summary(self) -> None:
        task = EnrichBusinessProfile(business_id="7")
        summary = task.summarize(
            {"name": "Gulf Marine", "category": "Shipbuilding", "tags": ["port", "steel"]}
        )
        assert "Gulf Marine" in summary
        assert "Shipbuilding" in summary
        assert "port, steel" in summary

    def test_company_news_payload_and_summary(self) -> None:
        task = FetchCompanyNews.from_entities({"company_name": "Adtran", "domain": "adtran.com"})
        assert task.to_payload() == {"companyName": "Adtran", "domain": "adtran.com"}
        summary = task.summarize([{"title": "Adtran expands", "source": {"name": "AL.com"}}])
        assert "Adtran expands (AL.com)" in summary

    def test_company_news_without_name(self) -> None:
        assert FetchCompanyNews.from_entities({"domain": "adtran.com"}) is None

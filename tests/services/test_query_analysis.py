"""Tests for QueryAnalyzer and the pattern helpers."""

from __future__ import annotations

import pytest

from deep_research.domain.enums import Intent, QueryType
from deep_research.services.query_analysis import (
    QueryAnalysisOutput,
    QueryAnalyzer,
    detect_constraints,
    detect_entities,
    detect_intent,
    detect_query_types,
    extract_media_links,
    extract_urls,
    heuristic_analysis,
    media_id,
)
from deep_research.testing import MockResearchChatModel


# ===================================================================== #
#  Pattern helpers                                                       #
# ===================================================================== #


class TestPatternHelpers:
    def test_extract_urls_in_order(self) -> None:
        query = "compare https://a.example/x and http://b.example/y please"
        assert extract_urls(query) == ("https://a.example/x", "http://b.example/y")

    def test_media_links_and_ids(self) -> None:
        query = "summarize https://www.youtube.com/watch?v=dQw4w9WgXcQ and youtu.be/abc_123"
        links = extract_media_links(query)
        assert len(links) == 2
        assert media_id(links[0]) == "dQw4w9WgXcQ"
        assert media_id(links[1]) == "abc_123"
        assert media_id("https://example.com") is None

    def test_detect_intent(self) -> None:
        assert detect_intent("What is Python?") == Intent.EXPLAIN
        assert detect_intent("compare apples with oranges") == Intent.COMPARE
        assert detect_intent("implement a parser") == Intent.IMPLEMENT
        assert detect_intent("Paris weather") == Intent.SEARCH

    def test_detect_entities_unique(self) -> None:
        entities = detect_entities("Python and python with Docker on AWS")
        assert [e.lower() for e in entities] == ["python", "docker", "aws"]

    def test_detect_constraints(self) -> None:
        constraints = detect_constraints("news from the last 3 days, 5 results")
        assert "last 3 days" in constraints
        assert "5 results" in constraints

    def test_detect_query_types(self) -> None:
        types = detect_query_types("latest research paper on transformers")
        assert QueryType.CURRENT_EVENTS in types
        assert QueryType.ACADEMIC in types

    def test_heuristic_analysis(self) -> None:
        qa = heuristic_analysis("explain https://example.com/doc", error="down")
        assert qa.confidence == 0.5
        assert qa.intent == Intent.EXPLAIN
        assert qa.extracted_urls == ("https://example.com/doc",)
        assert qa.metadata["method"] == "heuristic"
        assert qa.metadata["error"] == "down"


# ===================================================================== #
#  QueryAnalyzer                                                         #
# ===================================================================== #


class TestQueryAnalyzer:
    async def test_reasoned_analysis(self) -> None:
        model = MockResearchChatModel(
            structured_responses={
                "QueryAnalysisOutput": [
                    {
                        "intent": "explain",
                        "entities": ["France", "france", " "],
                        "query_types": ["general_knowledge", "bogus"],
                        "constraints": [],
                    }
                ]
            }
        )
        qa = await QueryAnalyzer(model).analyze("What is the capital of France?")
        assert qa.intent == Intent.EXPLAIN
        assert qa.entities == ("France",)
        assert qa.query_types == (QueryType.GENERAL_KNOWLEDGE,)
        assert qa.confidence == pytest.approx(0.8)
        assert qa.metadata == {"method": "llm"}
        assert model.count("QueryAnalysisOutput") == 1

    async def test_confidence_capped(self) -> None:
        model = MockResearchChatModel(
            structured_responses={
                "QueryAnalysisOutput": [
                    QueryAnalysisOutput(
                        intent="compare",
                        entities=["a", "b", "c"],
                        query_types=["comparison", "technical", "academic"],
                        constraints=["x", "y", "z"],
                    )
                ]
            }
        )
        qa = await QueryAnalyzer(model).analyze("compare a b c")
        assert qa.confidence == pytest.approx(1.0)

    async def test_empty_types_fall_back_to_patterns(self) -> None:
        model = MockResearchChatModel(
            structured_responses={"QueryAnalysisOutput": [{"intent": "search"}]}
        )
        qa = await QueryAnalyzer(model).analyze("latest news on arxiv papers")
        assert QueryType.CURRENT_EVENTS in qa.query_types

    async def test_urls_extracted_on_reasoned_path(self) -> None:
        model = MockResearchChatModel(
            structured_responses={"QueryAnalysisOutput": [{"intent": "extract"}]}
        )
        qa = await QueryAnalyzer(model).analyze("scrape https://example.com/page")
        assert qa.extracted_urls == ("https://example.com/page",)

    async def test_failure_falls_back(self, failing_model) -> None:
        qa = await QueryAnalyzer(failing_model).analyze("How to use Python asyncio?")
        assert qa.confidence == 0.5
        assert qa.metadata["method"] == "heuristic"
        assert qa.metadata["llm_error"] is True
        assert qa.metadata["error_type"] == "RuntimeError"
        assert qa.intent == Intent.EXPLAIN

    async def test_none_reply_falls_back(self) -> None:
        model = MockResearchChatModel(structured_responses={"QueryAnalysisOutput": [None]})
        qa = await QueryAnalyzer(model).analyze("Paris")
        assert qa.metadata["method"] == "heuristic"
        assert qa.metadata["error_type"] == "ReasoningServiceError"

"""Tests for Synthesizer and its fallbacks."""

from __future__ import annotations

from deep_research.services.sources import extract_sources
from deep_research.services.synthesis import (
    Synthesizer,
    _result_blocks,
    fallback_answer,
    no_results_answer,
)
from deep_research.testing import MockResearchChatModel
from tests.helpers.results import make_result, make_results


class TestSynthesizer:
    async def test_no_results_skips_reasoning(self) -> None:
        model = MockResearchChatModel(text_responses=["should not be used"])
        answer = await Synthesizer(model).synthesize("capital of Atlantis", [])
        assert answer == "No relevant results were found for: capital of Atlantis"
        assert model.calls == []

    async def test_answer_is_stripped(self) -> None:
        model = MockResearchChatModel(text_responses=["  Paris is the capital of France [1].\n"])
        results = make_results(1)
        answer = await Synthesizer(model).synthesize("q", results, extract_sources(results))
        assert answer == "Paris is the capital of France [1]."
        assert model.count("text") == 1

    async def test_failure_lists_sources(self, failing_model) -> None:
        results = make_results(2)
        sources = extract_sources(results)
        answer = await Synthesizer(failing_model).synthesize("q", results, sources)
        assert answer.startswith("Unable to synthesize results. Found 2 relevant results.")
        assert "[1] Result 0 (https://example.com/0)" in answer
        assert "[2] Result 1 (https://example.com/1)" in answer

    async def test_empty_reply_uses_fallback(self) -> None:
        model = MockResearchChatModel(text_responses=[""])
        results = make_results(1)
        answer = await Synthesizer(model).synthesize("q", results, extract_sources(results))
        assert answer.startswith("Unable to synthesize results.")


class TestHelpers:
    def test_no_results_answer(self) -> None:
        assert no_results_answer("x") == "No relevant results were found for: x"

    def test_fallback_without_sources(self) -> None:
        assert fallback_answer(make_results(3), []) == (
            "Unable to synthesize results. Found 3 relevant results."
        )

    def test_result_blocks_align_sources(self) -> None:
        first = make_result(
            [{"title": "A", "url": "https://a"}, {"body": "no citation"}, {"title": "B"}],
            tool_id="web",
        )
        second = make_result({"title": "C", "url": "https://c"}, tool_id="wiki")
        sources = extract_sources([first, second])
        text = _result_blocks([first, second], sources)
        assert "[1] A - https://a" in text
        assert "[2] B - no url" in text
        assert "[3] C - https://c" in text
        assert text.index("[2] B") < text.index("web output:") < text.index("[3] C")

    def test_uncited_result(self) -> None:
        result = make_result({"body": "x"}, tool_id="raw")
        assert _result_blocks([result], []).startswith("[uncited]\nraw output:")

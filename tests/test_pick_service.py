"""
Tests for Pick Service
"""

import pytest

from conftest import make_candidate, make_intent
from vibewatch.models.candidate import Pick
from vibewatch.models.request import HistoryItem
from vibewatch.services.pick_service import (
    DEFAULT_REASON,
    FALLBACK_REASON,
    PickService,
    decode_picks,
    dedupe_picks,
    mood_to_hints,
    ranking_system_prompt,
)


class TestMood:

    def test_calm(self):
        assert "comfort" in mood_to_hints(1)["prefer"]
        assert mood_to_hints(2) == mood_to_hints(1)

    def test_neutral(self):
        assert mood_to_hints(3) == {"prefer": ["balanced pacing"], "avoid": []}

    def test_energetic(self):
        assert mood_to_hints(4)["avoid"] == ["slow burn"]

    def test_intense(self):
        assert "high stakes" in mood_to_hints(5)["prefer"]

    def test_out_of_range_clamped(self):
        assert mood_to_hints(-4) == mood_to_hints(1)
        assert mood_to_hints(11) == mood_to_hints(5)

    def test_non_numeric_is_neutral(self):
        assert mood_to_hints("grumpy") == mood_to_hints(3)
        assert mood_to_hints(None) == mood_to_hints(3)

    def test_prompt_lists_avoidances_only_when_present(self):
        assert "Avoid" not in ranking_system_prompt(3)
        assert "- Avoid: relentless, stressful." in ranking_system_prompt(1)


class TestDecoding:

    def test_malformed_output(self):
        assert decode_picks(None) == []
        assert decode_picks({"picks": "nope"}) == []
        assert decode_picks({"items": []}) == []

    def test_malformed_entries_skipped(self):
        picks = decode_picks({"picks": [{"id": 1, "reason": "a"}, {"reason": "no id"}, "junk", {"id": "2"}]})
        assert [p.id for p in picks] == [1, "2"]

    def test_dedupe_by_string_id(self):
        picks = dedupe_picks([Pick(id=1, reason="first"), Pick(id="1", reason="second"), Pick(id=2)])
        assert [(str(p.id), p.reason) for p in picks] == [("1", "first"), ("2", None)]


class TestSelect:

    @pytest.mark.asyncio
    async def test_fallback_to_top_of_pool(self, mock_llm, settings):
        pool = [make_candidate(i) for i in range(20)]
        picks = await PickService(mock_llm, settings).select("vibe", make_intent(), pool)

        assert [p.id for p in picks] == list(range(12))
        assert all(p.reason == FALLBACK_REASON for p in picks)

    @pytest.mark.asyncio
    async def test_model_picks_used_in_order(self, mock_llm, settings):
        mock_llm.complete_json.return_value = {"picks": [
            {"id": 5, "reason": "Tense and tight"},
            {"id": 5, "reason": "duplicate"},
            {"id": 3, "reason": ""},
        ]}
        pool = [make_candidate(i) for i in range(6)]

        picks = await PickService(mock_llm, settings).select("vibe", make_intent(), pool)

        assert [(p.id, p.reason) for p in picks] == [(5, "Tense and tight"), (3, DEFAULT_REASON)]

    @pytest.mark.asyncio
    async def test_payload(self, mock_llm, settings):
        pool = [make_candidate(i) for i in range(300)]
        liked = [HistoryItem(id=i, media_type="movie") for i in range(50)]

        await PickService(mock_llm, settings).select(
            "rainy sunday", make_intent(), pool,
            mood=1, local_hour=21, region="US", liked=liked,
        )

        system, payload = mock_llm.complete_json.call_args.args
        assert "comfort" in system
        assert payload["vibe"] == "rainy sunday"
        assert payload["localHour"] == 21
        assert payload["region"] == "US"
        assert payload["intent"]["searchQueries"] == ["cozy mystery"]
        assert len(payload["liked"]) == 40
        assert payload["disliked"] == []
        assert len(payload["candidates"]) == 220
        assert payload["candidates"][0] == {
            "id": 0,
            "media_type": "movie",
            "title": "Movie 0",
            "overview": "Overview 0",
            "genre_ids": [18],
            "vote_average": 7.0,
            "vote_count": 100,
            "release_date": "2010-05-01",
        }

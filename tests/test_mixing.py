"""Tests for the mixing stage."""

import pytest

from foryou.models import MixingConfig, RecommendationReason
from foryou.models.scoring import Candidate
from foryou.stages import MixingStage, select_with_author_cap

from conftest import NOW, make_post


def _candidates(authors, start=0.99):
    return [
        Candidate(
            id=f"c{k}",
            post=make_post(f"p{k}", author),
            score=start - k * 0.01,
            reason=RecommendationReason.DIVERSITY,
        )
        for k, author in enumerate(authors)
    ]


def _ids(timeline):
    return [c.post.id for c in timeline.posts]


class TestMixingStage:
    def test_truncates_preserving_order(self):
        candidates = _candidates(["a"] * 30)
        timeline = MixingStage().mix(candidates, "u", NOW)
        assert len(timeline) == 20
        assert _ids(timeline) == [f"p{k}" for k in range(20)]

    def test_short_list_kept_whole(self):
        timeline = MixingStage(MixingConfig(timeline_limit=10)).mix(_candidates(["a", "b"]), "u", NOW)
        assert _ids(timeline) == ["p0", "p1"]

    def test_own_posts_dropped(self):
        timeline = MixingStage(MixingConfig(timeline_limit=2)).mix(_candidates(["u", "a", "u", "b"]), "u", NOW)
        assert _ids(timeline) == ["p1", "p3"]

    def test_zero_limit(self):
        assert len(MixingStage(MixingConfig(timeline_limit=0)).mix(_candidates(["a"]), "u", NOW)) == 0

    def test_timeline_metadata(self):
        stage = MixingStage(MixingConfig(algorithm_name="for_you_v2"), version="2.1")
        timeline = stage.mix(_candidates(["a"]), "u", NOW)
        assert timeline.user_id == "u"
        assert timeline.algorithm == "for_you_v2"
        assert timeline.version == "2.1"
        assert timeline.created_at == NOW

    def test_author_cap_unset_is_noop(self):
        candidates = _candidates(["a", "a", "a", "b"])
        timeline = MixingStage().mix(candidates, "u", NOW)
        assert _ids(timeline) == ["p0", "p1", "p2", "p3"]

    def test_author_cap_defers(self):
        candidates = _candidates(["a", "a", "a", "b", "a"])
        cfg = MixingConfig(max_consecutive_per_author=2)
        timeline = MixingStage(cfg).mix(candidates, "u", NOW)
        assert _ids(timeline) == ["p0", "p1", "p3", "p2", "p4"]

    def test_author_cap_ignored_without_diversity(self):
        candidates = _candidates(["a", "a", "a", "b"])
        cfg = MixingConfig(max_consecutive_per_author=1, enable_diversity=False)
        assert _ids(MixingStage(cfg).mix(candidates, "u", NOW)) == ["p0", "p1", "p2", "p3"]


class TestSelectWithAuthorCap:
    def test_respects_k(self):
        assert len(select_with_author_cap(_candidates(["a", "b"] * 5), 3, 1)) == 3

    def test_stops_when_only_blocked_author_left(self):
        selected = select_with_author_cap(_candidates(["a", "a", "a"]), 10, 1)
        assert [c.post.id for c in selected] == ["p0"]

    def test_does_not_mutate_input(self):
        candidates = _candidates(["a", "a", "b"])
        before = list(candidates)
        select_with_author_cap(candidates, 3, 1)
        assert candidates == before

    @pytest.mark.parametrize("cap", [1, 2, 3])
    def test_no_run_longer_than_cap(self, cap):
        authors = ["a"] * 6 + ["b"] * 6 + ["c"] * 6
        selected = select_with_author_cap(_candidates(authors), 18, cap)
        run, last = 0, None
        for c in selected:
            run = run + 1 if c.post.author_id == last else 1
            last = c.post.author_id
            assert run <= cap

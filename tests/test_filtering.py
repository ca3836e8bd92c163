"""Tests for the filter stage."""

import pytest

from foryou.models import FilteringConfig
from foryou.stages import ContentHashDetector, FilterStage

from conftest import make_post, post_ids


@pytest.fixture
def mixed_posts():
    return [
        make_post("ok_1", "bob", "a perfectly ordinary post", likes=3),
        make_post("short", "bob", "too short"),
        make_post("spam", "carol", "Buy now, totally not SPAM at all"),
        make_post("own", "alice", "alice writes something long enough"),
        make_post("ok_2", "carol", "another perfectly ordinary post"),
        make_post("ok_1", "bob", "a perfectly ordinary post", likes=3),
        make_post("quiet", "dave", "nobody engaged with this one", likes=0),
    ]


class TestFilterStage:
    def test_default_filters(self, mixed_posts):
        result = FilterStage().filter(mixed_posts, "alice")
        assert post_ids(result) == ["ok_1", "ok_2", "quiet"]

    def test_preserves_order(self, mixed_posts):
        result = FilterStage().filter(list(reversed(mixed_posts)), "alice")
        assert post_ids(result) == ["quiet", "ok_1", "ok_2"]

    def test_idempotent(self, mixed_posts):
        stage = FilterStage(FilteringConfig(min_engagement_threshold=1), ContentHashDetector())
        once = stage.filter(mixed_posts, "alice")
        assert stage.filter(once, "alice") == once

    def test_never_keeps_own_posts(self, mixed_posts):
        assert "alice" not in {p.author_id for p in FilterStage().filter(mixed_posts, "alice")}

    def test_engagement_floor(self, mixed_posts):
        stage = FilterStage(FilteringConfig(min_engagement_threshold=1))
        assert post_ids(stage.filter(mixed_posts, "alice")) == ["ok_1"]

    def test_all_disabled_is_identity(self, mixed_posts):
        cfg = FilteringConfig(
            enable_content_filtering=False,
            enable_user_filtering=False,
            enable_engagement_filtering=False,
            enable_diversity_filtering=False,
        )
        assert FilterStage(cfg).filter(mixed_posts, "alice") == mixed_posts

    def test_content_length_boundary(self):
        stage = FilterStage(FilteringConfig(min_content_length=11))
        posts = [make_post("ten", content="0123456789"), make_post("eleven", content="01234567890")]
        assert post_ids(stage.apply_content_filter(posts)) == ["eleven"]

    def test_content_is_stripped_before_length_check(self):
        stage = FilterStage()
        assert stage.apply_content_filter([make_post("pad", content="   short    ")]) == []

    def test_custom_denylist(self):
        stage = FilterStage(FilteringConfig(denylist=["crypto"]))
        posts = [make_post("a", content="spam is allowed here now"), make_post("b", content="CRYPTO giveaway today")]
        assert post_ids(stage.apply_content_filter(posts)) == ["a"]

    def test_empty_input(self):
        assert FilterStage().filter([], "alice") == []


class TestDuplicateDetection:
    def test_repeated_ids_dropped_without_detector(self):
        posts = [make_post("x", content="first version of x"), make_post("x", content="second version of x")]
        result = FilterStage().apply_diversity_filter(posts)
        assert len(result) == 1
        assert result[0].content == "first version of x"

    def test_content_hash_detector(self):
        posts = [
            make_post("a", "bob", "Same   words here"),
            make_post("b", "carol", "same words HERE"),
            make_post("c", "carol", "different words here"),
        ]
        stage = FilterStage(duplicate_detector=ContentHashDetector())
        assert post_ids(stage.apply_diversity_filter(posts)) == ["a", "c"]

    def test_reposts_of_same_original(self):
        posts = [
            make_post("orig", "bob", "the original announcement"),
            make_post("rp1", "carol", "reposting: look at this", is_repost=True, original_post_id="orig"),
            make_post("rp2", "dave", "also reposting this one", is_repost=True, original_post_id="orig"),
        ]
        stage = FilterStage(duplicate_detector=ContentHashDetector())
        assert post_ids(stage.apply_diversity_filter(posts)) == ["orig"]

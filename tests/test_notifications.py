"""Tests for the notification pipeline and the rate-limit store."""

from datetime import timedelta

import pytest

from foryou.errors import DataSourceError, SourceUnavailable
from foryou.models import (
    CandidateSourceConfig,
    Interaction,
    InteractionType,
    NotificationConfig,
    NotificationPriority,
    NotificationType,
    priority_for_score,
)
from foryou.sources import InMemoryRateLimitStore
from foryou.stages import NotificationPipeline
from foryou.stages.notifications import reactive_score, trending_score

from conftest import NOW, FlakyDataSource, make_post


class ConstantModel:
    def __init__(self, value: float):
        self.value = value

    def score(self, features):
        return self.value


def _pipeline(source, config=None, store=None, model_score=0.5, source_config=None):
    return NotificationPipeline(
        source,
        ConstantModel(model_score),
        config=config or NotificationConfig(),
        source_config=source_config,
        rate_limit_store=store or InMemoryRateLimitStore(),
    )


def _types(notifications):
    return [n.type for n in notifications]


class TestScores:
    def test_reactive_score(self):
        fresh = Interaction(id="i", user_id="bob", post_id="p", type=InteractionType.LIKE, timestamp=NOW, weight=1.0)
        assert reactive_score(fresh, NOW) == pytest.approx(1.0)
        stale = fresh.model_copy(update={"timestamp": NOW - timedelta(hours=48), "weight": 0.5})
        assert reactive_score(stale, NOW) == pytest.approx(0.3)

    def test_trending_score(self):
        post = make_post("p", hours_ago=0.0, likes=1000)
        assert trending_score(post, NOW) == pytest.approx(1.0)
        assert trending_score(make_post("q", hours_ago=1000.0), NOW) == 0.0

    @pytest.mark.parametrize(
        "score,priority",
        [
            (0.95, NotificationPriority.URGENT),
            (0.9, NotificationPriority.URGENT),
            (0.7, NotificationPriority.HIGH),
            (0.5, NotificationPriority.MEDIUM),
            (0.4, NotificationPriority.MEDIUM),
            (0.39, NotificationPriority.LOW),
        ],
    )
    def test_priority_bands(self, score, priority):
        assert priority_for_score(score) == priority


class TestNotificationPipeline:
    @pytest.mark.asyncio
    async def test_one_per_type_sorted(self, social_source, alice_context):
        batch = await _pipeline(social_source).generate("alice", alice_context, NOW)
        assert _types(batch.notifications) == [
            NotificationType.LIKE,
            NotificationType.TRENDING,
            NotificationType.REPLY,
            NotificationType.PERSONALIZED,
        ]
        scores = [n.score for n in batch.notifications]
        assert scores == sorted(scores, reverse=True)
        assert batch.notifications[0].priority == NotificationPriority.URGENT
        assert batch.notifications[0].author_id == "bob"
        assert batch.notifications[1].post_id == "viral"

    @pytest.mark.asyncio
    async def test_second_call_within_window_repeats_no_type(self, social_source, alice_context):
        pipeline = _pipeline(social_source)
        first = await pipeline.generate("alice", alice_context, NOW)
        second = await pipeline.generate("alice", alice_context, NOW + timedelta(minutes=5))
        assert first.notifications
        assert not set(_types(first.notifications)) & set(_types(second.notifications))

    @pytest.mark.asyncio
    async def test_window_expires(self, social_source, alice_context):
        pipeline = _pipeline(social_source, NotificationConfig(max_frequency_seconds=60))
        await pipeline.generate("alice", alice_context, NOW)
        later = await pipeline.generate("alice", alice_context, NOW + timedelta(seconds=61))
        assert NotificationType.TRENDING in _types(later.notifications)

    @pytest.mark.asyncio
    async def test_threshold(self, social_source, alice_context):
        cfg = NotificationConfig(min_score_threshold=0.9)
        batch = await _pipeline(social_source, cfg).generate("alice", alice_context, NOW)
        assert _types(batch.notifications) == [NotificationType.LIKE, NotificationType.TRENDING]
        assert all(n.score >= 0.9 for n in batch.notifications)

    @pytest.mark.asyncio
    async def test_max_notifications(self, social_source, alice_context):
        cfg = NotificationConfig(max_notifications=2)
        batch = await _pipeline(social_source, cfg).generate("alice", alice_context, NOW)
        assert len(batch.notifications) == 2

    @pytest.mark.asyncio
    async def test_origins_toggle(self, social_source, alice_context):
        cfg = NotificationConfig(enable_engagement=False, enable_personalized=False)
        batch = await _pipeline(social_source, cfg).generate("alice", alice_context, NOW)
        assert _types(batch.notifications) == [NotificationType.TRENDING]
        assert batch.attempted_origins == 1

    @pytest.mark.asyncio
    async def test_ignores_non_reactive_interactions(self, social_source, alice_context):
        cfg = NotificationConfig(enable_trending=False, enable_personalized=False, min_score_threshold=0.0)
        batch = await _pipeline(social_source, cfg).generate("alice", alice_context, NOW)
        assert set(_types(batch.notifications)) == {NotificationType.LIKE, NotificationType.REPLY}

    @pytest.mark.asyncio
    async def test_personalized_skips_own_posts(self, social_source, alice_context):
        pipeline = _pipeline(social_source, model_score=0.9)
        posts = await social_source.fetch_out_of_network("alice", 20)
        candidates = pipeline.personalized_candidates("alice", posts, alice_context, NOW)
        assert candidates
        assert all(n.author_id != "alice" for n in candidates)

    @pytest.mark.asyncio
    async def test_nothing_to_send(self, alice_context):
        from foryou.sources import InMemoryDataSource

        batch = await _pipeline(InMemoryDataSource()).generate("alice", alice_context, NOW)
        assert batch.notifications == []

    @pytest.mark.asyncio
    async def test_degraded_origin(self, social_source, alice_context):
        flaky = FlakyDataSource(social_source, fail={"fetch_trending": DataSourceError("down", transient=False)})
        batch = await _pipeline(flaky).generate("alice", alice_context, NOW)
        assert batch.failed_origins == ["trending"]
        assert NotificationType.TRENDING not in _types(batch.notifications)
        assert NotificationType.LIKE in _types(batch.notifications)

    @pytest.mark.asyncio
    async def test_fail_policy(self, social_source, alice_context):
        flaky = FlakyDataSource(social_source, fail={"fetch_trending": DataSourceError("down", transient=False)})
        pipeline = _pipeline(flaky, source_config=CandidateSourceConfig(partial_failure_policy="fail"))
        with pytest.raises(SourceUnavailable):
            await pipeline.generate("alice", alice_context, NOW)


class TestRateLimitStore:
    def test_try_acquire(self):
        store = InMemoryRateLimitStore()
        assert store.try_acquire("u", NotificationType.LIKE, NOW, 60)
        assert not store.try_acquire("u", NotificationType.LIKE, NOW + timedelta(seconds=30), 60)
        assert store.try_acquire("u", NotificationType.REPLY, NOW, 60)
        assert store.try_acquire("v", NotificationType.LIKE, NOW, 60)
        assert store.try_acquire("u", NotificationType.LIKE, NOW + timedelta(seconds=60), 60)

    def test_clock_going_backwards_is_denied(self):
        store = InMemoryRateLimitStore()
        store.set_last_sent("u", NotificationType.LIKE, NOW)
        assert not store.try_acquire("u", NotificationType.LIKE, NOW - timedelta(hours=1), 60)

    def test_get_and_clear(self):
        store = InMemoryRateLimitStore()
        store.try_acquire("u", NotificationType.LIKE, NOW, 60)
        assert store.get_last_sent("u", NotificationType.LIKE) == NOW
        store.clear("u")
        assert store.get_last_sent("u", NotificationType.LIKE) is None

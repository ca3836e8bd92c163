"""End-to-end tests for RecommendationOrchestrator."""

from datetime import timedelta

import pytest

from foryou import (
    DemoDataSource,
    InvalidConfiguration,
    ModelLoadFailure,
    Notification,
    PipelineError,
    RecentMetricsSink,
    RecommendationOrchestrator,
    SourceUnavailable,
    Timeline,
)
from foryou.errors import DataSourceError
from foryou.ml import StaticWeightsLoader

from conftest import NOW, FlakyDataSource


class ExplodingDiversity:
    def scores(self, posts, user_context):
        raise RuntimeError("diversity service crashed")


@pytest.fixture
def sink():
    return RecentMetricsSink()


def _orchestrator(source, sink=None, config=None, **kwargs):
    return RecommendationOrchestrator(
        source, config, metrics_sink=sink, clock=lambda: NOW, **kwargs
    )


class TestTimeline:
    @pytest.mark.asyncio
    async def test_timeline(self, social_source, sink):
        timeline = await _orchestrator(social_source, sink).generate_timeline("alice")
        ids = [c.post.id for c in timeline.posts]
        assert timeline.user_id == "alice"
        assert len(ids) == 11
        assert len(set(ids)) == len(ids)
        assert "alice_0" not in ids
        scores = [c.score for c in timeline.posts]
        assert scores == sorted(scores, reverse=True)
        assert all(0.0 <= s <= 1.0 for s in scores)

    @pytest.mark.asyncio
    async def test_own_posts_excluded_without_user_filter(self, social_source):
        orchestrator = _orchestrator(social_source, config={"filtering": {"enable_user_filtering": False}})
        timeline, metrics = await orchestrator.generate_timeline_with_metrics("alice")
        assert metrics.filtered_count == 12
        assert "alice_0" not in [c.post.id for c in timeline.posts]
        assert all(c.post.author_id != "alice" for c in timeline.posts)

    @pytest.mark.asyncio
    async def test_limit(self, social_source):
        orchestrator = _orchestrator(social_source, config={"mixing": {"timeline_limit": 3}})
        timeline = await orchestrator.generate_timeline("alice")
        assert len(timeline) == 3

    @pytest.mark.asyncio
    async def test_metrics(self, social_source, sink):
        timeline, metrics = await _orchestrator(social_source, sink).generate_timeline_with_metrics("alice")
        assert metrics.pipeline == "timeline"
        assert metrics.sourced_count == 14
        assert metrics.filtered_count == 11
        assert metrics.ranked_count == 11
        assert metrics.returned_count == len(timeline) == 11
        assert metrics.error_rate == 0.0
        assert not metrics.degraded
        assert metrics.duration_seconds >= 0.0
        assert metrics.memory_rss_bytes > 0
        assert metrics.timestamp == NOW
        assert sink.recent() == [metrics]

    @pytest.mark.asyncio
    async def test_author_profiles_attached(self, social_source):
        timeline = await _orchestrator(social_source).generate_timeline("alice")
        bob = next(c for c in timeline.posts if c.post.author_id == "bob")
        assert bob.features["author_followers"] == 1200
        assert bob.features["author_verified"] == 1.0

    @pytest.mark.asyncio
    async def test_deterministic_for_fixed_clock(self, social_source):
        orchestrator = _orchestrator(social_source)
        assert await orchestrator.generate_timeline("alice") == await orchestrator.generate_timeline("alice")

    @pytest.mark.asyncio
    async def test_cache_hit_rate(self, social_source, sink):
        orchestrator = _orchestrator(
            social_source, sink, config={"candidate_source": {"enable_real_time": False}}
        )
        await orchestrator.generate_timeline("alice")
        _, metrics = await orchestrator.generate_timeline_with_metrics("alice")
        assert metrics.cache_hit_rate == 1.0

    @pytest.mark.asyncio
    async def test_degraded_origin(self, social_source, sink):
        flaky = FlakyDataSource(social_source, fail={"fetch_trending": DataSourceError("down", transient=False)})
        timeline, metrics = await _orchestrator(flaky, sink).generate_timeline_with_metrics("alice")
        assert len(timeline) > 0
        assert metrics.degraded
        assert metrics.failed_origins == ["trending"]
        assert metrics.error_rate == pytest.approx(1 / 4)

    @pytest.mark.asyncio
    async def test_all_origins_down(self, social_source):
        err = DataSourceError("down", transient=False)
        flaky = FlakyDataSource(
            social_source,
            fail={"fetch_in_network": err, "fetch_out_of_network": err, "fetch_trending": err},
        )
        with pytest.raises(SourceUnavailable):
            await _orchestrator(flaky).generate_timeline("alice")

    @pytest.mark.asyncio
    async def test_user_context_fallback(self, social_source, sink):
        flaky = FlakyDataSource(social_source, fail={"fetch_user_context": DataSourceError("slow", transient=True)})
        timeline, metrics = await _orchestrator(flaky, sink).generate_timeline_with_metrics("alice")
        assert len(timeline) == 11
        assert "user_context" in metrics.failed_origins
        assert metrics.error_rate == pytest.approx(1 / 4)

    @pytest.mark.asyncio
    async def test_user_context_failure_with_fail_policy(self, social_source):
        flaky = FlakyDataSource(social_source, fail={"fetch_user_context": DataSourceError("gone", transient=False)})
        orchestrator = _orchestrator(flaky, config={"candidate_source": {"partial_failure_policy": "fail"}})
        with pytest.raises(SourceUnavailable):
            await orchestrator.generate_timeline("alice")

    @pytest.mark.asyncio
    async def test_stage_failure_is_pipeline_error(self, social_source, sink):
        orchestrator = _orchestrator(social_source, sink, diversity_scorer=ExplodingDiversity())
        with pytest.raises(PipelineError) as exc:
            await orchestrator.generate_timeline("alice")
        assert exc.value.stage == "ranking"
        assert len(sink) == 0

    @pytest.mark.asyncio
    async def test_demo_source(self):
        source = DemoDataSource(seed=3, num_users=20, now=NOW)
        timeline = await _orchestrator(source).generate_timeline("user_0")
        assert 0 < len(timeline) <= 20
        assert all(c.post.author_id != "user_0" for c in timeline.posts)


class TestConstruction:
    def test_invalid_config(self, social_source):
        with pytest.raises(InvalidConfiguration):
            _orchestrator(social_source, config={"candidate_source": {"in_network_weight": 0.9}})

    def test_bad_weights(self, social_source):
        loader = StaticWeightsLoader({"model_type": "heavy", "layers": []})
        with pytest.raises(ModelLoadFailure):
            _orchestrator(social_source, weights_loader=loader)

    def test_light_ranker_selected(self, social_source):
        orchestrator = _orchestrator(social_source, config={"ranking": {"enable_ml_ranking": False}})
        assert type(orchestrator.model).__name__ == "LightRanker"


class TestNotifications:
    @pytest.mark.asyncio
    async def test_notifications(self, social_source, sink):
        notifications, metrics = await _orchestrator(social_source, sink).generate_notifications_with_metrics("alice")
        assert notifications
        assert len({n.type for n in notifications}) == len(notifications)
        assert metrics.pipeline == "notifications"
        assert metrics.returned_count == len(notifications)

    @pytest.mark.asyncio
    async def test_second_call_repeats_no_type(self, social_source):
        times = iter([NOW, NOW + timedelta(minutes=1)])
        orchestrator = RecommendationOrchestrator(social_source, clock=lambda: next(times))
        first = await orchestrator.generate_notifications("alice")
        second = await orchestrator.generate_notifications("alice")
        assert not {n.type for n in first} & {n.type for n in second}


class TestSerialization:
    @pytest.mark.asyncio
    async def test_timeline_json_round_trip(self, social_source):
        timeline = await _orchestrator(social_source).generate_timeline("alice")
        restored = Timeline.model_validate_json(timeline.model_dump_json())
        assert restored == timeline
        assert restored.posts[0].post.created_at == timeline.posts[0].post.created_at

    @pytest.mark.asyncio
    async def test_notification_json_round_trip(self, social_source):
        notifications = await _orchestrator(social_source).generate_notifications("alice")
        for n in notifications:
            assert Notification.model_validate_json(n.model_dump_json()) == n

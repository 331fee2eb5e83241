"""
Unit tests for adaptive sampling.

Tests the AvgSampleRate estimator and the DynamicSampler accept rule.
"""

import logging
import random

import pytest

from access_log_pipeline.ingestion.exceptions import EstimatorStartError
from access_log_pipeline.pipeline.sampling import AvgSampleRate, DynamicSampler
from tests.unit.conftest import FixedRateEstimator, make_event


class TestComputeSampleRates:
    """Tests for the per-window rate computation."""

    def test_frequent_key_sampled_rare_key_kept(self):
        """The frequent key absorbs the budget; the rare key stays at 1."""
        rates = AvgSampleRate.compute_sample_rates({"a": 1000, "b": 10}, 10)
        assert rates == {"a": 14, "b": 1}

    def test_keys_seen_once_get_rate_one(self):
        """Counts of one give a zero log sum and rate 1 for every key."""
        rates = AvgSampleRate.compute_sample_rates({"a": 1, "b": 1}, 50)
        assert rates == {"a": 1, "b": 1}

    def test_empty_window(self):
        """No traffic in the window gives no rates."""
        assert AvgSampleRate.compute_sample_rates({}, 10) == {}

    def test_rates_are_positive_integers(self):
        """Every computed rate is an int >= 1."""
        counts = {f"k{i}": (i + 1) ** 3 for i in range(20)}
        rates = AvgSampleRate.compute_sample_rates(counts, 7)

        assert set(rates) == set(counts)
        assert all(isinstance(rate, int) and rate >= 1 for rate in rates.values())

    def test_kept_volume_near_goal(self):
        """Expected kept events approximate total / goal."""
        counts = {"200_lb": 90000, "404_lb": 9000, "500_lb": 1000}
        goal = 20
        rates = AvgSampleRate.compute_sample_rates(counts, goal)

        kept = sum(count / rates[key] for key, count in counts.items())
        assert kept == pytest.approx(sum(counts.values()) / goal, rel=0.1)
        assert rates["200_lb"] > rates["404_lb"] > rates["500_lb"]


class TestAvgSampleRate:
    """Tests for the windowed estimator."""

    def test_unknown_key_gets_rate_one(self):
        """Keys without a computed rate are always kept."""
        estimator = AvgSampleRate(goal_sample_rate=10)
        assert estimator.get_sample_rate("never-seen") == 1

    def test_rates_apply_after_window_closes(self):
        """Counts collected in one window drive the rates of the next."""
        estimator = AvgSampleRate(goal_sample_rate=10)
        for _ in range(1000):
            estimator.get_sample_rate("a")
        for _ in range(10):
            estimator.get_sample_rate("b")

        estimator.update_maps()

        assert estimator.get_sample_rate("a") == 14
        assert estimator.get_sample_rate("b") == 1
        assert estimator.get_sample_rate("c") == 1

    def test_window_reset_forgets_quiet_keys(self):
        """A key absent from the last window falls back to rate 1."""
        estimator = AvgSampleRate(goal_sample_rate=10)
        for _ in range(1000):
            estimator.get_sample_rate("a")
        for _ in range(10):
            estimator.get_sample_rate("b")
        estimator.update_maps()

        estimator.update_maps()

        assert estimator.get_sample_rate("a") == 1

    def test_start_rejects_goal_below_one(self):
        """A goal rate below one cannot be estimated."""
        with pytest.raises(EstimatorStartError, match="goal_sample_rate"):
            AvgSampleRate(goal_sample_rate=0).start()

    def test_start_rejects_non_positive_window(self):
        """The window length must be positive."""
        with pytest.raises(EstimatorStartError, match="clear_frequency_sec"):
            AvgSampleRate(goal_sample_rate=5, clear_frequency_sec=0).start()

    def test_start_error_message(self):
        """Start failures carry the dynamic sampler prefix."""
        with pytest.raises(EstimatorStartError) as exc_info:
            AvgSampleRate(goal_sample_rate=-1).start()
        assert str(exc_info.value).startswith("Couldn't start dynamic sampler")

    def test_start_and_stop(self):
        """start() is idempotent and stop() ends the background thread."""
        estimator = AvgSampleRate(goal_sample_rate=5, clear_frequency_sec=60)
        estimator.start()
        thread = estimator._thread
        estimator.start()

        assert estimator._thread is thread
        assert thread.is_alive()

        estimator.stop()
        assert not thread.is_alive()


class TestDynamicSampler:
    """Tests for the randomized accept rule."""

    def test_rate_one_keeps_every_event(self):
        """Rate 1 keeps all events with sample_rate 1."""
        sampler = DynamicSampler(FixedRateEstimator(rate=1), rng=random.Random(1))

        kept = [sampler.sample(make_event(n=i), "key") for i in range(200)]

        assert all(event is not None for event in kept)
        assert all(event.sample_rate == 1 for event in kept)

    @pytest.mark.parametrize("rate", [0, -3])
    def test_non_positive_rate_keeps_event_and_logs(self, rate, caplog):
        """A faulty estimator rate is logged and treated as 1."""
        sampler = DynamicSampler(FixedRateEstimator(rate=rate), rng=random.Random(1))

        with caplog.at_level(logging.ERROR):
            kept = [sampler.sample(make_event(n=i), "200_lb") for i in range(20)]

        assert all(event is not None and event.sample_rate == 1 for event in kept)
        assert "Sample rate should not be less than one" in caplog.text
        assert "200_lb" in caplog.text

    def test_rate_four_keeps_about_a_quarter(self):
        """Rate r keeps roughly 1/r of events, each carrying rate r."""
        sampler = DynamicSampler(FixedRateEstimator(rate=4), rng=random.Random(42))

        results = [sampler.sample(make_event(n=i), "key") for i in range(4000)]
        kept = [event for event in results if event is not None]

        assert 850 <= len(kept) <= 1150
        assert all(event.sample_rate == 4 for event in kept)

    def test_rejected_event_not_modified(self):
        """Dropped events keep their default sample rate."""
        sampler = DynamicSampler(FixedRateEstimator(rate=1000), rng=random.Random(3))
        events = [make_event(n=i) for i in range(50)]

        results = [sampler.sample(event, "key") for event in events]

        for event, result in zip(events, results):
            if result is None:
                assert event.sample_rate == 1

    def test_estimator_queried_with_key(self):
        """The derived key is what the estimator sees."""
        estimator = FixedRateEstimator(rate=1)
        sampler = DynamicSampler(estimator)

        sampler.sample(make_event(), "504_lb")

        assert estimator.keys == ["504_lb"]

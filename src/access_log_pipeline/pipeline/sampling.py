"""
Adaptive sampling of events.

Provides:
- SampleRateEstimator: contract for per-key adaptive rate sources
- AvgSampleRate: estimator converging on a goal rate averaged over all keys
- DynamicSampler: the randomized accept/reject rule applied to each event

Sampling keys are derived per format by the event parsers; rare keys
(e.g. 5xx responses) end up with low rates and frequent keys (e.g. 200s)
with high ones.
"""

import logging
import math
import random
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Optional

from ..config.constants import DEFAULT_CLEAR_FREQUENCY_SEC, DEFAULT_SAMPLE_RATE
from ..ingestion.base import Event
from ..ingestion.exceptions import EstimatorFaultError, EstimatorStartError

logger = logging.getLogger(__name__)


class SampleRateEstimator(ABC):
    """
    Abstract base class for sample-rate estimators.

    start() must be called once before the first get_sample_rate().
    """

    @abstractmethod
    def start(self) -> None:
        """
        Prepare the estimator for use.

        Raises:
            EstimatorStartError: If the estimator cannot operate
        """
        pass

    @abstractmethod
    def get_sample_rate(self, key: str) -> int:
        """Return the sample rate for one event with the given key."""
        pass

    def stop(self) -> None:
        """Release background resources."""
        pass


class AvgSampleRate(SampleRateEstimator):
    """
    Estimator aiming for an average sample rate across all keys.

    Counts events per key over a window of clear_frequency_sec seconds.
    At the end of each window new rates are computed so that the window's
    events would have been kept at roughly 1/goal_sample_rate overall,
    with each key's share of the kept budget growing with the log of its
    count. Rare keys keep rate 1; keys not seen in the previous window
    get rate 1.
    """

    def __init__(
        self,
        goal_sample_rate: int = DEFAULT_SAMPLE_RATE,
        clear_frequency_sec: float = DEFAULT_CLEAR_FREQUENCY_SEC,
    ):
        self.goal_sample_rate = goal_sample_rate
        self.clear_frequency_sec = clear_frequency_sec

        self._lock = threading.Lock()
        self._current_counts: dict[str, int] = defaultdict(int)
        self._saved_sample_rates: dict[str, int] = {}
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self.goal_sample_rate < 1:
            raise EstimatorStartError(
                f"goal_sample_rate must be >= 1, got {self.goal_sample_rate}"
            )
        if self.clear_frequency_sec <= 0:
            raise EstimatorStartError(
                f"clear_frequency_sec must be > 0, got {self.clear_frequency_sec}"
            )
        if self._thread is not None:
            return

        self._thread = threading.Thread(
            target=self._run,
            name="avg-sample-rate",
            daemon=True,
        )
        self._thread.start()
        logger.debug(
            f"Started AvgSampleRate (goal={self.goal_sample_rate}, "
            f"window={self.clear_frequency_sec}s)"
        )

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None

    def get_sample_rate(self, key: str) -> int:
        with self._lock:
            self._current_counts[key] += 1
            return self._saved_sample_rates.get(key, 1)

    def update_maps(self) -> None:
        """Close the current window and recompute per-key rates from it."""
        with self._lock:
            counts = self._current_counts
            self._current_counts = defaultdict(int)

        rates = self.compute_sample_rates(counts, self.goal_sample_rate)

        with self._lock:
            self._saved_sample_rates = rates

    @staticmethod
    def compute_sample_rates(counts: dict[str, int], goal_sample_rate: int) -> dict[str, int]:
        """
        Compute per-key rates for one window of counts.

        Args:
            counts: Events seen per key during the window
            goal_sample_rate: Average rate to aim for

        Returns:
            Mapping of key to integer sample rate (>= 1)

        Examples:
            >>> AvgSampleRate.compute_sample_rates({"a": 1000, "b": 10}, 10)
            {'a': 14, 'b': 1}
        """
        if not counts:
            return {}

        sum_events = sum(counts.values())
        log_sum = sum(math.log10(count) for count in counts.values())
        goal_count = sum_events / goal_sample_rate
        # every key seen exactly once: nothing to spread
        goal_ratio = goal_count / log_sum if log_sum > 0 else 0.0

        rates: dict[str, int] = {}
        keys_remaining = len(counts)
        extra = 0.0

        for key in sorted(counts):
            count = float(counts[key])
            goal_for_key = max(1.0, math.log10(count) * goal_ratio)

            # spread leftover budget from earlier keys over the rest
            extra_for_key = extra / keys_remaining
            goal_for_key += extra_for_key
            extra -= extra_for_key
            keys_remaining -= 1

            if count <= goal_for_key:
                rates[key] = 1
                extra += goal_for_key - count
            else:
                rate = math.ceil(count / goal_for_key)
                extra += goal_for_key - (count / rate)
                rates[key] = int(rate)

        return rates

    def _run(self) -> None:
        while not self._stop.wait(self.clear_frequency_sec):
            self.update_maps()


class DynamicSampler:
    """
    Randomized accept/reject rule driven by an estimator.

    An event with rate r is kept with probability 1/r and then carries
    r as its sample rate. Rejected events are dropped.
    """

    def __init__(
        self,
        estimator: SampleRateEstimator,
        rng: Optional[random.Random] = None,
    ):
        self.estimator = estimator
        self.rng = rng or random.Random()

    def sample(self, event: Event, key: str) -> Optional[Event]:
        """
        Decide whether to keep an event.

        Args:
            event: Confirmed event
            key: Sampling key derived from the event

        Returns:
            The event with sample_rate set if kept, None if dropped
        """
        rate = self.estimator.get_sample_rate(key)
        if rate <= 0:
            logger.error(str(EstimatorFaultError(key, rate)))
            rate = 1

        if self.rng.randrange(rate) != 0:
            return None

        event.sample_rate = rate
        return event

"""
Pytest configuration and shared fixtures for unit tests.
"""

import threading
from datetime import datetime, timezone
from typing import Optional

import pytest

from access_log_pipeline.ingestion.base import Event
from access_log_pipeline.ingestion.tokenizer import LineTokenizer
from access_log_pipeline.pipeline.sampling import SampleRateEstimator
from access_log_pipeline.telemetry.sender import EventSender

# =============================================================================
# SAMPLE LOG LINES
# =============================================================================

ELB_LINE = (
    "2017-07-31T20:30:57.975041Z spline_reticulation_lb 10.11.12.13:47882 "
    "10.3.47.87:8080 0.000021 0.010962 0.000016 200 200 766 17 "
    '"PUT https://api.simulation.io:443/reticulate/spline/1 HTTP/1.1" '
    '"libhoney-go/1.3.3" ECDHE-RSA-AES128-GCM-SHA256 TLSv1.2'
)

# Backend never answered: no backend address, '-' status
ELB_LINE_NO_BACKEND = (
    "2017-07-31T20:31:02.000000Z spline_reticulation_lb 10.11.12.13:47890 "
    "- -1 -1 -1 504 - 0 0 "
    '"GET https://api.simulation.io:443/reticulate/spline/2?force=true HTTP/1.1" '
    '"curl/7.54.0" ECDHE-RSA-AES128-GCM-SHA256 TLSv1.2'
)

CLOUDFRONT_LINE = "\t".join(
    [
        "2014-05-23",
        "01:13:11",
        "FRA2",
        "182",
        "192.0.2.10",
        "GET",
        "d111111abcdef8.cloudfront.net",
        "/view/my/file.html",
        "200",
        "www.displaymyfiles.com",
        "Mozilla/4.0%20(compatible;%20MSIE%205.0b1;%20Mac_PowerPC)",
        "-",
        "zip=98101",
        "RefreshHit",
        "MRVMF7KydIvxMWfJIglgwHQwZsbG2IhRJ07sn9AkKUFSHS9EXAMPLE==",
        "d111111abcdef8.cloudfront.net",
        "http",
        "-",
        "0.001",
        "-",
        "-",
        "-",
        "RefreshHit",
        "HTTP/1.1",
    ]
)

CLOUDFRONT_HEADER = [
    "#Version: 1.0",
    "#Fields: date time x-edge-location sc-bytes c-ip cs-method cs(Host) "
    "cs-uri-stem sc-status cs(Referer) cs(User-Agent) cs-uri-query cs(Cookie) "
    "x-edge-result-type x-edge-request-id x-host-header cs-protocol cs-bytes "
    "time-taken x-forwarded-for ssl-protocol ssl-cipher "
    "x-edge-response-result-type cs-protocol-version",
]


@pytest.fixture
def elb_line() -> str:
    return ELB_LINE


@pytest.fixture
def elb_line_no_backend() -> str:
    return ELB_LINE_NO_BACKEND


@pytest.fixture
def cloudfront_line() -> str:
    return CLOUDFRONT_LINE


@pytest.fixture
def cloudfront_header() -> list[str]:
    return list(CLOUDFRONT_HEADER)


def make_event(**fields) -> Event:
    """Build an event with a fixed timestamp."""
    return Event(
        timestamp=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
        fields=fields,
    )


# =============================================================================
# TEST DOUBLES
# =============================================================================


class FixedRateEstimator(SampleRateEstimator):
    """Estimator returning one configured rate for every key."""

    def __init__(self, rate: int = 1):
        self.rate = rate
        self.started = False
        self.stopped = False
        self.keys: list[str] = []

    def start(self) -> None:
        self.started = True

    def get_sample_rate(self, key: str) -> int:
        self.keys.append(key)
        return self.rate

    def stop(self) -> None:
        self.stopped = True


class RecordingSender(EventSender):
    """Sender keeping every event in memory."""

    def __init__(self):
        self.events: list[Event] = []
        self.closed = False
        self._lock = threading.Lock()

    def send(self, event: Event) -> None:
        with self._lock:
            self.events.append(event)

    def close(self) -> None:
        self.closed = True


class DroppingTokenizer(LineTokenizer):
    """
    Tokenizer emitting a plain event for the first `emit` lines and
    silently dropping every later line.
    """

    def __init__(self, emit: int):
        self.emit = emit
        self.seen = 0
        self._lock = threading.Lock()

    def tokenize(self, line: str) -> Optional[Event]:
        with self._lock:
            self.seen += 1
            if self.seen > self.emit:
                return None
        return make_event(line=line)


class EchoTokenizer(LineTokenizer):
    """Tokenizer emitting one event per line, holding the line as-is."""

    def __init__(self):
        self.lines: list[str] = []

    def tokenize(self, line: str) -> Optional[Event]:
        self.lines.append(line)
        return make_event(line=line)


@pytest.fixture
def recording_sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def fixed_estimator() -> FixedRateEstimator:
    return FixedRateEstimator(rate=1)

"""
Shared fixtures for integration tests.

Provides:
- Generated ELB and CloudFront log objects on disk
- A Honeycomb sender backed by httpx.MockTransport
- Settings pointing at a temporary state directory
"""

import gzip
import json
import random
import threading
from datetime import datetime, timedelta
from pathlib import Path

import httpx
import pytest

from access_log_pipeline.config import HoneycombSettings, SamplingSettings, Settings
from access_log_pipeline.telemetry import HoneycombSender

# =============================================================================
# SAMPLE DATA GENERATORS
# =============================================================================

ELB_NAMES = ["spline_reticulation_lb", "checkout_lb"]
STATUS_WEIGHTS = [(200, 90), (404, 7), (500, 2), (504, 1)]
PATHS = ["/reticulate/spline/1", "/reticulate/spline/2?force=true", "/health"]


def _weighted_status(rng: random.Random) -> int:
    codes, weights = zip(*STATUS_WEIGHTS)
    return rng.choices(codes, weights=weights)[0]


def generate_elb_lines(num_lines: int = 100, seed: int = 42) -> list[str]:
    """
    Generate ELB access-log lines.

    Args:
        num_lines: Number of lines to generate
        seed: Random seed for reproducibility (default: 42)

    Returns:
        List of log lines without terminators
    """
    rng = random.Random(seed)
    start = datetime(2024, 1, 1, 12, 0, 0)
    lines = []

    for idx in range(num_lines):
        ts = start + timedelta(milliseconds=137 * idx)
        status = _weighted_status(rng)
        backend_status = "-" if status == 504 else str(status)
        backend = "-" if status == 504 else "10.3.47.87:8080"
        lines.append(
            f"{ts.strftime('%Y-%m-%dT%H:%M:%S.%fZ')} {rng.choice(ELB_NAMES)} "
            f"10.11.12.{rng.randint(1, 254)}:{rng.randint(1024, 65535)} {backend} "
            f"0.000021 0.{rng.randint(1000, 99999):06d} 0.000016 "
            f"{status} {backend_status} 0 {rng.randint(10, 5000)} "
            f'"GET https://api.simulation.io:443{rng.choice(PATHS)} HTTP/1.1" '
            f'"libhoney-go/1.3.3" ECDHE-RSA-AES128-GCM-SHA256 TLSv1.2'
        )

    return lines


def generate_cloudfront_lines(num_lines: int = 100, seed: int = 42) -> list[str]:
    """Generate tab-separated CloudFront lines, including W3C headers."""
    rng = random.Random(seed)
    start = datetime(2024, 1, 1, 12, 0, 0)
    lines = [
        "#Version: 1.0",
        "#Fields: date time x-edge-location sc-bytes c-ip cs-method cs(Host) ...",
    ]

    for idx in range(num_lines):
        ts = start + timedelta(seconds=idx)
        lines.append(
            "\t".join(
                [
                    ts.strftime("%Y-%m-%d"),
                    ts.strftime("%H:%M:%S"),
                    "FRA2",
                    str(rng.randint(100, 9000)),
                    "192.0.2.10",
                    "GET",
                    "d111111abcdef8.cloudfront.net",
                    rng.choice(["/view/my/file.html", "/img/logo.png"]),
                    str(_weighted_status(rng)),
                    "-",
                    "Mozilla/5.0%20(X11;%20Linux%20x86_64)",
                    "-",
                    "-",
                    "Hit",
                    f"req{idx:06d}EXAMPLE==",
                    "www.example.com",
                    "https",
                    "120",
                    "0.002",
                    "-",
                    "TLSv1.2",
                    "ECDHE-RSA-AES128-GCM-SHA256",
                    "Hit",
                    "HTTP/2.0",
                ]
            )
        )

    return lines


def write_plain(path: Path, lines: list[str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def write_gzip(path: Path, lines: list[str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with gzip.open(path, "wt", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")
    return path


# =============================================================================
# COMPONENT FIXTURES
# =============================================================================


class BatchCollector:
    """httpx MockTransport handler collecting posted batches."""

    def __init__(self):
        self.urls: list[str] = []
        self.items: list[dict] = []
        self._lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.urls.append(str(request.url))
            self.items.extend(json.loads(request.content))
        return httpx.Response(200, json=[])


@pytest.fixture
def collector() -> BatchCollector:
    return BatchCollector()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    state_dir = tmp_path / "state"
    state_dir.mkdir()
    return Settings(
        state_dir=str(state_dir),
        num_parsers=2,
        sampling=SamplingSettings(goal_sample_rate=1, clear_frequency_sec=300),
        honeycomb=HoneycombSettings(
            write_key="integration-key",
            api_host="https://api.example.test",
            send_frequency_ms=10,
        ),
    )


@pytest.fixture
def make_sender(settings, collector):
    """Factory for Honeycomb senders posting to the collector."""
    senders = []

    def factory(service: str) -> HoneycombSender:
        client = httpx.Client(transport=httpx.MockTransport(collector))
        sender = HoneycombSender(
            settings.honeycomb,
            dataset=settings.dataset_for(service),
            client=client,
        )
        senders.append(sender)
        return sender

    yield factory

    for sender in senders:
        sender.close()

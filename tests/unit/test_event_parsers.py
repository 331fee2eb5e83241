"""
Unit tests for the ELB and CloudFront event parsers.

Tests line normalization, sample key derivation, object parsing and the
parser factory.
"""

import pytest

from access_log_pipeline.config import Settings
from access_log_pipeline.ingestion import (
    CloudFrontEventParser,
    ELBEventParser,
    ObjectReadError,
    RawObject,
    UnknownFormatError,
    create_event_parser,
    list_formats,
)
from access_log_pipeline.ingestion.providers.aws_cloudfront.adapter import (
    join_date_and_time,
)
from access_log_pipeline.ingestion.tokenizer import NginxTokenizer
from tests.unit.conftest import EchoTokenizer, make_event


class TestELBSampleKey:
    """Tests for ELB sample key derivation."""

    def test_key_from_full_line(self, elb_line):
        """Backend code, ELB code and ELB name joined with underscores."""
        parser = ELBEventParser()
        event = parser.tokenizer.tokenize(parser.prepare_line(elb_line))

        assert parser.derive_sample_key(event) == "200_200_spline_reticulation_lb"

    def test_key_when_backend_never_answered(self, elb_line_no_backend):
        """A '-' backend status code becomes '0'."""
        parser = ELBEventParser()
        event = parser.tokenizer.tokenize(parser.prepare_line(elb_line_no_backend))

        assert event.fields["backend_status_code"] == "-"
        assert parser.derive_sample_key(event) == "0_504_spline_reticulation_lb"

    def test_key_is_deterministic(self):
        """Identical discriminating fields give identical keys."""
        parser = ELBEventParser()
        first = make_event(
            backend_status_code=404, elb_status_code=404, elb="lb", request="GET /a"
        )
        second = make_event(
            backend_status_code=404, elb_status_code=404, elb="lb", request="GET /b"
        )

        assert parser.derive_sample_key(first) == parser.derive_sample_key(second)

    def test_missing_fields_degrade_key(self):
        """Absent components are left out rather than failing the event."""
        parser = ELBEventParser()

        assert parser.derive_sample_key(make_event()) == ""
        assert parser.derive_sample_key(make_event(elb="lb")) == "_lb"
        assert parser.derive_sample_key(make_event(backend_status_code=502)) == "502"

    def test_wrong_typed_fields_omitted(self):
        """Non-integer ELB status and non-string ELB name are skipped."""
        parser = ELBEventParser()
        event = make_event(backend_status_code=200, elb_status_code="-", elb=12)

        assert parser.derive_sample_key(event) == "200"


class TestCloudFrontLineNormalization:
    """Tests for the date/time rejoin."""

    def test_date_and_time_joined(self, cloudfront_line):
        """The first two fields become one ISO 8601 token."""
        prepared = join_date_and_time(cloudfront_line)

        assert prepared.startswith("2014-05-23T01:13:11 FRA2 182 ")
        assert "\t" not in prepared

    def test_runs_of_whitespace_collapsed(self):
        """Any separator run becomes exactly one space."""
        line = "2024-01-01  12:00:00.000Z   LAX1\t\t2390 \t-"
        assert join_date_and_time(line) == "2024-01-01T12:00:00.000Z LAX1 2390 -"

    def test_short_lines(self):
        """Lines with fewer than two fields are passed through normalized."""
        assert join_date_and_time("  single  ") == "single"
        assert join_date_and_time("") == ""

    def test_parser_uses_rejoin(self, cloudfront_line):
        """CloudFront parser prepares lines with the rejoin."""
        assert CloudFrontEventParser().prepare_line(cloudfront_line) == (
            join_date_and_time(cloudfront_line)
        )

    def test_elb_lines_only_stripped(self, elb_line):
        """ELB lines keep their inner spacing."""
        assert ELBEventParser().prepare_line(f"  {elb_line}\n") == elb_line


class TestCloudFrontSampleKey:
    """Tests for CloudFront sample key derivation."""

    def test_key_from_full_line(self, cloudfront_line):
        """Edge status code and distribution domain."""
        parser = CloudFrontEventParser()
        event = parser.tokenizer.tokenize(parser.prepare_line(cloudfront_line))

        assert event is not None
        assert parser.derive_sample_key(event) == "200_d111111abcdef8.cloudfront.net"

    def test_non_numeric_status(self):
        """A non-numeric status gives '0'."""
        parser = CloudFrontEventParser()
        event = make_event(sc_status="-", cs_host="d1.cloudfront.net")

        assert parser.derive_sample_key(event) == "0_d1.cloudfront.net"

    def test_missing_host(self):
        """A missing host leaves just the status."""
        parser = CloudFrontEventParser()
        assert parser.derive_sample_key(make_event(sc_status=503)) == "503"


class TestParseEvents:
    """Tests for converting whole objects."""

    def test_elb_object(self, tmp_path, elb_line, elb_line_no_backend):
        """Every non-blank line of a plain-text object yields one event."""
        path = tmp_path / "elb.log"
        path.write_text(f"{elb_line}\n\n{elb_line_no_backend}\n")
        events = []

        stats = ELBEventParser().parse_events(
            RawObject(id="AWSLogs/elb.log", local_path=str(path)), out=events.append
        )

        assert stats.lines_read == 3
        assert stats.skipped == 1
        assert stats.confirmed == 2
        assert [event.fields["elb_status_code"] for event in events] == [200, 504]

    def test_cloudfront_header_lines_skipped(
        self, tmp_path, cloudfront_line, cloudfront_header
    ):
        """#Version and #Fields lines never reach the tokenizer."""
        tokenizer = EchoTokenizer()
        path = tmp_path / "cf.log"
        path.write_text("\n".join(cloudfront_header + [cloudfront_line]) + "\n")
        events = []

        stats = CloudFrontEventParser(tokenizer=tokenizer).parse_events(
            RawObject(id="cf.log", local_path=str(path)), out=events.append
        )

        assert stats.skipped == 2
        assert tokenizer.lines == [join_date_and_time(cloudfront_line)]
        assert len(events) == 1

    def test_missing_object_raises_read_error(self, tmp_path):
        """Unreadable objects surface as ObjectReadError."""
        with pytest.raises(ObjectReadError) as exc_info:
            ELBEventParser().parse_events(
                RawObject(id="gone.log", local_path=str(tmp_path / "gone.log")),
                out=lambda event: None,
            )
        assert exc_info.value.object_id == "gone.log"


class TestParserFactory:
    """Tests for create_event_parser and list_formats."""

    def test_list_formats(self):
        assert list_formats() == ["aws_cf_web", "aws_elb"]

    def test_create_each_format(self):
        assert isinstance(create_event_parser("aws_elb"), ELBEventParser)
        assert isinstance(create_event_parser("aws_cf_web"), CloudFrontEventParser)

    def test_format_name_case_insensitive(self):
        assert isinstance(create_event_parser("AWS_ELB"), ELBEventParser)

    def test_settings_applied(self):
        """Worker count and line timeout come from settings."""
        settings = Settings(num_parsers=3, line_timeout_seconds=0.25)
        parser = create_event_parser("aws_elb", settings)

        assert parser.num_parsers == 3
        assert parser.line_timeout == 0.25
        assert isinstance(parser.tokenizer, NginxTokenizer)

    def test_custom_tokenizer(self):
        tokenizer = EchoTokenizer()
        assert create_event_parser("aws_cf_web", tokenizer=tokenizer).tokenizer is tokenizer

    def test_unknown_format(self):
        """Unknown names list the supported formats."""
        with pytest.raises(UnknownFormatError) as exc_info:
            create_event_parser("nginx_combined")

        assert exc_info.value.available_formats == ["aws_cf_web", "aws_elb"]
        assert "aws_elb" in str(exc_info.value)

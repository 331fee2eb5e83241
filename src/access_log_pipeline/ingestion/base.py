"""
Abstract base class and data models for access-log event parsers.

Provides the per-format parser interface (parse events from one object,
derive the sampling key of one event) and the records that flow through
the pipeline.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Optional

from ..config.constants import DEFAULT_LINE_TIMEOUT_SECONDS
from .conversion import ConversionStats, LineConverter
from .exceptions import ObjectReadError, SchemaError
from .file_utils import iter_log_lines, open_log_object

if TYPE_CHECKING:
    from .schemas import LogSchema
    from .tokenizer import LineTokenizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawObject:
    """
    One downloaded log object awaiting conversion.

    Attributes:
        id: Identifier of the object in remote storage (e.g., the S3 key)
        local_path: Path of the downloaded copy; deleted after a successful publish
    """

    id: str
    local_path: str


@dataclass
class Event:
    """
    One structured event produced from one log line.

    Attributes:
        timestamp: Event time (UTC)
        fields: Parsed fields in log-format order
        sample_rate: 1 means always kept; overwritten when the event survives sampling
    """

    timestamp: datetime
    fields: dict[str, Any] = field(default_factory=dict)
    sample_rate: int = 1


# =============================================================================
# Field Coercion
# =============================================================================


def int_field(fields: dict[str, Any], name: str) -> Optional[int]:
    """
    Read an integer field.

    Returns:
        The value, or None if the field is absent

    Raises:
        SchemaError: If the field is present but not an integer
    """
    if name not in fields:
        return None
    value = fields[name]
    if isinstance(value, bool) or not isinstance(value, int):
        raise SchemaError(name, value, "an integer")
    return value


def str_field(fields: dict[str, Any], name: str) -> Optional[str]:
    """
    Read a string field.

    Returns:
        The value, or None if the field is absent

    Raises:
        SchemaError: If the field is present but not a string
    """
    if name not in fields:
        return None
    value = fields[name]
    if not isinstance(value, str):
        raise SchemaError(name, value, "a string")
    return value


def status_key_component(fields: dict[str, Any], name: str) -> str:
    """
    Leading sample-key component built from a status code field.

    Absent fields give an empty component; present but non-numeric values
    (e.g. '-' when the backend never answered) give '0'.
    """
    try:
        code = int_field(fields, name)
    except SchemaError as e:
        logger.debug(f"Using '0' in sample key: {e}")
        return "0"
    return "" if code is None else str(code)


# =============================================================================
# Event Parser Interface
# =============================================================================


class EventParser(ABC):
    """
    Abstract base class for per-format event parsers.

    Each log format implements this interface to normalize its lines for
    the tokenizer and to derive the sampling key of its events.

    Subclasses must implement:
        - format_name: Property returning the log format identifier
        - schema: Property returning the LogSchema of the format
        - derive_sample_key(): Build the sampling key of one event

    Subclasses may override prepare_line() when their raw lines need
    normalizing before tokenization.
    """

    def __init__(
        self,
        tokenizer: Optional["LineTokenizer"] = None,
        num_parsers: int = 1,
        line_timeout: float = DEFAULT_LINE_TIMEOUT_SECONDS,
    ):
        """
        Initialize the parser.

        Args:
            tokenizer: Tokenizer for this format (default: NginxTokenizer on schema)
            num_parsers: Worker threads per tokenizer session
            line_timeout: Seconds allowed per line before the object is abandoned
        """
        if tokenizer is None:
            from .tokenizer import NginxTokenizer

            tokenizer = NginxTokenizer(self.schema)

        self.tokenizer = tokenizer
        self.num_parsers = num_parsers
        self.line_timeout = line_timeout

    @property
    @abstractmethod
    def format_name(self) -> str:
        """Return the log format identifier (e.g., 'aws_elb')."""
        pass

    @property
    @abstractmethod
    def schema(self) -> "LogSchema":
        """Return the declared schema of the format."""
        pass

    @abstractmethod
    def derive_sample_key(self, event: Event) -> str:
        """
        Build the sampling key of an event from its discriminating fields.

        Events with identical discriminating fields must map to the same
        key regardless of timestamp or path. Missing or wrong-typed fields
        degrade the key and never fail the event.
        """
        pass

    def prepare_line(self, line: str) -> str:
        """Normalize a raw line before it is submitted to the tokenizer."""
        return line.strip()

    def parse_events(
        self,
        obj: RawObject,
        out: Callable[[Event], None],
    ) -> ConversionStats:
        """
        Convert every line of a downloaded object into events.

        Blank and comment lines are skipped. Each remaining line must yield
        its event within line_timeout seconds.

        Args:
            obj: Object to read
            out: Callback receiving each confirmed event in order

        Returns:
            Conversion counters

        Raises:
            ObjectReadError: If the object cannot be opened or read
            TokenizerStallError: If the tokenizer misses a line's deadline
        """
        try:
            handle = open_log_object(obj.local_path)
        except OSError as e:
            raise ObjectReadError(obj.local_path, str(e), object_id=obj.id) from e

        with handle, self.tokenizer.open_session(self.num_parsers) as session:
            converter = LineConverter(
                session,
                line_timeout=self.line_timeout,
                prepare=self.prepare_line,
                object_id=obj.id,
            )
            try:
                return converter.convert(iter_log_lines(handle), out)
            except (OSError, EOFError, UnicodeDecodeError) as e:
                raise ObjectReadError(
                    obj.local_path,
                    f"{e} after {converter.stats.lines_read} lines",
                    object_id=obj.id,
                ) from e

"""
Log schema definitions.

A LogSchema declares one access-log format as an nginx-style log_format
template ("$field literal $field ..."), the name of its time field and the
strptime format of that field. Schemas are immutable and compiled once.
"""

import re
from dataclasses import dataclass, field

from ..config.constants import (
    AWS_CLOUDFRONT_WEB_FORMAT,
    AWS_ELB_FORMAT,
    CLOUDFRONT_TIME_FORMAT,
    CLOUDFRONT_WEB_LOG_FORMAT,
    ELB_LOG_FORMAT,
    ELB_TIME_FORMAT,
    TIME_FIELD_NAME,
)

_VARIABLE_RE = re.compile(r"\$(\w+)")


def compile_log_format(template: str) -> tuple[tuple[str, ...], re.Pattern]:
    """
    Compile an nginx-style log_format template to a regex.

    Each $variable captures everything up to the first character of the
    literal text that follows it; the last variable captures the rest of
    the line.

    Args:
        template: Template such as '$timestamp $elb "$request"'

    Returns:
        Tuple of (field names in template order, compiled pattern)

    Raises:
        ValueError: If the template has no variables or repeats one

    Examples:
        >>> names, pattern = compile_log_format('$a "$b" $c')
        >>> names
        ('a', 'b', 'c')
        >>> pattern.match('1 "x y" z').groupdict()
        {'a': '1', 'b': 'x y', 'c': 'z'}
    """
    matches = list(_VARIABLE_RE.finditer(template))
    if not matches:
        raise ValueError(f"log_format template has no $variables: {template!r}")

    names: list[str] = []
    parts = [re.escape(template[: matches[0].start()])]

    for idx, match in enumerate(matches):
        name = match.group(1)
        if name in names:
            raise ValueError(f"Variable ${name} appears twice in log_format template")
        names.append(name)

        next_start = matches[idx + 1].start() if idx + 1 < len(matches) else len(template)
        literal = template[match.end() : next_start]

        if literal:
            stop = re.escape(literal[0])
            parts.append(f"(?P<{name}>[^{stop}]*)")
        elif idx + 1 == len(matches):
            parts.append(f"(?P<{name}>.*)")
        else:
            raise ValueError(
                f"Variables ${name} and ${matches[idx + 1].group(1)} "
                f"need a separator between them"
            )
        parts.append(re.escape(literal))

    return tuple(names), re.compile("^" + "".join(parts) + "$")


@dataclass(frozen=True)
class LogSchema:
    """
    Declared format of one access-log flavour.

    Attributes:
        name: Format identifier (e.g., 'aws_elb')
        template: nginx-style log_format template
        time_field: Field holding the event timestamp
        time_format: strptime format of the time field
    """

    name: str
    template: str
    time_field: str = TIME_FIELD_NAME
    time_format: str = "%Y-%m-%dT%H:%M:%S"
    field_names: tuple[str, ...] = field(init=False, repr=False, compare=False)
    pattern: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        names, pattern = compile_log_format(self.template)
        if self.time_field not in names:
            raise ValueError(
                f"Time field ${self.time_field} missing from {self.name} template"
            )
        object.__setattr__(self, "field_names", names)
        object.__setattr__(self, "pattern", pattern)


ELB_SCHEMA = LogSchema(
    name=AWS_ELB_FORMAT,
    template=ELB_LOG_FORMAT,
    time_format=ELB_TIME_FORMAT,
)

CLOUDFRONT_WEB_SCHEMA = LogSchema(
    name=AWS_CLOUDFRONT_WEB_FORMAT,
    template=CLOUDFRONT_WEB_LOG_FORMAT,
    time_format=CLOUDFRONT_TIME_FORMAT,
)

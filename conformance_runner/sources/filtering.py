"""Case selection by substring filter and index range."""

import re
from collections.abc import Sequence

from conformance_runner.errors import ConfigurationError

RANGE_PATTERN = re.compile(r"^\s*(\d+)\s*(?:(-)\s*(\d+)?)?\s*$")


def parse_filter(case_filter: str | None) -> Sequence[str]:
    """Split a comma-separated filter into lower-cased substrings."""
    if not case_filter:
        return ()
    return tuple(
        part.strip().lower() for part in case_filter.split(",") if part.strip()
    )


def parse_index_range(index_range: str) -> tuple[int, int | None]:
    """Parse an index range into an inclusive ``(start, end)`` pair.

    Accepted forms are ``"7"`` (single index), ``"3-10"`` (inclusive) and
    ``"5-"`` (open end, returned as ``end=None``).

    Raises:
        ConfigurationError: If the range is malformed or reversed

    """
    match = RANGE_PATTERN.match(index_range)
    if match is None:
        raise ConfigurationError(f"Invalid index range '{index_range}'")

    start = int(match.group(1))
    if match.group(2) is None:
        return start, start
    if match.group(3) is None:
        return start, None

    end = int(match.group(3))
    if end < start:
        raise ConfigurationError(
            f"Invalid index range '{index_range}': end is before start"
        )
    return start, end


def filter_cases(
    case_ids: Sequence[str],
    case_filter: str | None = None,
    index_range: str | None = None,
) -> Sequence[str]:
    """Select cases from a suite listing, preserving listing order.

    The index range refers to positions in the unfiltered listing (as shown
    by list mode) and is applied first. The substring filter then keeps every
    case matching any of its substrings, ignoring case.
    """
    selected = list(case_ids)

    if index_range:
        start, end = parse_index_range(index_range)
        selected = selected[start : None if end is None else end + 1]

    substrings = parse_filter(case_filter)
    if substrings:
        selected = [
            case_id
            for case_id in selected
            if any(substring in case_id.lower() for substring in substrings)
        ]

    return selected

"""
Port specification resolver

Turns strings such as ``"5000-5002,5010"`` into the concrete list of ports
to reserve.
"""
import logging
import re
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

MIN_PORT = 1
MAX_PORT = 65535

_TOKEN_PATTERN = re.compile(r'^(\d+)(?:-(\d+))?$')


def validate_port(port: int) -> bool:
    """Validate port number is in valid range"""
    return MIN_PORT <= port <= MAX_PORT


def parse_range(token: str) -> range:
    """
    Parse a single specification token

    Args:
        token: Either 'N' or an inclusive range 'N-M'

    Returns:
        range of ports; empty when N > M

    Raises:
        InvalidSpecification: If the token is not a port or a port range
    """
    text = token.strip()
    match = _TOKEN_PATTERN.match(text)
    if not match:
        raise InvalidSpecification(f"Invalid port or range: '{token}'")

    low = int(match.group(1))
    high = int(match.group(2)) if match.group(2) is not None else low

    for port in (low, high):
        if not validate_port(port):
            raise InvalidSpecification(
                f"Port {port} in '{text}' is outside {MIN_PORT}-{MAX_PORT}"
            )

    if low > high:
        logger.debug(f"Reversed range '{text}' resolves to no ports")

    return range(low, high + 1)


def expand(spec: str) -> List[int]:
    """
    Expand a comma-separated specification, keeping duplicates and order

    Raises:
        InvalidSpecification: If any token is malformed
    """
    ports = []
    for token in spec.split(','):
        ports.extend(parse_range(token))
    return ports


def resolve(include_spec: str, exclude_spec: Optional[str] = None) -> List[int]:
    """
    Resolve include/exclude specifications into ports to reserve

    Every port of the include expansion that does not appear in the exclude
    expansion is returned exactly once, in first-seen order.

    Args:
        include_spec: Ports and ranges to reserve, e.g. '5000-5002,5010'
        exclude_spec: Ports and ranges to leave out, e.g. '5001'

    Returns:
        Ordered list of unique ports

    Raises:
        InvalidSpecification: If either specification is malformed
    """
    if include_spec is None or not str(include_spec).strip():
        raise InvalidSpecification("No ports specified")

    included = expand(str(include_spec))
    excluded = set()
    if exclude_spec is not None and str(exclude_spec).strip():
        excluded = set(expand(str(exclude_spec)))

    ports = list(_unique(port for port in included if port not in excluded))
    logger.debug(f"Resolved {len(ports)} ports ({len(excluded)} excluded)")
    return ports


def _unique(ports: Iterable[int]) -> Iterable[int]:
    seen = set()
    for port in ports:
        if port not in seen:
            seen.add(port)
            yield port


class InvalidSpecification(ValueError):
    """Port specification could not be parsed"""
    pass

"""Pool sizing policy."""

import math
import os


def available_parallelism() -> int:
    """Number of CPUs on the host, 1 if it cannot be determined."""
    return os.cpu_count() or 1


def resolve_count(
    available_parallelism: int,
    ratio: float | None = None,
    explicit_count: int | None = None,
) -> int:
    """Resolve how many workers a pool should start.

    An explicit count wins over a ratio, and a ratio wins over the plain
    CPU count. The ratio result is floored. Whatever the inputs, at least
    one worker is started, so zero or negative values clamp to 1.

    Examples:
        >>> resolve_count(4, ratio=0.5)
        2
        >>> resolve_count(5, ratio=0.5)
        2
        >>> resolve_count(4, ratio=0.5, explicit_count=7)
        7
        >>> resolve_count(1, explicit_count=0)
        1
    """
    if explicit_count is not None:
        count = explicit_count
    elif ratio is not None:
        count = math.floor(available_parallelism * ratio)
    else:
        count = available_parallelism

    return max(count, 1)

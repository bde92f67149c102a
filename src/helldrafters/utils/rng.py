"""Random number helpers shared by the draft and event rules.

Every session owns a single ``random.Random`` instance. It can be seeded from
a human readable string so that a run can be replayed exactly:

- Reproducibility: the same seed always deals the same hands
- Debugging: a reported run can be replayed from its seed
- Observability: weighted draws walk the entries in pool order

Examples:
    >>> rng = make_rng("run-42")
    >>> weighted_index(rng, [10, 0, 30]) in (0, 2)
    True

    >>> shuffled = fisher_yates(rng, [0, 1, 2, 3])
    >>> sorted(shuffled)
    [0, 1, 2, 3]
"""

from __future__ import annotations

import hashlib
import random
import uuid
from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


def generate_seed(session_id: str) -> str:
    """Generate a deterministic seed string for a session.

    The session id itself is the seed, so a run can be replayed from its id.

    Args:
        session_id: Identifier of the running session

    Returns:
        Seed string suitable for :func:`make_rng`

    Examples:
        >>> generate_seed("abc")
        'abc'

    Raises:
        ValueError: If session_id is empty
    """
    if not session_id:
        raise ValueError("session_id must be a non-empty string")
    return session_id


def _seed_to_int(seed: str) -> int:
    """Convert seed string to a stable 64-bit integer for random.Random().

    Args:
        seed: Seed string

    Returns:
        64-bit integer derived from SHA-256(seed)
    """
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    # Use first 8 bytes for a 64-bit integer
    return int.from_bytes(digest[:8], "big", signed=False)


def make_rng(seed: str | None = None) -> random.Random:
    """Return a ``random.Random`` seeded from ``seed``.

    When ``seed`` is ``None`` a fresh random seed is used so that casual play
    is unpredictable.
    """

    if seed is None:
        seed = uuid.uuid4().hex
    return random.Random(_seed_to_int(seed))


def weighted_index(rng: random.Random, weights: Sequence[float]) -> int | None:
    """Pick an index by walk-and-subtract over ``weights``.

    Draws ``r`` uniformly in ``[0, total)`` and walks the weights in order,
    subtracting each one, and stops at the first index where the remainder is
    ``<= 0``. The walk order is observable, so entries must be passed in a
    stable order.

    Args:
        rng: Session random generator
        weights: Non-negative weights, in pool order

    Returns:
        The selected index, or ``None`` when the total weight is zero

    Examples:
        >>> weighted_index(make_rng("x"), [0, 5])
        1
        >>> weighted_index(make_rng("x"), []) is None
        True
    """
    total = sum(weights)
    if total <= 0:
        return None

    remainder = rng.random() * total
    last_positive: int | None = None
    for index, weight in enumerate(weights):
        if weight <= 0:
            continue
        last_positive = index
        remainder -= weight
        if remainder <= 0:
            return index
    # Float rounding can leave a tiny positive remainder after the walk
    return last_positive


def fisher_yates(rng: random.Random, values: Sequence[T]) -> list[T]:
    """Return a shuffled copy of ``values`` using the Fisher–Yates algorithm.

    Walks from the end of the list, swapping position ``i`` with
    ``j = floor(random() * (i + 1))``.
    """

    shuffled = list(values)
    for i in range(len(shuffled) - 1, 0, -1):
        j = int(rng.random() * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def random_sample(rng: random.Random, values: Sequence[T], count: int) -> list[T]:
    """Return up to ``count`` distinct values in shuffled order."""

    if count <= 0:
        return []
    return fisher_yates(rng, values)[:count]

"""Hex-coordinate arithmetic for the Tribes map.

Hexes use axial coordinates (q, r). Everywhere outside this module a hex is
referred to by its canonical key, a fixed-width "QQQ.RRR" string produced by
format_hex_coords. Garrisons, journeys and explored sets are all keyed this
way, so the key must round-trip exactly.

All functions are pure.
"""

from __future__ import annotations

import math

from tribes.parameters import COORDINATE_OFFSET, TURNS_PER_HEX

_MIN_COORD = -COORDINATE_OFFSET
_MAX_COORD = 999 - COORDINATE_OFFSET

AXIAL_DIRECTIONS: tuple[tuple[int, int], ...] = (
    (1, 0),
    (1, -1),
    (0, -1),
    (-1, 0),
    (-1, 1),
    (0, 1),
)


def format_hex_coords(q: int, r: int) -> str:
    """Format axial coordinates as a canonical hex key.

    Args:
        q: Axial q coordinate
        r: Axial r coordinate

    Returns:
        Zero-padded "QQQ.RRR" key

    Raises:
        ValueError: If a coordinate cannot be represented in three digits

    Examples:
        >>> format_hex_coords(0, 0)
        '050.050'
        >>> format_hex_coords(-3, 12)
        '047.062'
    """
    if not (_MIN_COORD <= q <= _MAX_COORD and _MIN_COORD <= r <= _MAX_COORD):
        raise ValueError(f"Hex coordinates out of range: ({q}, {r})")
    return f"{q + COORDINATE_OFFSET:03d}.{r + COORDINATE_OFFSET:03d}"


def parse_hex_coords(key: str) -> tuple[int, int]:
    """Parse a canonical hex key back into axial coordinates.

    Args:
        key: Hex key such as "050.050"

    Returns:
        Tuple of (q, r)

    Raises:
        ValueError: If the key is not two three-digit groups joined by a dot

    Examples:
        >>> parse_hex_coords("047.062")
        (-3, 12)
    """
    if not isinstance(key, str):
        raise ValueError(f"Hex key must be a string, got {type(key).__name__}")
    parts = key.split(".")
    if len(parts) != 2 or not all(len(p) == 3 and p.isdigit() for p in parts):
        raise ValueError(f"Malformed hex key: {key!r}")
    return int(parts[0]) - COORDINATE_OFFSET, int(parts[1]) - COORDINATE_OFFSET


def axial_distance(q1: int, r1: int, q2: int, r2: int) -> int:
    """Number of hex steps between two axial coordinates.

    Examples:
        >>> axial_distance(0, 0, 2, -1)
        2
    """
    dq = q1 - q2
    dr = r1 - r2
    return (abs(dq) + abs(dr) + abs(dq + dr)) // 2


def hex_distance(a: str, b: str) -> int:
    """Axial distance between two hex keys."""
    q1, r1 = parse_hex_coords(a)
    q2, r2 = parse_hex_coords(b)
    return axial_distance(q1, r1, q2, r2)


def get_neighbors(key: str) -> list[str]:
    """Return the six keys adjacent to a hex, skipping unrepresentable ones."""
    q, r = parse_hex_coords(key)
    neighbors = []
    for dq, dr in AXIAL_DIRECTIONS:
        nq, nr = q + dq, r + dr
        if _MIN_COORD <= nq <= _MAX_COORD and _MIN_COORD <= nr <= _MAX_COORD:
            neighbors.append(format_hex_coords(nq, nr))
    return neighbors


def get_hexes_in_range(center: str | tuple[int, int], radius: int) -> set[str]:
    """All hex keys within radius steps of center, center included.

    An unbounded grid yields 1 + 3 * radius * (radius + 1) keys. Keys that
    would fall outside the representable range are dropped.

    Args:
        center: Hex key or (q, r) tuple
        radius: Non-negative range in hex steps

    Returns:
        Set of hex keys

    Raises:
        ValueError: If radius is negative or center is malformed
    """
    if radius < 0:
        raise ValueError(f"Radius must be non-negative, got {radius}")
    if isinstance(center, str):
        cq, cr = parse_hex_coords(center)
    else:
        cq, cr = center

    result = set()
    for dq in range(-radius, radius + 1):
        for dr in range(max(-radius, -dq - radius), min(radius, -dq + radius) + 1):
            q, r = cq + dq, cr + dr
            if _MIN_COORD <= q <= _MAX_COORD and _MIN_COORD <= r <= _MAX_COORD:
                result.add(format_hex_coords(q, r))
    return result


def travel_turns(origin: str, destination: str, speed_multiplier: float = 1.0) -> int:
    """Turns a force needs to travel between two hexes.

    Args:
        origin: Starting hex key
        destination: Target hex key
        speed_multiplier: Combined movement speed factor (1.0 = base speed)

    Returns:
        At least 1 turn, scaled down by the speed multiplier

    Examples:
        >>> travel_turns("050.050", "054.050")
        2
        >>> travel_turns("050.050", "054.050", speed_multiplier=1.5)
        2
    """
    distance = hex_distance(origin, destination)
    return max(1, math.ceil(distance * TURNS_PER_HEX / max(speed_multiplier, 0.1)))

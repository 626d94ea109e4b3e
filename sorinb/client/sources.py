"""Position sources for running the tracker outside a browser."""

from __future__ import annotations

import itertools
import json
import time
from collections.abc import Callable, Iterable, Iterator
from dataclasses import replace
from pathlib import Path

from sorinb.client.tracker import (
    POSITION_UNAVAILABLE,
    GeolocationError,
    Position,
    PositionOptions,
)


def position_from_dict(data: dict) -> Position:
    """Build a Position from the JSON shape used by the API (camelCase altitudeAccuracy)."""
    try:
        lat = float(data["lat"])
        lng = float(data["lng"])
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"lat and lng are required numbers: {data!r}") from e

    def opt(key: str) -> float | None:
        value = data.get(key)
        return float(value) if isinstance(value, (int, float)) and not isinstance(value, bool) else None

    timestamp = data.get("timestamp")
    return Position(
        lat=lat,
        lng=lng,
        accuracy=opt("accuracy"),
        altitude=opt("altitude"),
        altitude_accuracy=opt("altitudeAccuracy"),
        heading=opt("heading"),
        speed=opt("speed"),
        timestamp=int(timestamp) if isinstance(timestamp, (int, float)) else None,
    )


def load_positions(path: Path) -> list[Position]:
    """Read a JSON-lines file, one reading per line; blank lines are skipped."""
    positions = []
    with path.open(encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                positions.append(position_from_dict(json.loads(line)))
            except (json.JSONDecodeError, ValueError) as e:
                raise ValueError(f"{path}:{lineno}: {e}") from e
    return positions


class ReplayPositionSource:
    """
    Serves positions from a sequence, one per request, stamped with the current time.

    When the sequence is exhausted it reports POSITION_UNAVAILABLE, unless
    ``loop`` is set. Watches are accepted but never fire.
    """

    def __init__(
        self,
        positions: Iterable[Position],
        loop: bool = False,
        now_ms: Callable[[], int] | None = None,
    ) -> None:
        items = list(positions)
        self._positions: Iterator[Position] = itertools.cycle(items) if loop and items else iter(items)
        self._now_ms = now_ms or (lambda: int(time.time() * 1000))
        self._watch_ids = itertools.count(1)
        self.active_watches: set[int] = set()

    async def get_current_position(self, options: PositionOptions) -> Position:
        try:
            position = next(self._positions)
        except StopIteration:
            raise GeolocationError(POSITION_UNAVAILABLE) from None
        if position.timestamp is None:
            position = replace(position, timestamp=self._now_ms())
        return position

    def watch_position(self, on_position, on_error, options: PositionOptions) -> int:
        watch_id = next(self._watch_ids)
        self.active_watches.add(watch_id)
        return watch_id

    def clear_watch(self, watch_id: int) -> None:
        self.active_watches.discard(watch_id)

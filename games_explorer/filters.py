"""
Shared filter state and the filter evaluator.

FilterState is immutable: every change produces a new value through
`apply_interaction`, the single update entry point. `evaluate` is a pure
function of the base records and a state.
"""

import logging
import math
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Optional, Tuple

import pandas as pd

logger = logging.getLogger(__name__)

ALL = "All"

# Interaction kinds
TIME_RANGE = "timeRange"
PRICE_RANGE = "priceRange"
GENRE = "genre"
GENRE_TOGGLE = "genreToggle"
RESET = "reset"

RANGE_KINDS = {TIME_RANGE, PRICE_RANGE}


def _ordered(lo, hi):
    return (hi, lo) if hi < lo else (lo, hi)


def as_time_range(value) -> Optional[Tuple[pd.Timestamp, pd.Timestamp]]:
    if value is None:
        return None
    if len(value) != 2:
        raise ValueError(f"Time range needs two endpoints, got {value!r}")
    t0, t1 = (pd.Timestamp(v) for v in value)
    if pd.isna(t0) or pd.isna(t1):
        raise ValueError(f"Time range endpoints must be dates, got {value!r}")
    return _ordered(t0, t1)


def as_price_range(value) -> Optional[Tuple[float, float]]:
    if value is None:
        return None
    if len(value) != 2:
        raise ValueError(f"Price range needs two endpoints, got {value!r}")
    p0, p1 = (float(v) for v in value)
    if math.isnan(p0) or math.isnan(p1):
        raise ValueError(f"Price range endpoints must be numbers, got {value!r}")
    return _ordered(p0, p1)


@dataclass(frozen=True)
class FilterState:
    genre: str = ALL
    time_range: Optional[Tuple[pd.Timestamp, pd.Timestamp]] = None
    price_range: Optional[Tuple[float, float]] = None

    def __post_init__(self):
        object.__setattr__(self, "genre", self.genre or ALL)
        object.__setattr__(self, "time_range", as_time_range(self.time_range))
        object.__setattr__(self, "price_range", as_price_range(self.price_range))

    @property
    def is_default(self) -> bool:
        return self == FilterState()

    def to_dict(self) -> dict:
        return {
            "genre": self.genre,
            "time_range": [t.isoformat() for t in self.time_range] if self.time_range else None,
            "price_range": list(self.price_range) if self.price_range else None,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "FilterState":
        data = data or {}
        return cls(genre=data.get("genre") or ALL,
                   time_range=data.get("time_range"),
                   price_range=data.get("price_range"))


@dataclass(frozen=True)
class Interaction:
    """
    One user-facing event emitted by a view.

    `user_initiated` is mandatory for range kinds: a view that repositions
    its own brush to show restored state reports False.
    """
    kind: str
    value: object = None
    user_initiated: bool = True


@dataclass(frozen=True)
class Session:
    """Filter state plus the time-series legend's hidden layers."""
    filters: FilterState = field(default_factory=FilterState)
    hidden_genres: FrozenSet[str] = frozenset()

    def to_dict(self) -> dict:
        return {"filters": self.filters.to_dict(), "hidden_genres": sorted(self.hidden_genres)}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Session":
        data = data or {}
        return cls(filters=FilterState.from_dict(data.get("filters")),
                   hidden_genres=frozenset(data.get("hidden_genres") or ()))


def apply_interaction(session: Session, event: Interaction) -> Optional[Session]:
    """
    New session for an interaction, or None when it must not touch state.

    Range events that are not user initiated are dropped here; they are the
    echo of a redraw restoring a brush, and accepting them would loop.
    """
    if event.kind in RANGE_KINDS and not event.user_initiated:
        logger.debug(f"Ignoring programmatic {event.kind} event: {event.value!r}")
        return None

    f = session.filters
    if event.kind == TIME_RANGE:
        new = replace(session, filters=replace(f, time_range=event.value))
    elif event.kind == PRICE_RANGE:
        new = replace(session, filters=replace(f, price_range=event.value))
    elif event.kind == GENRE:
        new = replace(session, filters=replace(f, genre=event.value or ALL))
    elif event.kind == GENRE_TOGGLE:
        hidden = set(session.hidden_genres)
        hidden.symmetric_difference_update({event.value})
        new = replace(session, hidden_genres=frozenset(hidden))
    elif event.kind == RESET:
        # always redraws, so cleared brushes are repainted
        return replace(session, filters=FilterState())
    else:
        raise ValueError(f"Unknown interaction kind: {event.kind!r}")

    return None if new == session else new


def evaluate(records: pd.DataFrame, state: FilterState) -> pd.DataFrame:
    """
    Records matching every active predicate of `state`.

    Genre is an exact match on the primary genre; time and price ranges are
    inclusive. Records with NaT dates or NaN prices fail any active range.
    """
    mask = pd.Series(True, index=records.index)
    if state.genre != ALL:
        mask &= records["genre"] == state.genre
    if state.time_range is not None:
        t0, t1 = state.time_range
        mask &= records["release_date"].between(t0, t1, inclusive="both")
    if state.price_range is not None:
        p0, p1 = state.price_range
        mask &= records["price"].between(p0, p1, inclusive="both")
    return records[mask]

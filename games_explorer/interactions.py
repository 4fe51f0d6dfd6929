"""
Translate Dash graph payloads into Interaction events.

Dash reports selections the same way whether a person dragged the brush or
a redraw put it back, so a range payload that merely echoes the current
state is tagged as not user initiated.
"""

from typing import List, Optional, Sequence

import pandas as pd

from games_explorer.filters import (
    GENRE, GENRE_TOGGLE, PRICE_RANGE, RESET, TIME_RANGE,
    Interaction, Session, as_price_range, as_time_range,
)

TIME_TOLERANCE = pd.Timedelta(seconds=1)
PRICE_TOLERANCE = 1e-6


def _selected_x_range(selected_data) -> Optional[list]:
    if not selected_data:
        return None
    rng = (selected_data.get("range") or {}).get("x")
    if not rng or len(rng) != 2:
        return None
    return rng


def _same_range(a, b, tol) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return abs(a[0] - b[0]) <= tol and abs(a[1] - b[1]) <= tol


def timeline_event(selected_data, session: Session) -> Interaction:
    value = as_time_range(_selected_x_range(selected_data))
    echo = _same_range(value, session.filters.time_range, TIME_TOLERANCE)
    return Interaction(TIME_RANGE, value, user_initiated=not echo)


def histogram_event(selected_data, session: Session) -> Interaction:
    value = as_price_range(_selected_x_range(selected_data))
    echo = _same_range(value, session.filters.price_range, PRICE_TOLERANCE)
    return Interaction(PRICE_RANGE, value, user_initiated=not echo)


def year_click_event(click_data) -> Optional[Interaction]:
    """Click on an average-positivity marker selects that calendar year."""
    for point in (click_data or {}).get("points", []):
        custom = point.get("customdata")
        if custom is None:
            continue
        year = int(custom[0] if isinstance(custom, (list, tuple)) else custom)
        return Interaction(TIME_RANGE, (pd.Timestamp(year, 1, 1),
                                        pd.Timestamp(year, 12, 31, 23, 59, 59)))
    return None


def legend_events(restyle_data, genres: Sequence[str], session: Session) -> List[Interaction]:
    """
    Genre toggles from a legend restyle payload.

    Trace i of the time series is genres[i]; traces beyond that (the
    positivity line) are ignored. A double-click isolates one genre and
    reports every trace at once, so this may yield several toggles.
    """
    if not restyle_data or len(restyle_data) < 2:
        return []
    update, indices = restyle_data[0], restyle_data[1]
    visible = (update or {}).get("visible")
    if visible is None or indices is None:
        return []
    if not isinstance(visible, list):
        visible = [visible]
    if len(visible) == 1:
        visible = visible * len(indices)

    events = []
    for idx, vis in zip(indices, visible):
        if not 0 <= idx < len(genres):
            continue
        genre = genres[idx]
        hide = vis == "legendonly" or vis is False
        if hide != (genre in session.hidden_genres):
            events.append(Interaction(GENRE_TOGGLE, genre))
    return events


def genre_event(value) -> Interaction:
    return Interaction(GENRE, value)


def reset_event() -> Interaction:
    return Interaction(RESET)

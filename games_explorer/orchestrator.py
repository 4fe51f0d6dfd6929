"""
Redraw orchestration.

Coordinates one redraw cycle per state change:
1. timeline (base catalogue) -> 2. time series -> 3. price histogram
-> 4. scatter (all from the filtered subset)
"""

import logging
from collections import OrderedDict
from typing import Any, Callable, Dict, Mapping, Optional

from games_explorer.aggregates import price_ceiling, price_histogram, summary, yearly_genre_rows
from games_explorer.filters import RESET, Interaction, Session, apply_interaction, evaluate
from games_explorer.loader import GameCatalog

logger = logging.getLogger(__name__)

VIEW_ORDER = ("timeline", "timeseries", "histogram", "scatter")

Renderer = Callable[[Any, Session], Any]


class RedrawOrchestrator:
    """
    Recomputes the subset and aggregates and calls every renderer in order.

    The timeline always gets the unfiltered records: it is the control used
    to pick a time range, and a domain taken from the subset would shrink
    each time a selection narrows it.
    """

    def __init__(
        self,
        catalog: GameCatalog,
        renderers: Mapping[str, Renderer],
        fallback: Optional[Callable[[str], Any]] = None
    ):
        """
        Args:
            catalog: Base dataset, fixed for the session
            renderers: One callable per name in VIEW_ORDER
            fallback: Builds a placeholder for a view whose renderer raised;
                without it renderer errors propagate
        """
        missing = [v for v in VIEW_ORDER if v not in renderers]
        if missing:
            raise ValueError(f"Missing renderers: {', '.join(missing)}")
        self.catalog = catalog
        self.renderers = dict(renderers)
        self.fallback = fallback

    def redraw(self, session: Session) -> Dict[str, Any]:
        subset = evaluate(self.catalog.records, session.filters)
        inputs = {
            "timeline": lambda: self.catalog.records,
            "timeseries": lambda: yearly_genre_rows(subset, self.catalog.genres),
            "histogram": lambda: price_histogram(subset["price"], price_ceiling(self.catalog)),
            "scatter": lambda: subset,
        }
        out = OrderedDict()
        for view in VIEW_ORDER:
            out[view] = self._render(view, inputs[view](), session)
        out["summary"] = summary(subset)
        logger.debug(f"Redrew {len(VIEW_ORDER)} views for {len(subset)} of {len(self.catalog)} records")
        return out

    def _render(self, view: str, data, session: Session):
        if self.fallback is None:
            return self.renderers[view](data, session)
        try:
            return self.renderers[view](data, session)
        except Exception:
            logger.exception(f"Renderer '{view}' failed; showing placeholder")
            return self.fallback(view)


class DashboardSession:
    """
    Single writer of a session's filter state.

    Every accepted change goes through `dispatch`, which runs exactly one
    redraw. Events arriving while a redraw is running come from renderers,
    not people, and are dropped.
    """

    def __init__(self, orchestrator: RedrawOrchestrator, session: Optional[Session] = None):
        self.orchestrator = orchestrator
        self._session = session or Session()
        self._redrawing = False

    @property
    def session(self) -> Session:
        return self._session

    @property
    def filters(self):
        return self._session.filters

    def redraw(self) -> Dict[str, Any]:
        self._redrawing = True
        try:
            return self.orchestrator.redraw(self._session)
        finally:
            self._redrawing = False

    def dispatch(self, *events: Interaction) -> Optional[Dict[str, Any]]:
        """
        Apply events and redraw once; None when nothing changed.
        """
        if self._redrawing:
            logger.warning(f"Dropping {len(events)} event(s) raised during a redraw")
            return None

        current = self._session
        for event in events:
            nxt = apply_interaction(current, event)
            if nxt is not None:
                current = nxt
        # reset repaints even from the default state
        if current == self._session and not any(e.kind == RESET for e in events):
            return None

        self._session = current
        logger.info(f"Filter state now {current.filters.to_dict()} "
                    f"(hidden genres: {sorted(current.hidden_genres)})")
        return self.redraw()

    def reset(self) -> Dict[str, Any]:
        return self.dispatch(Interaction(RESET))

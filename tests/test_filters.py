"""
Unit tests for filter state transitions and the filter evaluator.
"""

from itertools import permutations

import pandas as pd
import pytest

from games_explorer.filters import (
    ALL, GENRE, GENRE_TOGGLE, PRICE_RANGE, RESET, TIME_RANGE,
    FilterState, Interaction, Session, apply_interaction, evaluate,
)
from games_explorer.loader import build_catalog

Y2020 = (pd.Timestamp(2020, 1, 1), pd.Timestamp(2020, 12, 31, 23, 59, 59))


def names(df):
    return df["name"].tolist()


def test_default_state_keeps_everything(catalog):
    subset = evaluate(catalog.records, FilterState())
    pd.testing.assert_frame_equal(subset, catalog.records)


def test_genre_filter_is_exact_primary_genre(catalog):
    subset = evaluate(catalog.records, FilterState(genre="Action"))
    assert names(subset) == ["Alpha", "Beta"]
    assert evaluate(catalog.records, FilterState(genre="Indie")).empty


def test_time_range_is_inclusive(catalog):
    state = FilterState(time_range=(pd.Timestamp(2020, 1, 1), pd.Timestamp(2020, 6, 1)))
    assert names(evaluate(catalog.records, state)) == ["Alpha", "Gamma"]


def test_price_range_is_inclusive(catalog):
    assert names(evaluate(catalog.records, FilterState(price_range=(5, 15)))) == ["Alpha"]
    assert names(evaluate(catalog.records, FilterState(price_range=(0, 10)))) == ["Alpha", "Gamma"]


def test_nan_price_and_nat_date_fail_active_ranges(make_row):
    catalog = build_catalog([
        make_row("NoPrice", "2020-02-02", "tbd", "Action"),
        make_row("NoDate", "soon", "5", "Action"),
    ])
    assert len(evaluate(catalog.records, FilterState())) == 2
    assert names(evaluate(catalog.records, FilterState(price_range=(0, 100)))) == ["NoDate"]
    assert names(evaluate(catalog.records, FilterState(time_range=Y2020))) == ["NoPrice"]


def test_evaluate_is_deterministic_and_pure(catalog):
    before = catalog.records.copy()
    state = FilterState(genre="Action", price_range=(0, 30))
    first = evaluate(catalog.records, state)
    second = evaluate(catalog.records, state)
    pd.testing.assert_frame_equal(first, second)
    pd.testing.assert_frame_equal(catalog.records, before)


def test_predicates_are_order_independent(catalog):
    combined = FilterState(genre="Action", time_range=Y2020, price_range=(5, 15))
    steps = [FilterState(genre="Action"), FilterState(time_range=Y2020), FilterState(price_range=(5, 15))]
    expected = names(evaluate(catalog.records, combined))
    for order in permutations(steps):
        df = catalog.records
        for step in order:
            df = evaluate(df, step)
        assert names(df) == expected == ["Alpha"]


def test_empty_result_is_valid(catalog):
    subset = evaluate(catalog.records, FilterState(genre="RPG", price_range=(50, 60)))
    assert subset.empty
    assert list(subset.columns) == list(catalog.records.columns)


def test_ranges_are_normalised():
    state = FilterState(time_range=("2021-01-01", "2020-01-01"), price_range=[20, 5])
    assert state.time_range == (pd.Timestamp(2020, 1, 1), pd.Timestamp(2021, 1, 1))
    assert state.price_range == (5.0, 20.0)


@pytest.mark.parametrize("bad", [(1,), ("2020-01-01", "not a date")])
def test_invalid_time_range_raises(bad):
    with pytest.raises(ValueError):
        FilterState(time_range=bad)


def test_state_round_trips_through_store_dict():
    state = FilterState(genre="RPG", time_range=Y2020, price_range=(1.5, 9))
    assert FilterState.from_dict(state.to_dict()) == state
    assert FilterState.from_dict(None) == FilterState()
    session = Session(filters=state, hidden_genres=frozenset({"Action"}))
    assert Session.from_dict(session.to_dict()) == session


def test_programmatic_range_events_are_ignored():
    session = Session()
    assert apply_interaction(session, Interaction(TIME_RANGE, Y2020, user_initiated=False)) is None
    assert apply_interaction(session, Interaction(PRICE_RANGE, (1, 2), user_initiated=False)) is None


def test_user_range_events_replace_state():
    session = apply_interaction(Session(), Interaction(TIME_RANGE, Y2020))
    assert session.filters.time_range == Y2020
    session = apply_interaction(session, Interaction(PRICE_RANGE, (1, 2)))
    assert session.filters == FilterState(time_range=Y2020, price_range=(1, 2))
    cleared = apply_interaction(session, Interaction(TIME_RANGE, None))
    assert cleared.filters.time_range is None
    assert cleared.filters.price_range == (1.0, 2.0)


def test_unchanged_state_yields_none():
    session = Session(filters=FilterState(genre="RPG"))
    assert apply_interaction(session, Interaction(GENRE, "RPG")) is None
    assert apply_interaction(Session(), Interaction(TIME_RANGE, None)) is None


def test_genre_event_defaults_to_all():
    session = Session(filters=FilterState(genre="RPG"))
    assert apply_interaction(session, Interaction(GENRE, None)).filters.genre == ALL


def test_genre_toggle_flips_hidden_layers_only():
    session = Session(filters=FilterState(genre="RPG"))
    hidden = apply_interaction(session, Interaction(GENRE_TOGGLE, "Action"))
    assert hidden.hidden_genres == {"Action"}
    assert hidden.filters == session.filters
    shown = apply_interaction(hidden, Interaction(GENRE_TOGGLE, "Action"))
    assert shown.hidden_genres == frozenset()


def test_reset_restores_default_filters_and_always_redraws(catalog):
    session = Session(filters=FilterState(genre="Action", time_range=Y2020, price_range=(5, 15)),
                      hidden_genres=frozenset({"RPG"}))
    reset = apply_interaction(session, Interaction(RESET))
    assert reset.filters.is_default
    pd.testing.assert_frame_equal(evaluate(catalog.records, reset.filters), catalog.records)
    assert apply_interaction(Session(), Interaction(RESET)) == Session()


def test_unknown_kind_raises():
    with pytest.raises(ValueError):
        apply_interaction(Session(), Interaction("zoom", 1))

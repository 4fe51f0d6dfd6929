import pytest

from games_explorer.loader import build_catalog

OWNERS = "1000000 - 2000000"


def raw(name, date, price, genre, owners=OWNERS, **extra):
    row = {"Name": name, "Releasedate": date, "Price": price,
           "Estimatedowners": owners, "Genres": genre}
    row.update(extra)
    return row


@pytest.fixture
def scenario_rows():
    """Three-game catalogue: two Action releases and one RPG."""
    return [
        raw("Alpha", "2020-01-01", "10", "Action;Indie", Positive="8", Negative="2"),
        raw("Beta", "2021-01-01", "20", "Action"),
        raw("Gamma", "2020-06-01", "0", "RPG", Positive="5", Negative="5"),
    ]


@pytest.fixture
def catalog(scenario_rows):
    return build_catalog(scenario_rows)


@pytest.fixture
def make_row():
    return raw

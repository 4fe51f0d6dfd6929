"""
Unit tests for catalogue loading and cleaning.
"""

import math

import pandas as pd
import pytest

from games_explorer.loader import DatasetLoadError, build_catalog, load_catalog, read_raw_rows

HEADER = "Name\tReleasedate\tPrice\tEstimatedowners\tGenres\tPositive\tNegative\n"


def write_tsv(path, lines, header=HEADER):
    path.write_text(header + "".join(line + "\n" for line in lines), encoding="utf-8")
    return path


def test_catalog_drops_rejected_rows_and_sorts(make_row):
    catalog = build_catalog([
        make_row("Late", "2022-05-01", "5", "Action"),
        make_row("Hidden", "2019-01-01", "5", "Nudity"),
        make_row("Tiny", "2018-01-01", "5", "Action", owners="0 - 20000"),
        make_row("Early", "2010-03-01", "5", "RPG"),
    ])
    assert catalog.records["name"].tolist() == ["Early", "Late"]
    assert catalog.genres == ("Action", "RPG")


def test_invalid_dates_sort_first_in_stable_order(make_row):
    catalog = build_catalog([
        make_row("Dated", "2015-01-01", "5", "Action"),
        make_row("Broken1", "someday", "5", "Action"),
        make_row("Broken2", "", "5", "Action"),
    ])
    assert catalog.records["name"].tolist() == ["Broken1", "Broken2", "Dated"]
    assert catalog.records["release_date"].isna().tolist() == [True, True, False]


def test_derived_values_ignore_bad_prices_and_dates(make_row):
    catalog = build_catalog([
        make_row("A", "2015-01-01", "5", "Action"),
        make_row("B", "2016-01-01", "free", "Action"),
        make_row("C", "nope", "12.5", "Action"),
    ])
    assert catalog.max_price == 12.5
    assert catalog.date_extent == (pd.Timestamp(2015, 1, 1), pd.Timestamp(2016, 1, 1))
    assert math.isnan(catalog.records.loc[catalog.records["name"] == "B", "price"].iloc[0])


def test_catalog_columns_and_types(catalog):
    df = catalog.records
    assert list(df.columns) == ["name", "release_date", "price", "owners", "genre",
                                "reviews", "positive", "negative", "pos_ratio"]
    assert str(df["positive"].dtype) == "Int64"
    beta = df[df["name"] == "Beta"].iloc[0]
    assert beta["reviews"] == 0
    assert pd.isna(beta["positive"]) and pd.isna(beta["pos_ratio"])


def test_empty_catalog_is_valid(make_row):
    catalog = build_catalog([make_row("X", "2020-01-01", "1", "Unknown")])
    assert len(catalog) == 0
    assert catalog.genres == ()
    assert catalog.max_price == 0.0
    assert catalog.date_extent is None


def test_catalog_is_frozen(catalog):
    with pytest.raises(AttributeError):
        catalog.genres = ("Other",)


def test_load_catalog_from_tsv(tmp_path):
    path = write_tsv(tmp_path / "games.tsv", [
        "Portal\t2007-10-09\t9.99\t5000000 - 10000000\tPuzzle,Action\t100\t5",
        "Shovel\t2014-06-26\t14.99\t1000000 - 2000000\tPlatformer\t\t",
        "Junk\t2014-06-26\t1\t0 - 20000\tAction\t1\t1",
    ])
    catalog = load_catalog(str(path), sep="\t")
    assert catalog.records["name"].tolist() == ["Portal", "Shovel"]
    portal = catalog.records.iloc[0]
    assert portal["genre"] == "Puzzle"
    assert portal["reviews"] == 105
    assert portal["pos_ratio"] == pytest.approx(100 / 105)


def test_missing_file_is_a_load_error(tmp_path):
    with pytest.raises(DatasetLoadError):
        load_catalog(str(tmp_path / "absent.tsv"), sep="\t")


def test_missing_required_columns_is_a_load_error(tmp_path):
    path = write_tsv(tmp_path / "games.tsv", ["Portal\t9.99"], header="Name\tPrice\n")
    with pytest.raises(DatasetLoadError, match="Releasedate"):
        read_raw_rows(str(path), sep="\t")


def test_either_genre_column_is_accepted(tmp_path):
    header = "Name\tReleasedate\tPrice\tEstimatedowners\tGenre\n"
    path = write_tsv(tmp_path / "games.tsv", ["Doom\t1993-12-10\t4.99\t2000000 - 5000000\tAction"], header=header)
    catalog = load_catalog(str(path), sep="\t")
    assert catalog.genres == ("Action",)

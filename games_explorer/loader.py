"""
Dataset loading and cleaning.

Reads the raw catalogue once, normalizes every row, drops rejected rows and
freezes the result as the base dataset for the session.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from games_explorer import records
from games_explorer import settings

logger = logging.getLogger(__name__)

COLUMNS = ["name", "release_date", "price", "owners", "genre",
           "reviews", "positive", "negative", "pos_ratio"]
REQUIRED_COLUMNS = (records.NAME_COL, records.DATE_COL, records.PRICE_COL, records.OWNERS_COL)


def finite_prices(prices: pd.Series) -> pd.Series:
    """Non-negative finite prices only; NaN/inf never reach an aggregate."""
    p = pd.to_numeric(prices, errors="coerce").astype(float)
    return p[np.isfinite(p) & (p >= 0)]


class DatasetLoadError(RuntimeError):
    """The catalogue could not be fetched or parsed; the session cannot start."""


@dataclass(frozen=True)
class GameCatalog:
    """
    Base dataset: cleaned records sorted by release date.

    Records with an unparseable release date (NaT) sort first. The genre
    universe, price ceiling and date extent are derived here once so that
    legends, histogram edges and the timeline domain never follow a filter.
    """
    records: pd.DataFrame
    genres: Tuple[str, ...]
    max_price: float
    date_extent: Optional[Tuple[pd.Timestamp, pd.Timestamp]]

    @classmethod
    def from_records(cls, rows: Iterable[Mapping]) -> "GameCatalog":
        df = pd.DataFrame(list(rows), columns=COLUMNS)
        df["name"] = df["name"].astype(str)
        df["release_date"] = pd.to_datetime(df["release_date"], errors="coerce")
        df["price"] = pd.to_numeric(df["price"], errors="coerce").astype(float)
        df["reviews"] = pd.to_numeric(df["reviews"], errors="coerce").fillna(0).astype(int)
        for col in ["positive", "negative"]:
            df[col] = pd.to_numeric(df[col], errors="coerce").astype("Int64")
        df["pos_ratio"] = pd.to_numeric(df["pos_ratio"], errors="coerce").astype(float)

        df = df.sort_values("release_date", kind="mergesort", na_position="first").reset_index(drop=True)

        genres = tuple(sorted(df["genre"].dropna().unique().tolist()))
        prices = finite_prices(df["price"])
        max_price = float(prices.max()) if not prices.empty else 0.0
        dates = df["release_date"].dropna()
        extent = (dates.min(), dates.max()) if not dates.empty else None
        return cls(records=df, genres=genres, max_price=max_price, date_extent=extent)

    def __len__(self):
        return len(self.records)


def clean_rows(raw_rows: Iterable[Mapping[str, str]]):
    """Normalize raw rows; yields canonical record dicts, skipping rejected rows."""
    for raw in raw_rows:
        base = records.normalize_row(raw)
        if base is None:
            continue
        base.update(records.resolve_metrics(raw))
        yield base


def build_catalog(raw_rows: Iterable[Mapping[str, str]]) -> GameCatalog:
    raw_rows = list(raw_rows)
    catalog = GameCatalog.from_records(clean_rows(raw_rows))
    logger.info(f"Cleaned catalogue: {len(raw_rows)} rows read, "
                f"{len(raw_rows) - len(catalog)} rejected, {len(catalog)} kept")
    if not len(catalog):
        logger.warning("No records survived cleaning; all views will be empty")
    return catalog


def read_raw_rows(source: str, sep: str = "\t"):
    """Read a delimited file or URL into raw string rows."""
    try:
        df_raw = pd.read_csv(source, sep=sep, dtype=str, keep_default_na=False)
    except (OSError, ValueError, UnicodeDecodeError, pd.errors.ParserError) as e:
        raise DatasetLoadError(f"Could not read catalogue from {source}: {e}") from e

    df_raw.columns = [str(c).strip() for c in df_raw.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in df_raw.columns]
    if not any(c in df_raw.columns for c in records.GENRE_COLS):
        missing.append(" or ".join(records.GENRE_COLS))
    if missing:
        raise DatasetLoadError(f"Catalogue {source} is missing columns: {', '.join(missing)}")
    return df_raw.to_dict(orient="records")


def load_catalog(source: Optional[str] = None, sep: Optional[str] = None) -> GameCatalog:
    source = source or settings.DATA_SOURCE
    sep = settings.DATA_SEPARATOR if sep is None else sep
    logger.info(f"Loading catalogue from {source}")
    return build_catalog(read_raw_rows(source, sep))


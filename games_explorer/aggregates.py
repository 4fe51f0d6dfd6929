"""
View aggregates computed from a filtered subset.

Anything that must stay put while filters change (the genre layers of the
time series, the histogram bin edges) comes from the base catalogue, never
from the subset.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from games_explorer import settings
from games_explorer.loader import GameCatalog, finite_prices


@dataclass(frozen=True)
class YearRow:
    year: int
    counts: Dict[str, int]
    avg_pos_ratio: Optional[float]
    record_count: int


@dataclass(frozen=True)
class HistogramBin:
    lower: float
    upper: float
    count: int


def _mean_or_none(values: pd.Series) -> Optional[float]:
    v = pd.to_numeric(values, errors="coerce").dropna()
    return float(v.mean()) if not v.empty else None


def yearly_genre_rows(subset: pd.DataFrame, genres: Sequence[str]) -> List[YearRow]:
    """
    One row per release year present in `subset`.

    Counts cover every genre in `genres` (zero when absent that year). Records
    without a release date have no year and are left out.
    """
    dated = subset.dropna(subset=["release_date"])
    if dated.empty:
        return []
    years = dated["release_date"].dt.year.rename("year")
    counts = (pd.crosstab(years, dated["genre"])
                .reindex(columns=list(genres), fill_value=0))
    sizes = dated.groupby(years).size()
    avg = dated.groupby(years)["pos_ratio"].mean()

    rows = []
    for year in sorted(sizes.index):
        rows.append(YearRow(
            year=int(year),
            counts={g: int(counts.at[year, g]) for g in genres},
            avg_pos_ratio=None if pd.isna(avg.get(year)) else float(avg[year]),
            record_count=int(sizes[year]),
        ))
    return rows


def price_ceiling(catalog: GameCatalog) -> float:
    return catalog.max_price if catalog.max_price > 0 else 1.0


def price_histogram(prices: pd.Series, ceiling: float,
                    bins: int = settings.HISTOGRAM_BINS) -> List[HistogramBin]:
    """
    Equal-width bins on [0, ceiling]; each is [lower, upper) except the last,
    which is closed. Pass the base catalogue's ceiling so edges stay fixed.
    """
    edges = np.linspace(0.0, float(ceiling), bins + 1)
    counts, _ = np.histogram(finite_prices(prices).to_numpy(), bins=edges)
    return [HistogramBin(float(lo), float(hi), int(n))
            for lo, hi, n in zip(edges[:-1], edges[1:], counts)]


def summary(subset: pd.DataFrame) -> Dict:
    prices = finite_prices(subset["price"])
    return {
        "count": len(subset),
        "avg_pos_ratio": _mean_or_none(subset["pos_ratio"]),
        "median_price": float(prices.median()) if not prices.empty else None,
    }

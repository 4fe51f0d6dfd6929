"""
Record normalization and derived review metrics.

Turns one raw catalogue row (column name -> string) into the canonical
record used by every view. Source files disagree on column naming, so the
review fields are probed through ordered candidate lists.
"""

import math
import re
from typing import Dict, Iterable, Mapping, Optional

import pandas as pd

# Raw column names
NAME_COL = "Name"
DATE_COL = "Releasedate"
PRICE_COL = "Price"
OWNERS_COL = "Estimatedowners"
GENRE_COLS = ("Genres", "Genre")

UNKNOWN_GENRE = "Unknown"
EXCLUDED_GENRES = {"unknown", "nudity", "software training"}

# Lowest ownership buckets: sample sizes too small to trust
EXCLUDED_OWNERS = {
    "0 - 0",
    "0 - 20000",
    "20000 - 50000",
    "50000 - 100000",
    "100000 - 200000",
    "200000 - 500000",
}

# Ordered candidates, first match wins. Positive/Negative are not direct
# totals here; they only count through the sum fallback in review_count.
REVIEW_COUNT_KEYS = (
    "Reviews", "TotalReviews", "ReviewCount", "Review_Count",
    "AllReviews", "OwnersReviews", "Review_Counts",
)
POSITIVE_KEYS = ("Positive", "PositiveReviews", "positivereviews", "positive_reviews", "Positives")
NEGATIVE_KEYS = ("Negative", "NegativeReviews", "negativereviews", "negative_reviews", "Negatives")
PERCENT_KEYS = ("PercentPositive", "Percent_Positive", "PctPositive", "pct_positive", "positive_ratio")

RE_GENRE_SEP = re.compile(r"[;,|]")


def to_number(value) -> Optional[float]:
    """Coerce a raw cell to a finite float, or None."""
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    v = pd.to_numeric(s, errors="coerce")
    if pd.isna(v) or not math.isfinite(float(v)):
        return None
    return float(v)


def first_numeric(row: Mapping[str, str], keys: Iterable[str]) -> Optional[float]:
    """Value of the first key that is present, non-empty and numeric."""
    for key in keys:
        if key in row:
            v = to_number(row[key])
            if v is not None:
                return v
    return None


def _as_count(v: float) -> int:
    return max(0, int(v))


def primary_genre(row: Mapping[str, str]) -> str:
    raw = ""
    for col in GENRE_COLS:
        value = row.get(col)
        if value is not None and str(value).strip():
            raw = str(value)
            break
    first = RE_GENRE_SEP.split(raw)[0].strip() if raw else ""
    return first or UNKNOWN_GENRE


def parse_date(value) -> pd.Timestamp:
    """Parse a release date; anything unparseable becomes NaT."""
    if value is None or not str(value).strip():
        return pd.NaT
    try:
        ts = pd.to_datetime(str(value).strip(), errors="coerce")
    except (ValueError, OverflowError):
        return pd.NaT
    if pd.notna(ts) and ts.tzinfo is not None:
        ts = ts.tz_convert(None)
    return ts


def parse_price(value) -> float:
    v = to_number(value)
    return float("nan") if v is None else v


def is_excluded(genre: str, owners: Optional[str]) -> bool:
    if genre.strip().lower() in EXCLUDED_GENRES:
        return True
    if owners is None or not str(owners).strip():
        return True
    return owners in EXCLUDED_OWNERS


def normalize_row(row: Mapping[str, str]) -> Optional[Dict]:
    """
    Canonical base fields for a raw row, or None when the row is rejected.

    Malformed dates and prices never reject a row; they become NaT / NaN.
    Only the genre and owners-bucket rules reject.
    """
    genre = primary_genre(row)
    owners = row.get(OWNERS_COL)
    if is_excluded(genre, owners):
        return None
    return {
        "name": str(row.get(NAME_COL) or "").strip(),
        "release_date": parse_date(row.get(DATE_COL)),
        "price": parse_price(row.get(PRICE_COL)),
        "owners": owners,
        "genre": genre,
    }


def review_count(row: Mapping[str, str]) -> int:
    direct = first_numeric(row, REVIEW_COUNT_KEYS)
    if direct is not None:
        return max(0, int(direct))
    pos = first_numeric(row, POSITIVE_KEYS)
    neg = first_numeric(row, NEGATIVE_KEYS)
    if pos is not None and neg is not None:
        return max(0, int(pos + neg))
    return 0


def sentiment(row: Mapping[str, str]) -> Dict:
    """Positive/negative counts and the positive ratio (None = no data)."""
    pos = first_numeric(row, POSITIVE_KEYS)
    neg = first_numeric(row, NEGATIVE_KEYS)
    if pos is not None and neg is not None:
        pos, neg = _as_count(pos), _as_count(neg)
        total = pos + neg
        return {
            "positive": pos,
            "negative": neg,
            "pos_ratio": pos / total if total > 0 else None,
        }

    pct = first_numeric(row, PERCENT_KEYS)
    if pct is not None:
        ratio = pct / 100 if pct > 1 else pct
        return {"positive": None, "negative": None, "pos_ratio": min(1.0, max(0.0, ratio))}

    return {"positive": None, "negative": None, "pos_ratio": None}


def resolve_metrics(row: Mapping[str, str]) -> Dict:
    out = {"reviews": review_count(row)}
    out.update(sentiment(row))
    return out

"""Date splitting and annual partitioning of fire detections."""

from __future__ import annotations

import datetime
import logging
from typing import Iterable, List

import pandas as pd

from .errors import MalformedDateError

DATE_PART_COLUMNS = ["year", "month", "day"]


def _date_text(value) -> str | None:
    """Text form of a date value; datetime-like values are formatted as YYYY-MM-DD."""

    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (datetime.date, pd.Timestamp)) and not pd.isna(value):
        return value.strftime("%Y-%m-%d")
    return None


def _is_date_parts(parts: List[str] | None) -> bool:
    return parts is not None and len(parts) == 3 and all(part.isdigit() for part in parts)


def split_acquisition_date(
    df: pd.DataFrame,
    date_column: str = "acq_date",
    on_malformed: str = "raise",
) -> pd.DataFrame:
    """
    Add string 'year', 'month' and 'day' columns split from the date column on '-'.
    Datetime values (a column read with parse_dates, or date objects) are
    formatted as YYYY-MM-DD first. A value is malformed when it is missing
    (including NaT) or does not split into exactly three numeric parts.
    on_malformed="raise" rejects the whole batch, on_malformed="drop" removes
    the offending rows.
    """

    if date_column not in df.columns:
        raise ValueError(f"Missing date column: {date_column}")
    if on_malformed not in {"raise", "drop"}:
        raise ValueError(f"Unsupported malformed date policy: {on_malformed}")

    dates = df[date_column]
    if pd.api.types.is_datetime64_any_dtype(dates):
        dates = dates.dt.strftime("%Y-%m-%d")
    parts = dates.map(_date_text).map(lambda text: text.split("-") if isinstance(text, str) else None)
    valid = parts.map(_is_date_parts).astype(bool)

    if not valid.all():
        bad = df.loc[~valid, date_column]
        if on_malformed == "raise":
            raise MalformedDateError(date_column, bad.index.tolist(), bad.tolist())
        logging.warning("Dropping %d detections with malformed '%s' values", len(bad), date_column)
        df = df.loc[valid]
        parts = parts.loc[valid]

    df = df.copy()
    for pos, name in enumerate(DATE_PART_COLUMNS):
        df[name] = [p[pos] for p in parts]
    return df


def resolve_years(df: pd.DataFrame, years: Iterable[int] | None = None) -> List[int]:
    """Return the requested years, or every year present in the data, ascending."""

    if years is not None:
        return sorted({int(year) for year in years})
    if df.empty:
        return []
    return sorted({int(year) for year in df["year"].unique()})


def select_year(df: pd.DataFrame, year: int) -> pd.DataFrame:
    """Rows whose derived year equals the given year, original order kept."""

    mask = pd.to_numeric(df["year"], errors="coerce") == int(year)
    return df.loc[mask].copy()

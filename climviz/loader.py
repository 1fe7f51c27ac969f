"""
Dataset loaders (CSV / JSON -> record lists)
============================================

This module reads the static input files once at startup and converts every
row into an immutable record from `climviz.models`.

Key ideas:
- Column names are matched tolerantly ("Year", "year", " YEAR ") because
  exports differ in capitalisation and spacing.
- Conversion helpers (_to_int/_to_float/_to_str) turn blanks and junk into
  None / nan instead of failing the whole load.
- `path` may be anything pandas accepts, including an http(s) URL.
"""

from __future__ import annotations
from typing import List, Optional
import logging
import math
import re

import pandas as pd

from .models import Co2Record, DisasterRecord, EmissionRecord

log = logging.getLogger(__name__)


def _to_int(x) -> Optional[int]:
    """Convert a cell to int, returning None if missing/invalid."""
    if pd.isna(x): return None
    try: return int(float(x))
    except (TypeError, ValueError): return None

def _to_float(x) -> float:
    """Convert a cell to float; missing/invalid cells become nan."""
    if pd.isna(x): return math.nan
    try: return float(x)
    except (TypeError, ValueError): return math.nan

def _to_str(x) -> str:
    if pd.isna(x): return ""
    return str(x).strip()

def _norm(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", str(s).lower())

def _col(df: pd.DataFrame, *names: str) -> str:
    cols = list(df.columns)
    for n in names:
        if n in cols:
            return n
    norm_map = {_norm(c): c for c in cols}
    for n in names:
        nn = _norm(n)
        if nn in norm_map:
            return norm_map[nn]
    raise KeyError(f"Missing required column. Tried={names}. Available={cols}")


def _is_empty_array(df: pd.DataFrame) -> bool:
    # `[]` reads as a frame with no rows and no columns
    return df.empty and len(df.columns) == 0


def read_table(path: str) -> pd.DataFrame:
    """Read a CSV, or an Excel sheet when the path ends in .xlsx."""
    if str(path).lower().endswith(".xlsx"):
        df = pd.read_excel(path, engine="openpyxl")
    else:
        df = pd.read_csv(path)
    df.rename(columns={c: str(c).strip() for c in df.columns}, inplace=True)
    return df


def load_emissions_table(path: str) -> List[EmissionRecord]:
    """Load the greenhouse-gas table (Country, Industry, Year, Emissions).

    Rows without a usable year are skipped; a non-numeric emissions cell is
    kept as nan so the year still counts but the point is not drawn.
    """
    df = read_table(path)
    return emissions_from_frame(df)


def emissions_from_frame(df: pd.DataFrame) -> List[EmissionRecord]:
    country_col = _col(df, "Country", "Country/Area", "Entity")
    industry_col = _col(df, "Industry", "Sector")
    year_col = _col(df, "Year")
    value_col = _col(df, "Emissions", "Value")

    records: List[EmissionRecord] = []
    skipped = 0
    for country, industry, year, value in zip(df[country_col], df[industry_col], df[year_col], df[value_col]):
        y = _to_int(year)
        if y is None:
            skipped += 1
            continue
        records.append(EmissionRecord(
            country=_to_str(country),
            industry=_to_str(industry),
            year=y,
            emissions=_to_float(value),
        ))
    if skipped:
        log.debug("skipped %d emission rows without a year", skipped)
    return records


def load_disasters_json(path: str) -> List[DisasterRecord]:
    """Load the prepped disaster counts: [{geo, type, year, count}, ...]."""
    df = pd.read_json(path, orient="records")
    return disasters_from_frame(df)


def disasters_from_frame(df: pd.DataFrame) -> List[DisasterRecord]:
    if _is_empty_array(df):
        return []
    geo_col = _col(df, "geo", "region", "Country")
    type_col = _col(df, "type", "Disaster Type")
    year_col = _col(df, "year")
    count_col = _col(df, "count", "n")

    records: List[DisasterRecord] = []
    for geo, dtype, year, count in zip(df[geo_col], df[type_col], df[year_col], df[count_col]):
        y = _to_int(year)
        if y is None:
            continue
        records.append(DisasterRecord(
            geo=_to_str(geo),
            type=_to_str(dtype),
            year=y,
            count=_to_int(count) or 0,
        ))
    return records


def load_co2_json(path: str) -> List[Co2Record]:
    """Load the CO2 overlay series: [{geo, year, emissions_mt}, ...]."""
    df = pd.read_json(path, orient="records")
    return co2_from_frame(df)


def co2_from_frame(df: pd.DataFrame) -> List[Co2Record]:
    if _is_empty_array(df):
        return []
    geo_col = _col(df, "geo", "region", "Country")
    year_col = _col(df, "year")
    value_col = _col(df, "emissions_mt", "emissions", "co2")

    records: List[Co2Record] = []
    for geo, year, value in zip(df[geo_col], df[year_col], df[value_col]):
        y = _to_int(year)
        if y is None:
            continue
        records.append(Co2Record(geo=_to_str(geo), year=y, emissions_mt=_to_float(value)))
    return records

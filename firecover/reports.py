"""Summary tables for adequacy and equity reporting.

Thin helpers over the assembled result table that produce pandas
DataFrames ready to save as Excel/CSV or render in a notebook.
"""

from __future__ import annotations

from typing import List, Sequence

import numpy as np
import pandas as pd

from . import config
from .models import ResolutionPhase

__all__ = ["band_table", "provider_type_table"]


def _row(label: str, t: float | None, mask: np.ndarray, weights: np.ndarray | None) -> dict:
    total = len(mask)
    row = {
        "band": label,
        "time_min": t,
        "areas": int(mask.sum()),
        "percentage_areas": round(mask.sum() / total * 100, 2) if total else 0.0,
    }
    if weights is not None:
        total_pop = float(weights.sum())
        pop = float(weights[mask].sum())
        row["population"] = int(round(pop))
        row["percentage_pop"] = round(pop / total_pop * 100, 2) if total_pop else 0.0
    return row


def _band_rows(result: pd.DataFrame, time_bands: Sequence[float], population: pd.Series | None) -> List[dict]:
    bands = result[config.BAND].astype("Float64")
    weights = None
    if population is not None:
        weights = population.reindex(result[config.AREA_ID].to_numpy()).fillna(0).to_numpy(dtype=float)

    rows: list[dict] = []
    for t in time_bands:
        within = (bands <= t).fillna(False).to_numpy(dtype=bool)
        rows.append(_row(f"<= {t:g} min", t, within, weights))

    uncovered = (result["resolution_phase"].astype(str) == ResolutionPhase.UNCOVERED.value).to_numpy()
    rows.append(_row(ResolutionPhase.UNCOVERED.value, None, uncovered, weights))
    return rows


def band_table(
    result: pd.DataFrame,
    time_bands: Sequence[float] | None = None,
    population: pd.Series | None = None,
) -> pd.DataFrame:
    """Return cumulative coverage per time band plus an ``uncovered`` row.

    Parameters
    ----------
    result : DataFrame
        Assembled result table (see :func:`firecover.assemble.assemble`).
    time_bands : list[float], optional
        Bands to report.  If None, uses the configured TIME_BANDS.
    population : Series, optional
        Population per ``area_id``; adds ``population`` / ``percentage_pop``.
    """

    return pd.DataFrame(_band_rows(result, list(time_bands or config.TIME_BANDS), population))


def provider_type_table(result: pd.DataFrame) -> pd.DataFrame:
    """Count areas per resolution phase and provider crew type."""

    flags = result["provider_is_full_time"].astype("boolean")
    crew = np.where(
        flags.isna().to_numpy(),
        "unknown",
        np.where(flags.fillna(False).to_numpy(dtype=bool), "full-time", "retained"),
    )
    counts = (
        pd.DataFrame({"resolution_phase": result["resolution_phase"].astype(str).to_numpy(), "crew_type": crew})
        .value_counts()
        .rename("areas")
        .reset_index()
        .sort_values(["resolution_phase", "crew_type"])
        .reset_index(drop=True)
    )
    total = counts["areas"].sum()
    counts["percentage"] = (counts["areas"] / total * 100).round(2) if total else 0.0
    return counts

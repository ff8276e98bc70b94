"""Result assembly – one row per small area, written as CSV.

`assemble` tags the point-matched, polygon-fallback and uncovered tables
with their resolution phase and stacks them into the output table.  It is
also the pipeline's consistency check: a duplicated, missing or unexpected
``area_id`` raises :class:`~firecover.errors.AssemblyError` before anything
is written.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import numpy as np
import pandas as pd

from . import config
from .errors import AssemblyError
from .models import RESULT_COLUMNS, ResolutionPhase
from .providers import split_origin_ids

__all__ = ["assemble", "write_result_table", "read_result_table"]

logger = logging.getLogger(__name__)


def _tagged(frame: pd.DataFrame, phase: ResolutionPhase) -> pd.DataFrame:
    out = pd.DataFrame({config.AREA_ID: frame[config.AREA_ID].astype(str).to_numpy()})
    out["resolution_phase"] = phase.value
    n = len(out)

    def column(name: str, dtype: str, fill) -> pd.Series:
        if name in frame.columns:
            values = frame[name].to_numpy()
        else:
            values = [fill] * n
        if dtype == "object":
            arr = np.empty(n, dtype=object)
            for i, v in enumerate(values):
                arr[i] = v
            return pd.Series(arr, dtype=object)
        return pd.Series(values, dtype=dtype)

    out[config.BAND] = column(config.BAND, "Float64", pd.NA)
    out["representative_origin_id"] = column("representative_origin_id", "object", None)
    out["provider_is_full_time"] = column("provider_is_full_time", "boolean", pd.NA)
    out["covering_origin_ids"] = column("covering_origin_ids", "object", ())
    out["match_count"] = column("match_count", "Int64", 0)
    return out


def assemble(
    point_matched: pd.DataFrame,
    polygon_fallback: pd.DataFrame,
    uncovered: pd.DataFrame | Iterable[str],
    *,
    area_ids: Iterable[str] | None = None,
) -> pd.DataFrame:
    """Union the three partitions into the output table.

    Parameters
    ----------
    point_matched, polygon_fallback : DataFrame
        Covered areas with ``area_id``, ``time_band_upper_bound``,
        ``covering_origin_ids``, ``match_count`` and the provider columns.
    uncovered : DataFrame or iterable of str
        Areas without coverage (an ``area_id`` column or plain ids).
    area_ids : iterable of str, optional
        The complete area set.  When given, the union must equal it exactly.

    Row order is not part of the contract.
    """

    if not isinstance(uncovered, pd.DataFrame):
        uncovered = pd.DataFrame({config.AREA_ID: pd.Series(list(uncovered), dtype=object)})

    parts = [
        _tagged(point_matched, ResolutionPhase.POINT),
        _tagged(polygon_fallback, ResolutionPhase.POLYGON_FALLBACK),
        _tagged(uncovered, ResolutionPhase.UNCOVERED),
    ]
    result = pd.concat(parts, ignore_index=True)[RESULT_COLUMNS]

    ids = result[config.AREA_ID]
    dupes = ids[ids.duplicated(keep=False)]
    if not dupes.empty:
        clash = result.loc[dupes.index].groupby(config.AREA_ID)["resolution_phase"].agg(list)
        sample = dict(list(clash.items())[:5])
        raise AssemblyError(f"{dupes.nunique()} area ids appear in more than one row: {sample}")

    if area_ids is not None:
        expected = {str(a) for a in area_ids}
        present = set(ids)
        missing = expected - present
        extra = present - expected
        if missing or extra:
            raise AssemblyError(
                f"Result does not cover the area set: {len(missing)} missing "
                f"(e.g. {sorted(missing)[:5]}), {len(extra)} unexpected (e.g. {sorted(extra)[:5]})"
            )

    logger.info("Assembled %d result rows", len(result))
    return result


def write_result_table(
    result: pd.DataFrame,
    path: Path | str | None = None,
    *,
    tie_delimiter: str = config.TIE_DELIMITER,
) -> Path:
    """Write *result* as UTF-8 CSV with a header row and fixed column order."""

    path = Path(path or config.RESULT_CSV)
    path.parent.mkdir(parents=True, exist_ok=True)

    out = result[RESULT_COLUMNS].copy()
    out["covering_origin_ids"] = [tie_delimiter.join(ids) for ids in out["covering_origin_ids"]]
    out.to_csv(path, index=False, encoding="utf-8")
    logger.info("Wrote %d rows to %s", len(out), path)
    return path


def read_result_table(path: Path | str, *, tie_delimiter: str = config.TIE_DELIMITER) -> pd.DataFrame:
    """Read a table written by :func:`write_result_table` back into memory."""

    df = pd.read_csv(
        path,
        encoding="utf-8",
        dtype={
            config.AREA_ID: str,
            "representative_origin_id": str,
            "resolution_phase": str,
            "covering_origin_ids": str,
        },
        keep_default_na=False,
        na_values={
            config.BAND: [""],
            "representative_origin_id": [""],
            "provider_is_full_time": [""],
            "match_count": [""],
        },
    )
    df[config.BAND] = df[config.BAND].astype("Float64")
    df["representative_origin_id"] = pd.Series(
        [v if isinstance(v, str) else None for v in df["representative_origin_id"]],
        index=df.index,
        dtype=object,
    )
    df["provider_is_full_time"] = df["provider_is_full_time"].map(
        {True: True, False: False, "True": True, "False": False}
    ).astype("boolean")
    df["covering_origin_ids"] = [split_origin_ids(v, tie_delimiter) for v in df["covering_origin_ids"]]
    df["match_count"] = df["match_count"].astype("Int64")
    return df[RESULT_COLUMNS]

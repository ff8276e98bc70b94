"""Provider attribution – who covers each area, and with what crew type.

Each covered area keeps every origin tied at its minimum band, but only
the first one (join order) is looked up in the station metadata.  Full tie
information stays in ``covering_origin_ids``.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

import numpy as np
import pandas as pd

from . import config
from .errors import InputTableError
from .models import CoverageRecord

__all__ = [
    "ProviderAttributor",
    "first_origin_id",
    "normalise_crew_type",
    "split_origin_ids",
]

logger = logging.getLogger(__name__)

_FULL_TIME_LABELS = {"true", "yes", "y", "1", "ft", "full-time", "full time", "fulltime", "wholetime", "whole-time", "career"}
_PART_TIME_LABELS = {"false", "no", "n", "0", "pt", "part-time", "part time", "parttime", "retained", "on-call", "on call", "volunteer"}


def normalise_crew_type(value: Any) -> Any:
    """Map a boolean or categorical crew label to ``True``/``False``/``pd.NA``."""

    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return pd.NA
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, (int, float, np.integer, np.floating)) and value in (0, 1):
        return bool(value)
    label = str(value).strip().lower()
    if label in _FULL_TIME_LABELS:
        return True
    if label in _PART_TIME_LABELS:
        return False
    return pd.NA


def split_origin_ids(joined: Any, delimiter: str = config.TIE_DELIMITER) -> tuple[str, ...]:
    """Split a delimiter-joined origin list on the exact *delimiter*.

    Tokens are kept verbatim, so ids with surrounding spaces or a bare
    ``|`` survive a write/read cycle.  Empty or missing input gives ``()``.
    """

    if joined is None or (not isinstance(joined, str) and pd.isna(joined)):
        return ()
    text = str(joined)
    if text == "":
        return ()
    return tuple(text.split(delimiter))


def first_origin_id(joined: Any, delimiter: str = config.TIE_DELIMITER) -> str | None:
    """Return the first origin of a legacy delimiter-joined list, or ``None``."""
    ids = split_origin_ids(joined, delimiter)
    return ids[0] if ids else None


class ProviderAttributor:
    """Join resolved coverage to station metadata.

    Parameters
    ----------
    origins : DataFrame
        Columns ``origin_id`` and ``is_full_time`` (boolean or crew label).
    """

    def __init__(self, origins: pd.DataFrame) -> None:
        missing = {config.ORIGIN_ID, config.IS_FULL_TIME}.difference(origins.columns)
        if missing:
            raise InputTableError(f"Origin table missing columns: {sorted(missing)}")

        ids = origins[config.ORIGIN_ID].astype(str)
        dupes = ids[ids.duplicated()]
        if not dupes.empty:
            raise InputTableError(f"Duplicate origin ids in metadata: {list(dupes.unique()[:5])}")

        crew = origins[config.IS_FULL_TIME].map(normalise_crew_type)
        unknown = crew.isna() & origins[config.IS_FULL_TIME].notna()
        if unknown.any():
            labels = sorted({str(v) for v in origins.loc[unknown, config.IS_FULL_TIME]})
            logger.warning("Unrecognised crew-type labels %s treated as unknown", labels)

        self._full_time = pd.Series(crew.to_numpy(), index=ids.to_numpy(), dtype="boolean")

    def is_full_time(self, origin_id: str | None) -> Any:
        if origin_id is None:
            return pd.NA
        return self._full_time.get(origin_id, pd.NA)

    def attribute(self, coverage: pd.DataFrame | Iterable[CoverageRecord]) -> pd.DataFrame:
        """Return ``area_id, representative_origin_id, provider_is_full_time``.

        *coverage* is a resolved coverage table or an iterable of
        :class:`~firecover.models.CoverageRecord`; it is not modified.  Empty
        tie lists and origins without metadata give missing values.
        """

        if not isinstance(coverage, pd.DataFrame):
            records = list(coverage)
            coverage = pd.DataFrame(
                {
                    config.AREA_ID: [r.area_id for r in records],
                    "covering_origin_ids": [tuple(r.covering_origin_ids) for r in records],
                }
            )

        reps = pd.Series(
            [ids[0] if len(ids) else None for ids in coverage["covering_origin_ids"]],
            dtype=object,
        )

        crew = pd.Series(self._full_time.reindex(reps.fillna("").to_numpy()).array, dtype="boolean")
        crew[reps.isna()] = pd.NA

        unmatched = reps.notna() & ~reps.isin(self._full_time.index)
        if unmatched.any():
            logger.warning(
                "%d areas covered by origins without metadata, e.g. %s",
                int(unmatched.sum()),
                sorted(set(reps[unmatched]))[:5],
            )

        # object dtype keeps None for areas without a representative
        return pd.DataFrame(
            {
                config.AREA_ID: pd.Series(coverage[config.AREA_ID].to_numpy()),
                "representative_origin_id": reps,
                "provider_is_full_time": crew,
            }
        )

"""Package-wide configuration and constants.

The module centralises path handling and the run parameters (target CRS,
time bands, tie delimiter) so that other sub-modules don't need hard-coded
values.  All of them can be overridden via environment variables, making
the package portable and CI-friendly.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final, Sequence

# ---------------------------------------------------------------------------
# Directory layout (overridable via env vars)
# ---------------------------------------------------------------------------

ROOT: Final[Path] = Path(os.getenv("FIRECOVER_ROOT", ".")).resolve()

DATA_DIR: Final[Path] = Path(os.getenv("FIRECOVER_DATA", ROOT / "raw_data"))
RESULTS_DIR: Final[Path] = Path(os.getenv("FIRECOVER_RESULTS", ROOT / "Results"))

# ---------------------------------------------------------------------------
# Data files (relative to the above directories)
# ---------------------------------------------------------------------------

STATIONS_CSV: Final[Path] = DATA_DIR / "fire_stations.csv"
ISOCHRONES_FILE: Final[Path] = DATA_DIR / "isochrones.gpkg"
SMALL_AREAS_FILE: Final[Path] = DATA_DIR / "small_areas.gpkg"
SMALL_AREA_POINTS_FILE: Final[Path] = DATA_DIR / "small_area_points.gpkg"
POP_RASTER: Final[Path] = Path(
    os.getenv("FIRECOVER_POP_RASTER", DATA_DIR / "population.tif")
)
RESULT_CSV: Final[Path] = RESULTS_DIR / "small_area_response_times.csv"

# ---------------------------------------------------------------------------
# Run parameters
# ---------------------------------------------------------------------------

# Irish Transverse Mercator; every input table must already be in this CRS
CRS: Final[str] = os.getenv("FIRECOVER_CRS", "EPSG:2157")

TIME_BANDS: Final[list[int]] = [3, 5, 8, 10, 12, 15, 30]  # minutes

TIE_DELIMITER: Final[str] = os.getenv("FIRECOVER_TIE_DELIMITER", " | ")

# Column names shared by the loaders, the index and the output table
AREA_ID: Final[str] = "area_id"
ORIGIN_ID: Final[str] = "origin_id"
BAND: Final[str] = "time_band_upper_bound"
IS_FULL_TIME: Final[str] = "is_full_time"


@dataclass(frozen=True)
class CoverageConfig:
    """Invocation parameters for one coverage run.

    Parameters
    ----------
    crs : str
        Target coordinate reference system identifier.  All input tables
        must already be expressed in it.
    time_bands : sequence of numbers
        Ascending upper bounds (minutes) of the studied time bands.  The
        last one is the maximum band; areas not reached within it are
        uncovered.
    tie_delimiter : str
        Separator used when tied origin-id lists are written to text.
    """

    crs: str = CRS
    time_bands: tuple[float, ...] = field(default_factory=lambda: tuple(TIME_BANDS))
    tie_delimiter: str = TIE_DELIMITER

    def __post_init__(self) -> None:
        bands = tuple(self.time_bands)
        if not bands:
            raise ValueError("time_bands must not be empty")
        if any(b <= 0 for b in bands):
            raise ValueError(f"time_bands must be positive: {bands}")
        if list(bands) != sorted(set(bands)):
            raise ValueError(f"time_bands must be strictly ascending: {bands}")
        if not self.tie_delimiter:
            raise ValueError("tie_delimiter must be a non-empty string")
        if not self.crs:
            raise ValueError("crs must be set")
        object.__setattr__(self, "time_bands", bands)

    @property
    def max_band(self) -> float:
        return self.time_bands[-1]


# ---------------------------------------------------------------------------
# Helper utilities
# ---------------------------------------------------------------------------

def resolve(path: str | Path) -> Path:
    """Return *path* as absolute :class:`~pathlib.Path`.  Accepts str/Path."""

    p = Path(path)
    return p if p.is_absolute() else ROOT / p


def get_time_bands() -> list[int]:
    """Return the default time bands, e.g. ``[3, 5, 8, 10, 12, 15, 30]``."""
    return list(TIME_BANDS)


def make_config(
    crs: str | None = None,
    time_bands: Sequence[float] | None = None,
    tie_delimiter: str | None = None,
) -> CoverageConfig:
    """Build a :class:`CoverageConfig`, falling back to the module defaults."""

    return CoverageConfig(
        crs=crs or CRS,
        time_bands=tuple(time_bands) if time_bands is not None else tuple(TIME_BANDS),
        tie_delimiter=tie_delimiter or TIE_DELIMITER,
    )


def debug_dump() -> None:
    """Print current config to stdout – handy for troubleshooting."""

    import pprint as _pp

    _pp.pprint({
        "ROOT": ROOT,
        "DATA_DIR": DATA_DIR,
        "RESULTS_DIR": RESULTS_DIR,
        "POP_RASTER": POP_RASTER,
        "CRS": CRS,
        "TIME_BANDS": TIME_BANDS,
        "TIE_DELIMITER": TIE_DELIMITER,
    })

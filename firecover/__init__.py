"""firecover: Fire-service response-time coverage of small areas.

This package resolves, for every small population area, the fastest
isochrone time band within which a fire station can reach it, which
stations tie at that band, and whether the first of them runs a
full-time or a retained crew.
"""

from . import config
from . import errors
from . import models
from . import data
from . import isochrones
from . import index
from . import coverage
from . import providers
from . import assemble
from . import population
from . import reports
from . import pipeline

from .assemble import assemble as assemble_results
from .coverage import CoverageResolver, CoverageResult
from .errors import AssemblyError, GeometryError, InputTableError
from .index import GeometryIndex
from .models import CoverageRecord, ResolutionPhase
from .pipeline import compute_response_times
from .providers import ProviderAttributor

__version__ = "1.0.0"

__all__ = [
    "config",
    "errors",
    "models",
    "data",
    "isochrones",
    "index",
    "coverage",
    "providers",
    "assemble",
    "population",
    "reports",
    "pipeline",
    "assemble_results",
    "compute_response_times",
    "CoverageResolver",
    "CoverageResult",
    "CoverageRecord",
    "GeometryIndex",
    "ProviderAttributor",
    "ResolutionPhase",
    "GeometryError",
    "AssemblyError",
    "InputTableError",
]

# Top-level helpers ----------------------------------------------------------

def run_response_times(output_path: str | None = None, time_bands: list[int] | None = None):
    """Compute the small-area response-time table from the default data files.

    Parameters
    ----------
    output_path : str | Path | None, optional
        Target CSV; defaults to ``Results/small_area_response_times.csv``.
    time_bands : list[int] | None, optional
        Time bands to study. If None, uses config.TIME_BANDS.
    """
    cfg = config.make_config(time_bands=time_bands)
    result, path = pipeline.run_from_files(output=output_path, cfg=cfg)
    print('✓ Response-time table written to', path.resolve())
    return result


def get_time_bands() -> list[int]:
    """Return the default time bands: [3, 5, 8, 10, 12, 15, 30]."""
    return config.get_time_bands()

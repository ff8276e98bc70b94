"""Exception types raised by the coverage pipeline."""

from __future__ import annotations

__all__ = ["CoverageError", "GeometryError", "InputTableError", "AssemblyError"]


class CoverageError(Exception):
    """Base class for all firecover errors."""


class GeometryError(CoverageError):
    """Geometry inputs cannot be used: undefined or mismatched CRS, null,
    empty, wrongly typed or invalid (self-intersecting) geometries."""


class InputTableError(CoverageError, ValueError):
    """An input table is missing columns or breaks an identity constraint."""


class AssemblyError(CoverageError):
    """The three resolution phases do not partition the area set exactly."""

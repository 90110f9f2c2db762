"""Exceptions raised by lmptopo."""

from __future__ import annotations


class TopologyError(ValueError):
    """Base class for invalid bond topology."""


class MalformedTopology(TopologyError):
    """A bond is structurally invalid (e.g. an atom bonded to itself)."""


class InconsistentAtomCount(TopologyError):
    """An atom id falls outside the declared atom range 1..N."""


class DataFileError(ValueError):
    """A LAMMPS data file could not be parsed."""


class DumpFormatError(ValueError):
    """A LAMMPS dump file could not be parsed."""

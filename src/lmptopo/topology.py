"""Molecule assignment and before/after comparison for LAMMPS data files."""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

from lmptopo.datafile import ATOM_STYLE_COLUMNS, DataFile, read_data, write_data
from lmptopo.errors import InconsistentAtomCount
from lmptopo.graph import NO_MOLECULE, TopologyResult, reconstruct_topology

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)


def with_molecule_ids(data: DataFile, molecule_of: Mapping[int, int]) -> DataFile:
    """
    Return a copy of data with its mol column replaced.

    Atoms missing from molecule_of get molecule 0.

    Raises:
        ValueError: If the atom style has no molecule column.
    """
    if "mol" not in ATOM_STYLE_COLUMNS[data.atom_style]:
        raise ValueError(f"Atom style '{data.atom_style}' has no molecule column")

    atoms = [replace(atom, mol=molecule_of.get(atom.id, NO_MOLECULE)) for atom in data.atoms]
    return replace(data, atoms=atoms)


def assign_molecule_id(
    input_path: str | Path,
    output_path: str | Path | None = None,
    atom_style: str | None = None,
) -> TopologyResult:
    """
    Assign molecule IDs to a data file based on its bonds.

    Reads a LAMMPS data file, finds the connected components of its bond
    graph, and optionally writes the file back with the mol column holding
    the canonical molecule IDs. The file's existing mol column is used as the
    prior mapping, so the correspondence shows how old IDs map to new ones.

    Args:
        input_path: Path to input data file.
        output_path: Path to output data file. If None, no file is written.
        atom_style: Atom style to assume when the Atoms header has none.

    Returns:
        TopologyResult for the file.

    Raises:
        FileNotFoundError: If input file does not exist.
        InconsistentAtomCount: If a bond references an undeclared atom.
        MalformedTopology: If an atom is bonded to itself.
        ValueError: If output is requested for a style without a mol column.
    """
    data = read_data(input_path, atom_style)
    result = reconstruct_topology(data.bond_pairs(), data.n_atoms, data.prior_molecules())

    if output_path is not None:
        write_data(with_molecule_ids(data, result.molecule_of), output_path)
        logger.debug(f"Wrote {result.n_molecules} molecule id(s) to {output_path}")

    return result


def compare_molecules(
    before_path: str | Path,
    after_path: str | Path,
    atom_style: str | None = None,
) -> TopologyResult:
    """
    Compare the molecules of a system before and after a bonding event.

    Molecules before the event come from the mol column of the first file.
    Molecules after the event are rebuilt from the bonds of the second file.

    Args:
        before_path: Data file written before the event.
        after_path: Data file written after the event.
        atom_style: Atom style to assume when an Atoms header has none.

    Returns:
        TopologyResult whose correspondence maps each molecule after the event
        to the molecules before the event that its atoms came from.

    Raises:
        InconsistentAtomCount: If the two files declare different atom counts,
            or a bond references an undeclared atom.
        MalformedTopology: If an atom is bonded to itself.
    """
    before = read_data(before_path, atom_style)
    after = read_data(after_path, atom_style)

    if before.n_atoms != after.n_atoms:
        raise InconsistentAtomCount(
            f"Atom counts differ: {before_path} has {before.n_atoms}, "
            f"{after_path} has {after.n_atoms}"
        )

    prior = before.prior_molecules()
    if not prior:
        logger.warning(f"{before_path} has no molecule column; correspondence will be empty")

    result = reconstruct_topology(after.bond_pairs(), after.n_atoms, prior)
    n_merged = sum(1 for priors in result.correspondence.values() if len(priors) > 1)
    logger.debug(f"{n_merged} of {result.n_molecules} molecule(s) merged from several priors")
    return result

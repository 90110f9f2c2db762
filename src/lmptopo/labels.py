"""Element and type labels from masses and bond connectivity."""

from __future__ import annotations

import functools
import logging
from collections import OrderedDict, defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING

import gemmi

if TYPE_CHECKING:
    from lmptopo.datafile import DataFile

logger = logging.getLogger(__name__)

UNKNOWN_ELEMENT = "X"

# Largest difference (amu) between a mass and a standard atomic weight
MASS_TOLERANCE = 0.5

# Elements considered when matching masses (H through Rn)
_MAX_ATOMIC_NUMBER = 86


@dataclass(frozen=True)
class AtomLabel:
    """Chemical labels of one atom."""

    atom_id: int
    atom_type: int
    element: str
    n_bonds: int

    @property
    def label(self) -> str:
        """Element symbol followed by the number of bonded neighbours, e.g. C4."""
        return f"{self.element}{self.n_bonds}"


@functools.lru_cache(maxsize=1)
def _standard_weights() -> tuple[tuple[str, float], ...]:
    elements = (gemmi.Element(z) for z in range(1, _MAX_ATOMIC_NUMBER + 1))
    return tuple((el.name, el.weight) for el in elements)


@functools.lru_cache(maxsize=256)
def guess_element(mass: float, tolerance: float = MASS_TOLERANCE) -> str:
    """
    Guess the element whose standard atomic weight is closest to mass.

    Args:
        mass: Atomic mass in amu.
        tolerance: Largest accepted difference in amu.

    Returns:
        Element symbol, or "X" if no element is within tolerance.
    """
    symbol, weight = min(_standard_weights(), key=lambda item: abs(item[1] - mass))
    if abs(weight - mass) > tolerance:
        return UNKNOWN_ELEMENT
    return symbol


def elements_by_type(data: DataFile) -> dict[int, str]:
    """Element symbol for every atom type listed in the Masses section."""
    elements = {atom_type: guess_element(mass) for atom_type, mass in data.masses.items()}
    for atom_type, symbol in elements.items():
        if symbol == UNKNOWN_ELEMENT:
            logger.warning(
                f"No element matches mass {data.masses[atom_type]} of atom type {atom_type}"
            )
    return elements


def assign_labels(data: DataFile) -> OrderedDict[int, AtomLabel]:
    """
    Label every atom with its element and its number of bonded neighbours.

    Args:
        data: Parsed data file. Elements come from the Masses section;
            atom types without a mass are labelled "X".

    Returns:
        OrderedDict mapping atom id to AtomLabel, in Atoms section order.
    """
    elements = elements_by_type(data)

    neighbours: dict[int, set[int]] = defaultdict(set)
    for a, b in data.bond_pairs():
        neighbours[a].add(b)
        neighbours[b].add(a)

    return OrderedDict(
        (
            atom.id,
            AtomLabel(
                atom_id=atom.id,
                atom_type=atom.type,
                element=elements.get(atom.type, UNKNOWN_ELEMENT),
                n_bonds=len(neighbours.get(atom.id, ())),
            ),
        )
        for atom in data.atoms
    )

"""Graph algorithms for molecular topology reconstruction.

This module determines the molecules (connected components of the bond
graph) of a simulation snapshot, numbers them canonically, and relates them
to the molecules of an earlier snapshot.

The main functions are:
- reconstruct_topology: Full batch transform from bonds to molecule IDs
- canonicalize: Renumber raw partition labels into contiguous molecule IDs
- build_correspondence: Map final molecules to the prior molecules they contain

Example:
    >>> from lmptopo.graph import reconstruct_topology
    >>> result = reconstruct_topology([(1, 2), (3, 4)], n_atoms=5)
    >>> result.molecule_of
    OrderedDict([(1, 1), (2, 1), (3, 2), (4, 2), (5, 0)])
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TypeAlias

from lmptopo.errors import InconsistentAtomCount, MalformedTopology

logger = logging.getLogger(__name__)

# Type aliases for clarity
AtomId: TypeAlias = int
MoleculeId: TypeAlias = int
PriorMoleculeId: TypeAlias = int
Bond: TypeAlias = tuple[AtomId, AtomId]

# Molecule ID reserved for atoms without any bond
NO_MOLECULE: MoleculeId = 0


class Partition:
    """
    Incremental partition of atoms 1..N into molecules.

    A union-find forest with path compression and union by size. Each root
    also records the smallest atom id merged into its class, so the raw label
    of a class is always its lowest-numbered atom. Atoms that never appear in
    a bond carry the raw label 0.

    Example:
        >>> p = Partition(4)
        >>> p.add_bond(3, 2)
        >>> p.raw_label(3), p.raw_label(1)
        (2, 0)
    """

    def __init__(self, n_atoms: int) -> None:
        if n_atoms < 0:
            raise InconsistentAtomCount(f"Atom count must be non-negative, got {n_atoms}")
        self.n_atoms = n_atoms
        # Index 0 is unused so that atom ids index the lists directly
        self._parent = list(range(n_atoms + 1))
        self._size = [1] * (n_atoms + 1)
        self._min_atom = list(range(n_atoms + 1))
        self._bonded = [False] * (n_atoms + 1)

    def _check_atom(self, atom: AtomId) -> None:
        if not 1 <= atom <= self.n_atoms:
            raise InconsistentAtomCount(
                f"Atom id {atom} outside declared range 1..{self.n_atoms}"
            )

    def find(self, atom: AtomId) -> AtomId:
        """Return the forest root of the class containing atom."""
        self._check_atom(atom)
        root = atom
        while self._parent[root] != root:
            root = self._parent[root]

        # Path compression
        while self._parent[atom] != root:
            next_atom = self._parent[atom]
            self._parent[atom] = root
            atom = next_atom

        return root

    def add_bond(self, a: AtomId, b: AtomId) -> None:
        """
        Merge the classes of a and b.

        Args:
            a: First atom id.
            b: Second atom id.

        Raises:
            InconsistentAtomCount: If either atom id is outside 1..N.
            MalformedTopology: If a and b are the same atom.
        """
        self._check_atom(a)
        self._check_atom(b)
        if a == b:
            raise MalformedTopology(f"Atom {a} is bonded to itself")

        self._bonded[a] = True
        self._bonded[b] = True

        root_a = self.find(a)
        root_b = self.find(b)
        if root_a == root_b:
            return

        if self._size[root_a] < self._size[root_b]:
            root_a, root_b = root_b, root_a
        self._parent[root_b] = root_a
        self._size[root_a] += self._size[root_b]
        self._min_atom[root_a] = min(self._min_atom[root_a], self._min_atom[root_b])

    def raw_label(self, atom: AtomId) -> AtomId:
        """Smallest atom id in the class of atom, or 0 if atom is unbonded."""
        self._check_atom(atom)
        if not self._bonded[atom]:
            return NO_MOLECULE
        return self._min_atom[self.find(atom)]

    def connected(self, a: AtomId, b: AtomId) -> bool:
        """True if a and b belong to the same bonded class."""
        self._check_atom(a)
        self._check_atom(b)
        if not (self._bonded[a] and self._bonded[b]):
            return a == b
        return self.find(a) == self.find(b)


@dataclass
class TopologyResult:
    """Result container for molecule reconstruction."""

    molecule_of: OrderedDict[AtomId, MoleculeId]
    n_molecules: int
    correspondence: OrderedDict[MoleculeId, tuple[PriorMoleculeId, ...]] = field(
        default_factory=OrderedDict
    )

    def atoms_of(self, molecule: MoleculeId) -> list[AtomId]:
        """Atom ids belonging to a molecule, ascending."""
        return [atom for atom, mol in self.molecule_of.items() if mol == molecule]


def build_partition(bonds: Iterable[Bond], n_atoms: int) -> Partition:
    """
    Apply every bond to a fresh partition.

    Args:
        bonds: Iterable of (atom_a, atom_b) pairs.
        n_atoms: Declared atom count N; valid ids are 1..N.

    Returns:
        The partition after all bonds.

    Raises:
        InconsistentAtomCount: If a bond references an atom outside 1..N.
        MalformedTopology: If a bond joins an atom to itself.
    """
    partition = Partition(n_atoms)
    n_bonds = 0
    for a, b in bonds:
        partition.add_bond(a, b)
        n_bonds += 1
    logger.debug(f"Applied {n_bonds} bond(s) to {n_atoms} atom(s)")
    return partition


def canonicalize(partition: Partition) -> tuple[OrderedDict[AtomId, MoleculeId], int]:
    """
    Renumber raw partition labels into contiguous molecule IDs.

    Atoms are scanned in ascending order; each raw label gets the next ID the
    first time it is seen, so molecule 1 holds the lowest-numbered bonded atom.

    Args:
        partition: Final partition of atoms 1..N.

    Returns:
        Tuple of (mapping of every atom to its molecule ID, number of molecules).
        Unbonded atoms map to 0.
    """
    molecule_of: OrderedDict[AtomId, MoleculeId] = OrderedDict()
    canonical: dict[AtomId, MoleculeId] = {NO_MOLECULE: NO_MOLECULE}
    n_molecules = 0

    for atom in range(1, partition.n_atoms + 1):
        label = partition.raw_label(atom)
        if label not in canonical:
            n_molecules += 1
            canonical[label] = n_molecules
        molecule_of[atom] = canonical[label]

    return molecule_of, n_molecules


def build_correspondence(
    molecule_of: Mapping[AtomId, MoleculeId],
    prior_molecule_of: Mapping[AtomId, PriorMoleculeId],
    n_molecules: int,
) -> OrderedDict[MoleculeId, tuple[PriorMoleculeId, ...]]:
    """
    Find which prior molecules each final molecule was built from.

    Args:
        molecule_of: Final atom to molecule mapping (0 = no molecule).
        prior_molecule_of: Possibly partial atom to prior molecule mapping.
        n_molecules: Number of final molecules.

    Returns:
        OrderedDict mapping each molecule 1..n_molecules to the sorted prior
        molecule IDs of its atoms. Atoms without a molecule or without a prior
        molecule contribute nothing.
    """
    members: dict[MoleculeId, set[PriorMoleculeId]] = {
        mol: set() for mol in range(1, n_molecules + 1)
    }
    for atom, mol in molecule_of.items():
        if mol == NO_MOLECULE:
            continue
        prior = prior_molecule_of.get(atom)
        if prior is None:
            continue
        members[mol].add(prior)

    return OrderedDict((mol, tuple(sorted(priors))) for mol, priors in members.items())


def reconstruct_topology(
    bonds: Iterable[Bond],
    n_atoms: int,
    prior_molecule_of: Mapping[AtomId, PriorMoleculeId] | None = None,
) -> TopologyResult:
    """
    Determine molecules from a bond list and relate them to prior molecules.

    Args:
        bonds: Iterable of (atom_a, atom_b) pairs. Order and duplicates do not
            affect the result.
        n_atoms: Declared atom count N; valid ids are 1..N.
        prior_molecule_of: Optional atom to prior molecule mapping. If None,
            every correspondence entry is empty.

    Returns:
        TopologyResult with the atom to molecule mapping, the molecule count
        and the correspondence table.

    Raises:
        InconsistentAtomCount: If a bond references an atom outside 1..N.
        MalformedTopology: If a bond joins an atom to itself.
    """
    partition = build_partition(bonds, n_atoms)
    molecule_of, n_molecules = canonicalize(partition)
    correspondence = build_correspondence(molecule_of, prior_molecule_of or {}, n_molecules)
    logger.debug(f"Found {n_molecules} molecule(s) among {n_atoms} atom(s)")
    return TopologyResult(
        molecule_of=molecule_of,
        n_molecules=n_molecules,
        correspondence=correspondence,
    )

"""LAMMPS data file I/O.

Reads and writes the static topology files produced by ``write_data`` and
consumed by ``read_data`` in LAMMPS: a header with counts and box bounds
followed by named sections (Masses, Atoms, Bonds, ...).

Only the sections this package edits are parsed into records. Coefficient
sections and anything else are carried through verbatim.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING

from lmptopo.errors import DataFileError, InconsistentAtomCount

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

# Column layout of the Atoms section per atom style (image flags may follow)
ATOM_STYLE_COLUMNS: dict[str, tuple[str, ...]] = {
    "full": ("id", "mol", "type", "q", "x", "y", "z"),
    "molecular": ("id", "mol", "type", "x", "y", "z"),
    "bond": ("id", "mol", "type", "x", "y", "z"),
    "angle": ("id", "mol", "type", "x", "y", "z"),
    "atomic": ("id", "type", "x", "y", "z"),
    "charge": ("id", "type", "q", "x", "y", "z"),
}
DEFAULT_ATOM_STYLE = "full"

# Topology sections and the number of atoms per record
TOPOLOGY_SECTIONS: dict[str, int] = {
    "Bonds": 2,
    "Angles": 3,
    "Dihedrals": 4,
    "Impropers": 4,
}

# Header keyword for each topology section ("3 bonds", "1 bond types")
_SECTION_KINDS: dict[str, str] = {
    "Bonds": "bond",
    "Angles": "angle",
    "Dihedrals": "dihedral",
    "Impropers": "improper",
}
_TYPE_KINDS = ("atom", "bond", "angle", "dihedral", "improper")
_BOX_AXES = {"xlo xhi": "x", "ylo yhi": "y", "zlo zhi": "z"}

_KNOWN_SECTIONS = frozenset(
    {
        "Atoms",
        "Velocities",
        "Masses",
        "Ellipsoids",
        "Lines",
        "Triangles",
        "Bodies",
        *TOPOLOGY_SECTIONS,
    }
)


def _is_section(content: str) -> bool:
    return content in _KNOWN_SECTIONS or content.endswith(" Coeffs")


def _strip_comment(line: str) -> tuple[str, str]:
    """Split a line into (content, comment), both stripped."""
    content, _, comment = line.partition("#")
    return content.strip(), comment.strip()


@dataclass
class AtomRecord:
    """A single row of the Atoms section."""

    id: int
    type: int
    x: float
    y: float
    z: float
    mol: int | None = None
    charge: float | None = None
    image: tuple[int, int, int] | None = None


@dataclass
class TopologyRecord:
    """A single row of a Bonds, Angles, Dihedrals or Impropers section."""

    id: int
    type: int
    atoms: tuple[int, ...]


@dataclass
class DataFile:
    """In-memory representation of a LAMMPS data file."""

    title: str = "LAMMPS data file"
    atom_style: str = DEFAULT_ATOM_STYLE
    counts: dict[str, int] = field(default_factory=dict)
    type_counts: dict[str, int] = field(default_factory=dict)
    box: dict[str, tuple[float, float]] = field(default_factory=dict)
    tilt: tuple[float, float, float] | None = None
    extra_header: list[str] = field(default_factory=list)
    masses: OrderedDict[int, float] = field(default_factory=OrderedDict)
    atoms: list[AtomRecord] = field(default_factory=list)
    velocities: list[tuple[int, tuple[str, ...]]] = field(default_factory=list)
    topology: OrderedDict[str, list[TopologyRecord]] = field(default_factory=OrderedDict)
    other_sections: OrderedDict[str, list[str]] = field(default_factory=OrderedDict)

    @property
    def n_atoms(self) -> int:
        """Declared atom count, falling back to the Atoms section length."""
        return self.counts.get("atoms", len(self.atoms))

    @property
    def n_atom_types(self) -> int:
        """Declared atom type count, falling back to the largest type in use."""
        if "atom" in self.type_counts:
            return self.type_counts["atom"]
        return max((atom.type for atom in self.atoms), default=0)

    @property
    def bonds(self) -> list[TopologyRecord]:
        return self.topology.get("Bonds", [])

    def bond_pairs(self) -> list[tuple[int, int]]:
        """Atom id pairs of every bond."""
        return [(rec.atoms[0], rec.atoms[1]) for rec in self.bonds]

    def prior_molecules(self) -> dict[int, int]:
        """Atom to molecule mapping from the mol column (empty if absent)."""
        return {atom.id: atom.mol for atom in self.atoms if atom.mol is not None}


def _parse_header_line(data: DataFile, content: str, raw: str) -> None:
    tokens = content.split()
    tail2 = " ".join(tokens[-2:])

    if tail2 in _BOX_AXES and len(tokens) == 4:
        data.box[_BOX_AXES[tail2]] = (float(tokens[0]), float(tokens[1]))
    elif tokens[-3:] == ["xy", "xz", "yz"] and len(tokens) == 6:
        data.tilt = (float(tokens[0]), float(tokens[1]), float(tokens[2]))
    elif len(tokens) == 3 and tokens[2] == "types" and tokens[1] in _TYPE_KINDS:
        data.type_counts[tokens[1]] = int(tokens[0])
    elif len(tokens) == 2 and tokens[1] in ("atoms", *(f"{k}s" for k in _SECTION_KINDS.values())):
        data.counts[tokens[1]] = int(tokens[0])
    else:
        data.extra_header.append(raw.strip())


def _parse_atom(tokens: list[str], columns: tuple[str, ...]) -> AtomRecord:
    n_cols = len(columns)
    if len(tokens) not in (n_cols, n_cols + 3):
        raise ValueError(f"expected {n_cols} or {n_cols + 3} columns, got {len(tokens)}")

    values = dict(zip(columns, tokens))
    image = None
    if len(tokens) == n_cols + 3:
        image = (int(tokens[n_cols]), int(tokens[n_cols + 1]), int(tokens[n_cols + 2]))

    return AtomRecord(
        id=int(values["id"]),
        type=int(values["type"]),
        x=float(values["x"]),
        y=float(values["y"]),
        z=float(values["z"]),
        mol=int(values["mol"]) if "mol" in values else None,
        charge=float(values["q"]) if "q" in values else None,
        image=image,
    )


def _parse_topology(tokens: list[str], n_atoms: int) -> TopologyRecord:
    if len(tokens) != n_atoms + 2:
        raise ValueError(f"expected {n_atoms + 2} columns, got {len(tokens)}")
    ints = [int(t) for t in tokens]
    return TopologyRecord(id=ints[0], type=ints[1], atoms=tuple(ints[2:]))


def read_data(path: str | Path, atom_style: str | None = None) -> DataFile:
    """
    Read a LAMMPS data file.

    Args:
        path: Path to the data file.
        atom_style: Atom style to assume when the Atoms section header has no
            style comment. Defaults to "full".

    Returns:
        Parsed DataFile.

    Raises:
        FileNotFoundError: If the file does not exist.
        DataFileError: If the path is not a file or its content is malformed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    if not path.is_file():
        raise DataFileError(f"Input path is not a file: {path}")

    fallback_style = atom_style or DEFAULT_ATOM_STYLE
    lines = path.read_text().splitlines()
    data = DataFile(title=lines[0].strip() if lines else "", atom_style=fallback_style)

    section: str | None = None
    for lineno, raw in enumerate(lines[1:], start=2):
        content, comment = _strip_comment(raw)
        if not content:
            continue

        if _is_section(content):
            section = content
            if section == "Atoms":
                data.atom_style = comment.split()[0] if comment else fallback_style
                if data.atom_style not in ATOM_STYLE_COLUMNS:
                    raise DataFileError(
                        f"{path}:{lineno}: unsupported atom style '{data.atom_style}'. "
                        f"Supported: {', '.join(ATOM_STYLE_COLUMNS)}"
                    )
            elif section in TOPOLOGY_SECTIONS:
                data.topology.setdefault(section, [])
            elif section not in ("Masses", "Velocities"):
                data.other_sections.setdefault(section, [])
            continue

        tokens = content.split()
        try:
            if section is None:
                _parse_header_line(data, content, raw)
            elif section == "Masses":
                data.masses[int(tokens[0])] = float(tokens[1])
            elif section == "Atoms":
                data.atoms.append(_parse_atom(tokens, ATOM_STYLE_COLUMNS[data.atom_style]))
            elif section == "Velocities":
                data.velocities.append((int(tokens[0]), tuple(tokens[1:])))
            elif section in TOPOLOGY_SECTIONS:
                record = _parse_topology(tokens, TOPOLOGY_SECTIONS[section])
                data.topology[section].append(record)
            else:
                data.other_sections[section].append(raw.strip())
        except (ValueError, IndexError) as e:
            where = section or "header"
            raise DataFileError(f"{path}:{lineno}: cannot parse {where}: {e}") from None

    _check_counts(data, path)
    logger.debug(
        f"Read {len(data.atoms)} atom(s), {len(data.bonds)} bond(s) from {path} "
        f"(atom style {data.atom_style})"
    )
    return data


def _check_counts(data: DataFile, path: Path) -> None:
    """Warn when header counts disagree with section lengths."""
    if "atoms" in data.counts and data.counts["atoms"] != len(data.atoms):
        logger.warning(
            f"{path}: header declares {data.counts['atoms']} atoms "
            f"but Atoms section has {len(data.atoms)}"
        )
    for section, kind in _SECTION_KINDS.items():
        key = f"{kind}s"
        found = len(data.topology.get(section, []))
        if key in data.counts and data.counts[key] != found:
            logger.warning(f"{path}: header declares {data.counts[key]} {key} but found {found}")


def _format_atom(atom: AtomRecord, columns: tuple[str, ...]) -> str:
    values = {
        "id": atom.id,
        "mol": atom.mol if atom.mol is not None else 0,
        "type": atom.type,
        "q": atom.charge if atom.charge is not None else 0.0,
        "x": atom.x,
        "y": atom.y,
        "z": atom.z,
    }
    parts = [str(values[col]) for col in columns]
    if atom.image is not None:
        parts.extend(str(i) for i in atom.image)
    return " ".join(parts)


def format_data(data: DataFile) -> str:
    """Render a DataFile as LAMMPS data file text."""
    out = [data.title, ""]

    out.append(f"{len(data.atoms)} atoms")
    for section, kind in _SECTION_KINDS.items():
        if section in data.topology or f"{kind}s" in data.counts:
            out.append(f"{len(data.topology.get(section, []))} {kind}s")
    for kind in _TYPE_KINDS:
        if kind in data.type_counts:
            out.append(f"{data.type_counts[kind]} {kind} types")
    out.extend(data.extra_header)
    out.append("")

    for lo_hi, axis in _BOX_AXES.items():
        if axis in data.box:
            lo, hi = data.box[axis]
            out.append(f"{lo} {hi} {lo_hi}")
    if data.tilt is not None:
        out.append(f"{data.tilt[0]} {data.tilt[1]} {data.tilt[2]} xy xz yz")

    if data.masses:
        out.extend(["", "Masses", ""])
        out.extend(f"{atom_type} {mass}" for atom_type, mass in data.masses.items())

    # Coeffs sections go before Atoms; per-atom sections (Ellipsoids, Lines, ...) after
    coeffs = [name for name in data.other_sections if name.endswith("Coeffs")]
    per_atom = [name for name in data.other_sections if not name.endswith("Coeffs")]

    for section in coeffs:
        out.extend(["", section, ""])
        out.extend(data.other_sections[section])

    columns = ATOM_STYLE_COLUMNS[data.atom_style]
    out.extend(["", f"Atoms # {data.atom_style}", ""])
    out.extend(_format_atom(atom, columns) for atom in data.atoms)

    if data.velocities:
        out.extend(["", "Velocities", ""])
        out.extend(" ".join([str(atom_id), *values]) for atom_id, values in data.velocities)

    for section in per_atom:
        out.extend(["", section, ""])
        out.extend(data.other_sections[section])

    for section, records in data.topology.items():
        if not records:
            continue
        out.extend(["", section, ""])
        out.extend(
            " ".join(str(v) for v in (rec.id, rec.type, *rec.atoms)) for rec in records
        )

    return "\n".join(out) + "\n"


def write_data(data: DataFile, path: str | Path) -> None:
    """Write a DataFile to disk."""
    Path(path).write_text(format_data(data))
    logger.debug(f"Wrote {len(data.atoms)} atom(s) to {path}")


def count_atom_types(data: DataFile) -> OrderedDict[int, int]:
    """
    Count atoms per atom type.

    Every declared type 1..n_atom_types is present, with zero counts for
    unused types. Types found in the Atoms section but not declared in the
    header are appended.

    Args:
        data: Parsed data file.

    Returns:
        OrderedDict mapping atom type to atom count, sorted by type.
    """
    counts: dict[int, int] = {atom_type: 0 for atom_type in range(1, data.n_atom_types + 1)}
    for atom in data.atoms:
        if atom.type not in counts:
            logger.warning(f"Atom {atom.id} has undeclared atom type {atom.type}")
            counts[atom.type] = 0
        counts[atom.type] += 1
    return OrderedDict(sorted(counts.items()))


def remove_atoms(data: DataFile, atom_ids: Iterable[int]) -> DataFile:
    """
    Remove atoms and repair every section that refers to them.

    Remaining atoms are renumbered 1..N' in order of their old ids, so an
    unsorted Atoms section comes back sorted. Bonds, angles, dihedrals and
    impropers that involve a removed atom are dropped; the rest are
    renumbered and point at the new atom ids.

    Args:
        data: Parsed data file (not modified).
        atom_ids: Ids of the atoms to remove.

    Returns:
        New DataFile without the removed atoms.

    Raises:
        InconsistentAtomCount: If an id does not name an atom in the file.
    """
    remove = set(atom_ids)
    unknown = remove - {atom.id for atom in data.atoms}
    if unknown:
        raise InconsistentAtomCount(
            f"Cannot remove unknown atom id(s): {', '.join(str(a) for a in sorted(unknown))}"
        )

    kept = sorted((atom for atom in data.atoms if atom.id not in remove), key=lambda a: a.id)
    new_id = {atom.id: index for index, atom in enumerate(kept, start=1)}

    topology: OrderedDict[str, list[TopologyRecord]] = OrderedDict()
    counts = dict(data.counts, atoms=len(kept))
    for section, records in data.topology.items():
        surviving = [rec for rec in records if all(a in new_id for a in rec.atoms)]
        topology[section] = [
            TopologyRecord(id=index, type=rec.type, atoms=tuple(new_id[a] for a in rec.atoms))
            for index, rec in enumerate(surviving, start=1)
        ]
        counts[f"{_SECTION_KINDS[section]}s"] = len(surviving)
        logger.debug(f"{section}: dropped {len(records) - len(surviving)} record(s)")

    return replace(
        data,
        counts=counts,
        atoms=[replace(atom, id=new_id[atom.id]) for atom in kept],
        velocities=[(new_id[a], values) for a, values in data.velocities if a in new_id],
        topology=topology,
        type_counts=dict(data.type_counts),
        box=dict(data.box),
        extra_header=list(data.extra_header),
        masses=OrderedDict(data.masses),
        other_sections=OrderedDict((k, list(v)) for k, v in data.other_sections.items()),
    )


def remove_atom_types(data: DataFile, atom_types: Iterable[int]) -> DataFile:
    """Remove every atom whose type is in atom_types (see remove_atoms)."""
    types = set(atom_types)
    return remove_atoms(data, [atom.id for atom in data.atoms if atom.type in types])

"""Conversion of dump frames to structure files (XYZ, mmCIF) using Gemmi."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import gemmi

if TYPE_CHECKING:
    from collections.abc import Mapping

    from lmptopo.dump import Frame

logger = logging.getLogger(__name__)

VALID_STRUCTURE_FORMATS = frozenset({"xyz", "cif"})

# Residue name for atoms without residue information (PDB "unknown ligand")
_RESIDUE_NAME = "UNL"
_CHAIN_ID = "A"

_ATOM_SITE_TAGS = [
    "group_PDB",
    "id",
    "type_symbol",
    "label_atom_id",
    "label_comp_id",
    "label_asym_id",
    "label_seq_id",
    "Cartn_x",
    "Cartn_y",
    "Cartn_z",
    "occupancy",
    "B_iso_or_equiv",
    "auth_seq_id",
    "auth_asym_id",
    "pdbx_PDB_model_num",
]


def _element_column(
    frame: Frame,
    rows: list[tuple[str, ...]],
    elements: Mapping[int, str] | None,
) -> list[str]:
    """Element symbol per row: explicit mapping by type, then dump column, then type."""
    if elements is not None and "type" in frame.columns:
        idx = frame.columns.index("type")
        return [elements.get(int(row[idx]), row[idx]) for row in rows]
    if "element" in frame.columns:
        idx = frame.columns.index("element")
        return [row[idx] for row in rows]
    if "type" in frame.columns:
        idx = frame.columns.index("type")
        return [row[idx] for row in rows]
    return ["X"] * len(rows)


def frame_to_xyz(frame: Frame, elements: Mapping[int, str] | None = None) -> str:
    """
    Render a frame in XYZ format.

    Args:
        frame: Dump frame.
        elements: Optional atom type to element symbol mapping. Without it the
            dump's element column is used, or the atom type number.

    Returns:
        XYZ text with atoms ordered by id.
    """
    rows = frame.sorted_rows()
    symbols = _element_column(frame, rows, elements)
    positions = frame.positions(rows)

    lines = [str(len(rows)), f"Timestep {frame.timestep}"]
    for symbol, (x, y, z) in zip(symbols, positions):
        lines.append(f"{symbol:<4} {x:12.6f} {y:12.6f} {z:12.6f}")
    return "\n".join(lines) + "\n"


def frame_to_mmcif(
    frame: Frame,
    elements: Mapping[int, str] | None = None,
) -> gemmi.cif.Document:
    """
    Build an mmCIF document holding a frame's atoms.

    Molecule ids from a ``mol`` column become residue numbers. The cell is
    written for orthogonal boxes only.
    """
    rows = frame.sorted_rows()
    symbols = _element_column(frame, rows, elements)
    positions = frame.positions(rows)
    ids = (
        [int(row[frame.columns.index("id")]) for row in rows]
        if "id" in frame.columns
        else list(range(1, len(rows) + 1))
    )
    mols = None
    if "mol" in frame.columns:
        mol_idx = frame.columns.index("mol")
        mols = [row[mol_idx] for row in rows]

    doc = gemmi.cif.Document()
    block = doc.add_new_block(f"timestep_{frame.timestep}")
    block.set_pair("_entry.id", f"timestep_{frame.timestep}")

    if frame.tilt is None and len(frame.box_bounds) == 3:
        (xlo, xhi), (ylo, yhi), (zlo, zhi) = frame.box_bounds
        block.set_pair("_cell.length_a", f"{xhi - xlo:.4f}")
        block.set_pair("_cell.length_b", f"{yhi - ylo:.4f}")
        block.set_pair("_cell.length_c", f"{zhi - zlo:.4f}")
        block.set_pair("_cell.angle_alpha", "90.0")
        block.set_pair("_cell.angle_beta", "90.0")
        block.set_pair("_cell.angle_gamma", "90.0")
    else:
        logger.debug(f"Timestep {frame.timestep}: triclinic box, skipping _cell")

    loop = block.init_mmcif_loop("_atom_site.", _ATOM_SITE_TAGS)
    for i, (atom_id, symbol, (x, y, z)) in enumerate(zip(ids, symbols, positions)):
        seq = mols[i] if mols is not None else "1"
        loop.add_row(
            [
                "HETATM",
                str(atom_id),
                gemmi.cif.quote(symbol),
                gemmi.cif.quote(f"{symbol}{atom_id}"),
                _RESIDUE_NAME,
                _CHAIN_ID,
                seq,
                f"{x:.4f}",
                f"{y:.4f}",
                f"{z:.4f}",
                "1.0",
                "0.0",
                seq,
                _CHAIN_ID,
                "1",
            ]
        )

    return doc


def write_structure(
    frame: Frame,
    output_path: str | Path,
    fmt: str = "xyz",
    elements: Mapping[int, str] | None = None,
) -> None:
    """
    Write a frame as a structure file.

    Args:
        frame: Dump frame.
        output_path: Output file path.
        fmt: "xyz" or "cif".
        elements: Optional atom type to element symbol mapping.
    """
    if fmt not in VALID_STRUCTURE_FORMATS:
        formats = ", ".join(sorted(VALID_STRUCTURE_FORMATS))
        raise ValueError(f"Unknown structure format: {fmt}. Use one of: {formats}")

    if fmt == "cif":
        frame_to_mmcif(frame, elements).write_file(str(output_path))
    else:
        Path(output_path).write_text(frame_to_xyz(frame, elements))
    logger.debug(f"Wrote timestep {frame.timestep} to {output_path} ({fmt})")

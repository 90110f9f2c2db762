"""Shared fixtures: small LAMMPS data files and dumps written to tmp_path."""

from __future__ import annotations

from pathlib import Path

import pytest


def make_data_text(
    n_atoms: int,
    bonds: list[tuple[int, int]],
    mols: list[int] | None = None,
    types: list[int] | None = None,
    angles: list[tuple[int, int, int]] | None = None,
    style: str = "full",
    velocities: bool = False,
) -> str:
    """Render a LAMMPS data file with atoms placed along x."""
    mols = mols or [1] * n_atoms
    angles = angles or []
    types = types or [1 + (i % 2) for i in range(n_atoms)]

    lines = [
        "LAMMPS data file for tests",
        "",
        f"{n_atoms} atoms",
        f"{len(bonds)} bonds",
        f"{len(angles)} angles",
        "2 atom types",
        "1 bond types",
        "1 angle types",
        "",
        "0.0 20.0 xlo xhi",
        "0.0 10.0 ylo yhi",
        "0.0 10.0 zlo zhi",
        "",
        "Masses",
        "",
        "1 12.011",
        "2 1.008",
        "",
        "Pair Coeffs # lj/cut",
        "",
        "1 0.1 3.4",
        "2 0.02 2.5",
        "",
        f"Atoms # {style}",
        "",
    ]
    for i in range(n_atoms):
        atom_id = i + 1
        xyz = f"{float(atom_id)} 1.0 1.0"
        if style == "full":
            lines.append(f"{atom_id} {mols[i]} {types[i]} 0.0 {xyz} 0 0 0")
        elif style == "molecular":
            lines.append(f"{atom_id} {mols[i]} {types[i]} {xyz}")
        elif style == "atomic":
            lines.append(f"{atom_id} {types[i]} {xyz}")

    if velocities:
        lines.extend(["", "Velocities", ""])
        lines.extend(f"{i + 1} 0.{i + 1} 0.0 0.0" for i in range(n_atoms))

    if bonds:
        lines.extend(["", "Bonds", ""])
        lines.extend(f"{k} 1 {a} {b}" for k, (a, b) in enumerate(bonds, start=1))
    if angles:
        lines.extend(["", "Angles", ""])
        lines.extend(f"{k} 1 {a} {b} {c}" for k, (a, b, c) in enumerate(angles, start=1))

    return "\n".join(lines) + "\n"


def make_dump_text(timesteps: list[int], n_atoms: int = 3, columns: str = "id type x y z") -> str:
    """Render a dump with one frame per timestep; atoms are written in reverse id order."""
    lines: list[str] = []
    for step in timesteps:
        lines.extend(
            [
                "ITEM: TIMESTEP",
                str(step),
                "ITEM: NUMBER OF ATOMS",
                str(n_atoms),
                "ITEM: BOX BOUNDS pp pp pp",
                "0.0 10.0",
                "0.0 10.0",
                "0.0 10.0",
                f"ITEM: ATOMS {columns}",
            ]
        )
        for atom_id in range(n_atoms, 0, -1):
            type_ = 1 + (atom_id - 1) % 2
            if columns == "id type xs ys zs":
                lines.append(f"{atom_id} {type_} 0.{atom_id} 0.5 0.5")
            elif columns == "id mol type x y z":
                lines.append(f"{atom_id} 1 {type_} {atom_id}.0 {step / 100} 0.0")
            else:
                lines.append(f"{atom_id} {type_} {atom_id}.0 {step / 100} 0.0")
    return "\n".join(lines) + "\n"


@pytest.fixture
def chain_data(tmp_path: Path) -> Path:
    """Six atoms: chain 1-2-3-4 with two angles, and a separate pair 5-6."""
    path = tmp_path / "chain.data"
    path.write_text(
        make_data_text(
            6,
            bonds=[(1, 2), (2, 3), (3, 4), (5, 6)],
            mols=[1, 1, 1, 1, 2, 2],
            angles=[(1, 2, 3), (2, 3, 4)],
            velocities=True,
        )
    )
    return path


@pytest.fixture
def before_data(tmp_path: Path) -> Path:
    """Three dimers before a condensation: 1-2, 3-4, 5-6."""
    path = tmp_path / "before.data"
    path.write_text(make_data_text(6, bonds=[(1, 2), (3, 4), (5, 6)], mols=[1, 1, 2, 2, 3, 3]))
    return path


@pytest.fixture
def after_data(tmp_path: Path) -> Path:
    """The same atoms after dimers 1 and 2 bonded through 2-3; mol column is stale."""
    path = tmp_path / "after.data"
    path.write_text(
        make_data_text(6, bonds=[(1, 2), (3, 4), (5, 6), (2, 3)], mols=[1, 1, 2, 2, 3, 3])
    )
    return path


@pytest.fixture
def dump_file(tmp_path: Path) -> Path:
    """Dump with frames at timesteps 0, 100, 200, 300, 400."""
    path = tmp_path / "traj.dump"
    path.write_text(make_dump_text([0, 100, 200, 300, 400]))
    return path

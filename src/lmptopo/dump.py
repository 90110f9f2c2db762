"""LAMMPS text dump reader.

A dump is a sequence of frames, each made of ``ITEM:`` blocks::

    ITEM: TIMESTEP
    100
    ITEM: NUMBER OF ATOMS
    2
    ITEM: BOX BOUNDS pp pp pp
    0.0 10.0
    0.0 10.0
    0.0 10.0
    ITEM: ATOMS id type x y z
    1 1 0.5 0.5 0.5
    2 1 1.5 0.5 0.5

Frames are read lazily so long trajectories never have to fit in memory.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from lmptopo.errors import DumpFormatError

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

# Coordinate column triplets, in order of preference
_COORD_COLUMNS = (("x", "y", "z"), ("xu", "yu", "zu"))
_SCALED_COLUMNS = ("xs", "ys", "zs")


@dataclass
class Frame:
    """A single dump snapshot."""

    timestep: int
    box_bounds: list[tuple[float, float]]
    columns: tuple[str, ...]
    rows: list[tuple[str, ...]]
    boundary: tuple[str, ...] = ("pp", "pp", "pp")
    tilt: tuple[float, float, float] | None = None
    lines: list[str] = field(default_factory=list, repr=False)

    @property
    def n_atoms(self) -> int:
        return len(self.rows)

    def column(self, name: str) -> list[str]:
        """Raw values of one per-atom column."""
        if name not in self.columns:
            raise DumpFormatError(
                f"Timestep {self.timestep} has no '{name}' column "
                f"(columns: {' '.join(self.columns)})"
            )
        idx = self.columns.index(name)
        return [row[idx] for row in self.rows]

    def sorted_rows(self) -> list[tuple[str, ...]]:
        """Rows ordered by atom id when an id column is present."""
        if "id" not in self.columns:
            return list(self.rows)
        idx = self.columns.index("id")
        return sorted(self.rows, key=lambda row: int(row[idx]))

    def positions(
        self,
        rows: list[tuple[str, ...]] | None = None,
    ) -> list[tuple[float, float, float]]:
        """
        Cartesian coordinates of each row.

        Uses x/y/z, then unwrapped xu/yu/zu, then scaled xs/ys/zs columns.
        Scaled coordinates are only supported for orthogonal boxes.
        """
        rows = self.rows if rows is None else rows
        for names in _COORD_COLUMNS:
            if all(name in self.columns for name in names):
                idx = [self.columns.index(name) for name in names]
                return [(float(r[idx[0]]), float(r[idx[1]]), float(r[idx[2]])) for r in rows]

        if all(name in self.columns for name in _SCALED_COLUMNS):
            if self.tilt is not None:
                raise DumpFormatError(
                    f"Timestep {self.timestep}: scaled coordinates in a triclinic box "
                    "are not supported"
                )
            ix, iy, iz = (self.columns.index(name) for name in _SCALED_COLUMNS)
            (xlo, xhi), (ylo, yhi), (zlo, zhi) = self.box_bounds
            return [
                (
                    xlo + float(r[ix]) * (xhi - xlo),
                    ylo + float(r[iy]) * (yhi - ylo),
                    zlo + float(r[iz]) * (zhi - zlo),
                )
                for r in rows
            ]

        raise DumpFormatError(f"Timestep {self.timestep} has no coordinate columns")


def _next_line(lines: Iterator[tuple[int, str]], path: Path) -> str:
    for _lineno, line in lines:
        if line.strip():
            return line
    raise DumpFormatError(f"{path}: unexpected end of file")


def _read_frame(lines: Iterator[tuple[int, str]], path: Path) -> Frame | None:
    """Read the next frame, or return None at a clean end of file."""
    raw: list[str] = []
    timestep: int | None = None
    n_atoms: int | None = None
    box_bounds: list[tuple[float, float]] = []
    boundary: tuple[str, ...] = ("pp", "pp", "pp")
    tilt: list[float] = []

    def take() -> str:
        line = _next_line(lines, path)
        raw.append(line)
        return line

    for lineno, line in lines:
        if not line.strip():
            continue
        raw.append(line)
        if not line.startswith("ITEM:"):
            raise DumpFormatError(f"{path}:{lineno}: expected 'ITEM:' line, got {line.strip()!r}")

        item = line[len("ITEM:") :].strip()
        try:
            if item == "TIMESTEP":
                timestep = int(take().split()[0])
            elif item == "NUMBER OF ATOMS":
                n_atoms = int(take().split()[0])
            elif item.startswith("BOX BOUNDS"):
                flags = item.split()[2:]
                if flags[:3] == ["xy", "xz", "yz"]:
                    flags = flags[3:]
                boundary = tuple(flags) or boundary
                for _ in range(3):
                    values = [float(v) for v in take().split()]
                    box_bounds.append((values[0], values[1]))
                    if len(values) > 2:
                        tilt.append(values[2])
            elif item.startswith("ATOMS"):
                columns = tuple(item.split()[1:])
                if timestep is None or n_atoms is None:
                    raise DumpFormatError(
                        f"{path}:{lineno}: ATOMS block before TIMESTEP and NUMBER OF ATOMS"
                    )
                rows = []
                for _ in range(n_atoms):
                    row = tuple(take().split())
                    if len(row) != len(columns):
                        raise DumpFormatError(
                            f"{path}: timestep {timestep}: expected {len(columns)} values "
                            f"per atom, got {len(row)}"
                        )
                    rows.append(row)
                return Frame(
                    timestep=timestep,
                    box_bounds=box_bounds,
                    columns=columns,
                    rows=rows,
                    boundary=boundary,
                    tilt=(tilt[0], tilt[1], tilt[2]) if len(tilt) == 3 else None,
                    lines=raw,
                )
            else:
                # Single-value items such as UNITS or TIME
                take()
        except DumpFormatError:
            raise
        except (ValueError, IndexError) as e:
            raise DumpFormatError(f"{path}:{lineno}: cannot parse ITEM: {item}: {e}") from None

    if raw:
        raise DumpFormatError(f"{path}: truncated frame at end of file")
    return None


def iter_frames(path: str | Path) -> Iterator[Frame]:
    """
    Iterate over the frames of a dump file.

    Args:
        path: Path to a LAMMPS text dump.

    Yields:
        Frame objects in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        DumpFormatError: If the file is not a well-formed dump.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    if not path.is_file():
        raise DumpFormatError(f"Input path is not a file: {path}")

    with path.open() as handle:
        lines = enumerate(handle, start=1)
        while True:
            frame = _read_frame(lines, path)
            if frame is None:
                return
            logger.debug(f"Read timestep {frame.timestep} ({frame.n_atoms} atoms) from {path}")
            yield frame


def list_timesteps(path: str | Path) -> list[int]:
    """Timesteps of every frame in a dump, in file order."""
    return [frame.timestep for frame in iter_frames(path)]


def read_frame(path: str | Path, timestep: int | None = None) -> Frame:
    """
    Read a single frame.

    Args:
        path: Path to a LAMMPS text dump.
        timestep: Timestep to look for. If None, the first frame is returned.

    Raises:
        DumpFormatError: If the dump is empty or the timestep is not present.
    """
    for frame in iter_frames(path):
        if timestep is None or frame.timestep == timestep:
            return frame
    if timestep is None:
        raise DumpFormatError(f"No frames in {path}")
    raise DumpFormatError(f"Timestep {timestep} not found in {path}")


def extract_frames(
    path: str | Path,
    output_path: str | Path,
    start: int | None = None,
    stop: int | None = None,
    every: int = 1,
) -> list[int]:
    """
    Copy a subset of frames into a new dump, e.g. for an animation.

    Frames with start <= timestep <= stop are selected, then every n-th of
    those is kept (starting with the first). Frames are copied verbatim.

    The output is written to a temporary file next to it and moved into place
    once every frame has been read, so a malformed input leaves no partial
    output and output_path may be the input itself.

    Args:
        path: Input dump.
        output_path: Output dump.
        start: Lowest timestep to keep (inclusive). None means no lower bound.
        stop: Highest timestep to keep (inclusive). None means no upper bound.
        every: Keep one frame out of every this many selected frames.

    Returns:
        Timesteps of the frames written.
    """
    if every < 1:
        raise ValueError(f"every must be a positive integer, got {every}")

    output_path = Path(output_path)
    fd, tmp_name = tempfile.mkstemp(
        dir=output_path.parent, prefix=f".{output_path.name}.", suffix=".tmp"
    )
    tmp_path = Path(tmp_name)

    written: list[int] = []
    selected = 0
    try:
        with os.fdopen(fd, "w") as out:
            for frame in iter_frames(path):
                if start is not None and frame.timestep < start:
                    continue
                if stop is not None and frame.timestep > stop:
                    continue
                if selected % every == 0:
                    out.writelines(
                        line if line.endswith("\n") else f"{line}\n" for line in frame.lines
                    )
                    written.append(frame.timestep)
                selected += 1
        tmp_path.replace(output_path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise

    logger.debug(f"Extracted {len(written)} frame(s) from {path} to {output_path}")
    return written

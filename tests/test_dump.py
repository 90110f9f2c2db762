"""Tests for lmptopo.dump module."""

from pathlib import Path

import pytest
from conftest import make_dump_text

from lmptopo.dump import extract_frames, iter_frames, list_timesteps, read_frame
from lmptopo.errors import DumpFormatError


class TestIterFrames:
    """Tests for frame iteration and seeking."""

    def test_file_not_found(self) -> None:
        """Raises FileNotFoundError for non-existent file."""
        with pytest.raises(FileNotFoundError):
            list(iter_frames("nonexistent.dump"))

    def test_reads_all_frames(self, dump_file: Path) -> None:
        """Every frame is yielded in order."""
        assert list_timesteps(dump_file) == [0, 100, 200, 300, 400]

    def test_frame_contents(self, dump_file: Path) -> None:
        """Header items and per-atom rows are parsed."""
        frame = read_frame(dump_file)
        assert frame.timestep == 0
        assert frame.n_atoms == 3
        assert frame.columns == ("id", "type", "x", "y", "z")
        assert frame.box_bounds == [(0.0, 10.0), (0.0, 10.0), (0.0, 10.0)]
        assert frame.boundary == ("pp", "pp", "pp")
        assert frame.tilt is None
        assert frame.column("id") == ["3", "2", "1"]

    def test_read_frame_by_timestep(self, dump_file: Path) -> None:
        """A specific timestep can be selected."""
        frame = read_frame(dump_file, timestep=300)
        assert frame.timestep == 300
        assert frame.positions()[0] == (3.0, 3.0, 0.0)

    def test_missing_timestep(self, dump_file: Path) -> None:
        """Asking for an absent timestep raises DumpFormatError."""
        with pytest.raises(DumpFormatError, match="Timestep 150 not found"):
            read_frame(dump_file, timestep=150)

    def test_sorted_rows(self, dump_file: Path) -> None:
        """sorted_rows orders atoms by id."""
        frame = read_frame(dump_file)
        assert [row[0] for row in frame.sorted_rows()] == ["1", "2", "3"]

    def test_scaled_coordinates(self, tmp_path: Path) -> None:
        """xs/ys/zs are converted with the box bounds."""
        path = tmp_path / "scaled.dump"
        path.write_text(make_dump_text([0], n_atoms=2, columns="id type xs ys zs"))
        frame = read_frame(path)
        assert frame.positions(frame.sorted_rows()) == [(1.0, 5.0, 5.0), (2.0, 5.0, 5.0)]

    def test_triclinic_box(self, tmp_path: Path) -> None:
        """Tilt factors and boundary flags are read from a triclinic header."""
        path = tmp_path / "tri.dump"
        path.write_text(
            "ITEM: TIMESTEP\n5\nITEM: NUMBER OF ATOMS\n1\n"
            "ITEM: BOX BOUNDS xy xz yz pp pp ff\n"
            "0.0 10.0 1.0\n0.0 10.0 0.0\n0.0 10.0 0.0\n"
            "ITEM: ATOMS id type x y z\n1 1 0.5 0.5 0.5\n"
        )
        frame = read_frame(path)
        assert frame.tilt == (1.0, 0.0, 0.0)
        assert frame.boundary == ("pp", "pp", "ff")

    def test_optional_items_skipped(self, tmp_path: Path) -> None:
        """UNITS and TIME items before TIMESTEP are tolerated."""
        path = tmp_path / "units.dump"
        path.write_text("ITEM: UNITS\nreal\nITEM: TIME\n0.5\n" + make_dump_text([10], n_atoms=1))
        assert read_frame(path).timestep == 10

    def test_truncated_frame(self, tmp_path: Path) -> None:
        """A frame cut off mid-way raises DumpFormatError."""
        path = tmp_path / "cut.dump"
        text = make_dump_text([0, 100])
        path.write_text(text[: text.rindex("\n2 ")])
        with pytest.raises(DumpFormatError, match="end of file"):
            list(iter_frames(path))

    def test_missing_coordinates(self, tmp_path: Path) -> None:
        """positions() fails clearly without coordinate columns."""
        path = tmp_path / "nocoords.dump"
        path.write_text(
            "ITEM: TIMESTEP\n0\nITEM: NUMBER OF ATOMS\n1\nITEM: BOX BOUNDS pp pp pp\n"
            "0 1\n0 1\n0 1\nITEM: ATOMS id type\n1 1\n"
        )
        with pytest.raises(DumpFormatError, match="no coordinate columns"):
            read_frame(path).positions()

    def test_garbage(self, tmp_path: Path) -> None:
        """Files that are not dumps are rejected."""
        path = tmp_path / "garbage.dump"
        path.write_text("hello world\n")
        with pytest.raises(DumpFormatError, match="expected 'ITEM:'"):
            list(iter_frames(path))


class TestExtractFrames:
    """Tests for extract_frames function."""

    def test_all_frames(self, dump_file: Path, tmp_path: Path) -> None:
        """Without bounds every frame is copied verbatim."""
        out = tmp_path / "copy.dump"
        assert extract_frames(dump_file, out) == [0, 100, 200, 300, 400]
        assert out.read_text() == dump_file.read_text()

    def test_bounds_and_stride(self, dump_file: Path, tmp_path: Path) -> None:
        """start/stop bound the timesteps, every thins the selection."""
        out = tmp_path / "anim.dump"
        written = extract_frames(dump_file, out, start=100, stop=400, every=2)
        assert written == [100, 300]
        assert list_timesteps(out) == [100, 300]

    def test_invalid_stride(self, dump_file: Path, tmp_path: Path) -> None:
        """every must be positive."""
        with pytest.raises(ValueError, match="positive"):
            extract_frames(dump_file, tmp_path / "x.dump", every=0)

    def test_output_may_be_input(self, tmp_path: Path) -> None:
        """Thinning a dump in place keeps the selected frames."""
        path = tmp_path / "traj.dump"
        path.write_text(make_dump_text([0, 100, 200]))
        assert extract_frames(path, path, every=2) == [0, 200]
        assert list_timesteps(path) == [0, 200]
        assert [p.name for p in tmp_path.iterdir()] == ["traj.dump"]

    def test_truncated_input_leaves_no_output(self, tmp_path: Path) -> None:
        """A malformed frame aborts without writing a partial dump."""
        path = tmp_path / "cut.dump"
        text = make_dump_text([0, 100, 200, 300])
        path.write_text(text[: text.rindex("2 2 2.0")])
        out = tmp_path / "anim.dump"
        with pytest.raises(DumpFormatError):
            extract_frames(path, out)
        assert not out.exists()
        assert sorted(p.name for p in tmp_path.iterdir()) == ["cut.dump"]

    def test_existing_output_kept_on_error(self, tmp_path: Path) -> None:
        """An earlier output file survives a failed extraction."""
        path = tmp_path / "cut.dump"
        text = make_dump_text([0, 100])
        path.write_text(text[: text.rindex("1 1 1.0")])
        out = tmp_path / "anim.dump"
        out.write_text("previous\n")
        with pytest.raises(DumpFormatError):
            extract_frames(path, out)
        assert out.read_text() == "previous\n"

"""Tests for lmptopo.convert module."""

from pathlib import Path

import gemmi
import pytest
from conftest import make_dump_text

from lmptopo.convert import frame_to_xyz, write_structure
from lmptopo.dump import read_frame


class TestFrameToXyz:
    """Tests for XYZ conversion."""

    def test_layout(self, dump_file: Path) -> None:
        """Atom count, comment line, then one sorted line per atom."""
        lines = frame_to_xyz(read_frame(dump_file, 100)).splitlines()
        assert lines[0] == "3"
        assert lines[1] == "Timestep 100"
        assert lines[2].split() == ["1", "1.000000", "1.000000", "0.000000"]
        assert len(lines) == 5

    def test_element_mapping(self, dump_file: Path) -> None:
        """Atom types are replaced by element symbols when given."""
        text = frame_to_xyz(read_frame(dump_file), {1: "C", 2: "H"})
        symbols = [line.split()[0] for line in text.splitlines()[2:]]
        assert symbols == ["C", "H", "C"]

    def test_element_column(self, tmp_path: Path) -> None:
        """A dump element column is used when no mapping is given."""
        path = tmp_path / "el.dump"
        path.write_text(
            "ITEM: TIMESTEP\n0\nITEM: NUMBER OF ATOMS\n1\nITEM: BOX BOUNDS pp pp pp\n"
            "0 1\n0 1\n0 1\nITEM: ATOMS id element x y z\n1 O 0.1 0.2 0.3\n"
        )
        assert frame_to_xyz(read_frame(path)).splitlines()[2].split()[0] == "O"


class TestWriteStructure:
    """Tests for write_structure function."""

    def test_writes_xyz(self, dump_file: Path, tmp_path: Path) -> None:
        """xyz format writes plain text."""
        out = tmp_path / "frame.xyz"
        write_structure(read_frame(dump_file), out, "xyz")
        assert out.read_text().startswith("3\nTimestep 0\n")

    def test_writes_mmcif(self, tmp_path: Path) -> None:
        """cif format writes an mmCIF that gemmi reads back."""
        dump = tmp_path / "mol.dump"
        dump.write_text(make_dump_text([200], columns="id mol type x y z"))
        out = tmp_path / "frame.cif"

        write_structure(read_frame(dump), out, "cif", {1: "C", 2: "H"})

        block = gemmi.cif.read(str(out)).sole_block()
        assert block.name == "timestep_200"
        assert list(block.find_values("_atom_site.id")) == ["1", "2", "3"]
        assert list(block.find_values("_atom_site.type_symbol")) == ["C", "H", "C"]
        assert float(block.find_value("_cell.length_a")) == pytest.approx(10.0)
        assert float(block.find_values("_atom_site.Cartn_x")[2]) == pytest.approx(3.0)
        assert list(block.find_values("_atom_site.label_seq_id")) == ["1", "1", "1"]

    def test_unknown_format(self, dump_file: Path, tmp_path: Path) -> None:
        """Unsupported formats raise ValueError."""
        with pytest.raises(ValueError, match="Unknown structure format"):
            write_structure(read_frame(dump_file), tmp_path / "x.pdb", "pdb")

"""
lmptopo - Post-process LAMMPS data files and trajectory dumps.

The core of this package rebuilds molecules from bond connectivity:
- molecule_of: Connected component of the bond graph, numbered 1..N
  in order of each molecule's lowest atom id (0 = unbonded atom)
- correspondence: For each molecule, the molecules of an earlier snapshot
  that its atoms came from

Example:
    >>> from lmptopo import reconstruct_topology
    >>> result = reconstruct_topology([(2, 3)], 4, {1: 10, 2: 10, 3: 20, 4: 20})
    >>> result.correspondence
    OrderedDict([(1, (10, 20))])

File-based example:
    >>> from lmptopo import compare_molecules
    >>> result = compare_molecules("before.data", "after.data")
    >>> for mol, priors in result.correspondence.items():
    ...     print(f"{mol}: {priors}")
"""

from lmptopo.convert import frame_to_mmcif, frame_to_xyz, write_structure
from lmptopo.datafile import (
    AtomRecord,
    DataFile,
    TopologyRecord,
    count_atom_types,
    read_data,
    remove_atom_types,
    remove_atoms,
    write_data,
)
from lmptopo.dump import Frame, extract_frames, iter_frames, list_timesteps, read_frame
from lmptopo.errors import (
    DataFileError,
    DumpFormatError,
    InconsistentAtomCount,
    MalformedTopology,
    TopologyError,
)
from lmptopo.formatters import (
    correspondence_to_csv,
    correspondence_to_json,
    correspondence_to_table,
    correspondence_to_tree,
    correspondence_to_tsv,
    to_csv,
    to_json,
    to_table,
    to_tsv,
)
from lmptopo.graph import (
    NO_MOLECULE,
    Partition,
    TopologyResult,
    build_correspondence,
    build_partition,
    canonicalize,
    reconstruct_topology,
)
from lmptopo.labels import AtomLabel, assign_labels, guess_element
from lmptopo.topology import assign_molecule_id, compare_molecules

__version__ = "0.1.0"
__all__ = [
    # Core functions
    "reconstruct_topology",
    "build_partition",
    "canonicalize",
    "build_correspondence",
    "Partition",
    "TopologyResult",
    "NO_MOLECULE",
    # Data file workflows
    "read_data",
    "write_data",
    "count_atom_types",
    "remove_atoms",
    "remove_atom_types",
    "assign_molecule_id",
    "compare_molecules",
    "assign_labels",
    "guess_element",
    # Trajectory
    "iter_frames",
    "read_frame",
    "list_timesteps",
    "extract_frames",
    "frame_to_xyz",
    "frame_to_mmcif",
    "write_structure",
    # Data classes
    "AtomRecord",
    "TopologyRecord",
    "DataFile",
    "Frame",
    "AtomLabel",
    # Errors
    "TopologyError",
    "MalformedTopology",
    "InconsistentAtomCount",
    "DataFileError",
    "DumpFormatError",
    # Output formatters
    "to_json",
    "to_csv",
    "to_tsv",
    "to_table",
    "correspondence_to_json",
    "correspondence_to_csv",
    "correspondence_to_tsv",
    "correspondence_to_table",
    "correspondence_to_tree",
    # Metadata
    "__version__",
]

"""Command-line interface for lmptopo."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from lmptopo import __version__
from lmptopo.convert import write_structure
from lmptopo.datafile import (
    ATOM_STYLE_COLUMNS,
    count_atom_types,
    read_data,
    remove_atom_types,
    remove_atoms,
    write_data,
)
from lmptopo.dump import extract_frames, list_timesteps, read_frame
from lmptopo.formatters import (
    write_correspondence_output,
    write_counts_output,
    write_labels_output,
    write_output,
)
from lmptopo.labels import assign_labels, elements_by_type
from lmptopo.topology import assign_molecule_id, compare_molecules

app = typer.Typer(
    name="lmptopo",
    help="Post-process LAMMPS data files and trajectory dumps.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


class OutputFormat(str, Enum):
    """Report format options."""

    json = "json"
    csv = "csv"
    tsv = "tsv"
    table = "table"


class CompareFormat(str, Enum):
    """Correspondence report format options."""

    json = "json"
    csv = "csv"
    tsv = "tsv"
    table = "table"
    tree = "tree"


class MolidFormat(str, Enum):
    """molid output format options."""

    data = "data"
    json = "json"
    csv = "csv"
    tsv = "tsv"
    table = "table"


class StructureFormat(str, Enum):
    """Structure file format options."""

    xyz = "xyz"
    cif = "cif"


AtomStyleOption = Annotated[
    str | None,
    typer.Option(
        "--atom-style",
        "-a",
        envvar="LMPTOPO_ATOM_STYLE",
        help=(
            "Atom style used when the Atoms section header has no style comment. "
            f"Options: {', '.join(ATOM_STYLE_COLUMNS)}"
        ),
    ),
]
DataFileArgument = Annotated[
    Path,
    typer.Argument(help="Input LAMMPS data file", exists=True, dir_okay=False),
]
DumpFileArgument = Annotated[
    Path,
    typer.Argument(help="Input LAMMPS dump file", exists=True, dir_okay=False),
]
ReportOutputArgument = Annotated[
    str,
    typer.Argument(help="Output file (default: '-' for stdout)"),
]


def _parse_ids(value: str) -> list[int]:
    """Parse '1,2,5-7' into [1, 2, 5, 6, 7]."""
    ids: list[int] = []
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            lo, hi = part.split("-", 1)
            ids.extend(range(int(lo), int(hi) + 1))
        else:
            ids.append(int(part))
    return ids


def _fail(message: object) -> typer.Exit:
    err_console.print(f"[red]Error:[/red] {message}")
    return typer.Exit(1)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"lmptopo {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-V", callback=version_callback, is_eager=True),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug messages"),
    ] = False,
) -> None:
    """Post-process LAMMPS data files and trajectory dumps."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.command()
def count(
    input_file: DataFileArgument,
    output_file: ReportOutputArgument = "-",
    fmt: Annotated[OutputFormat, typer.Option("--format", "-f", help="Output format")] = (
        OutputFormat.table
    ),
    atom_style: AtomStyleOption = None,
) -> None:
    """Count atoms per atom type."""
    try:
        counts = count_atom_types(read_data(input_file, atom_style))
        write_counts_output(counts, output_file, fmt.value)
    except (ValueError, FileNotFoundError) as e:
        raise _fail(e) from None


@app.command()
def remove(
    input_file: DataFileArgument,
    output_file: Annotated[
        Path | None,
        typer.Argument(help="Output data file (default: <input>_removed.data)"),
    ] = None,
    atoms: Annotated[
        str | None,
        typer.Option("--atoms", help="Atom ids to remove, e.g. '1,2,10-20'"),
    ] = None,
    types: Annotated[
        str | None,
        typer.Option("--types", help="Atom types to remove, e.g. '3,4'"),
    ] = None,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress status messages"),
    ] = False,
    atom_style: AtomStyleOption = None,
) -> None:
    """Remove atoms and repair the bonds, angles, dihedrals and impropers."""
    if atoms is None and types is None:
        raise _fail("Specify --atoms and/or --types")

    if output_file is None:
        output_file = input_file.with_stem(f"{input_file.stem}_removed")

    try:
        data = read_data(input_file, atom_style)
        n_before = len(data.atoms)
        # Atom ids refer to the input numbering, so they go first
        if atoms is not None:
            data = remove_atoms(data, _parse_ids(atoms))
        if types is not None:
            data = remove_atom_types(data, _parse_ids(types))
        write_data(data, output_file)
    except (ValueError, FileNotFoundError) as e:
        raise _fail(e) from None

    if not quiet:
        console.print(f"[green]Wrote[/green] {output_file}")
        console.print(
            f"Removed [cyan]{n_before - len(data.atoms)}[/cyan] atom(s), "
            f"[cyan]{len(data.atoms)}[/cyan] remaining"
        )


@app.command()
def label(
    input_file: DataFileArgument,
    output_file: ReportOutputArgument = "-",
    fmt: Annotated[OutputFormat, typer.Option("--format", "-f", help="Output format")] = (
        OutputFormat.table
    ),
    atom_style: AtomStyleOption = None,
) -> None:
    """Label atoms with their element and number of bonds."""
    try:
        labels = assign_labels(read_data(input_file, atom_style))
        write_labels_output(labels, output_file, fmt.value)
    except (ValueError, FileNotFoundError) as e:
        raise _fail(e) from None


@app.command()
def convert(
    input_file: DumpFileArgument,
    output_file: Annotated[
        Path | None,
        typer.Argument(help="Output structure file (default: <input>_<timestep>.<format>)"),
    ] = None,
    fmt: Annotated[
        StructureFormat, typer.Option("--format", "-f", help="Structure format")
    ] = StructureFormat.xyz,
    timestep: Annotated[
        int | None,
        typer.Option("--timestep", "-t", help="Timestep to convert (default: first frame)"),
    ] = None,
    data_file: Annotated[
        Path | None,
        typer.Option(
            "--data",
            "-d",
            help="Data file whose Masses give element symbols per atom type",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress status messages"),
    ] = False,
    atom_style: AtomStyleOption = None,
) -> None:
    """Convert one trajectory frame to a structure file."""
    try:
        frame = read_frame(input_file, timestep)
        elements = None
        if data_file is not None:
            elements = elements_by_type(read_data(data_file, atom_style))
        if output_file is None:
            output_file = input_file.with_name(
                f"{input_file.stem}_{frame.timestep}.{fmt.value}"
            )
        write_structure(frame, output_file, fmt.value, elements)
    except (ValueError, FileNotFoundError) as e:
        raise _fail(e) from None

    if not quiet:
        console.print(f"[green]Wrote[/green] {output_file}")
        console.print(
            f"Timestep [cyan]{frame.timestep}[/cyan] with [cyan]{frame.n_atoms}[/cyan] atom(s)"
        )


@app.command()
def frames(
    input_file: DumpFileArgument,
    output_file: Annotated[
        Path | None,
        typer.Argument(help="Output dump file (omit with --list)"),
    ] = None,
    start: Annotated[
        int | None, typer.Option("--start", help="First timestep to keep")
    ] = None,
    stop: Annotated[int | None, typer.Option("--stop", help="Last timestep to keep")] = None,
    every: Annotated[
        int, typer.Option("--every", "-n", min=1, help="Keep every n-th selected frame")
    ] = 1,
    list_only: Annotated[
        bool,
        typer.Option("--list", "-l", help="Only list the timesteps in the dump"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress status messages"),
    ] = False,
) -> None:
    """Extract animation frames from a trajectory dump."""
    try:
        if list_only:
            for step in list_timesteps(input_file):
                console.print(step)
            return
        if output_file is None:
            raise _fail("Output file is required unless --list is given")
        written = extract_frames(input_file, output_file, start, stop, every)
    except (ValueError, FileNotFoundError) as e:
        raise _fail(e) from None

    if not quiet:
        console.print(f"[green]Wrote[/green] {output_file}")
        console.print(f"Extracted [cyan]{len(written)}[/cyan] frame(s)")


@app.command()
def molid(
    input_file: DataFileArgument,
    output_file: Annotated[
        str | None,
        typer.Argument(help="Output file (default: <input>_molid.data, use '-' for stdout)"),
    ] = None,
    fmt: Annotated[
        MolidFormat, typer.Option("--format", "-f", help="Output format")
    ] = MolidFormat.data,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress status messages (useful with stdout output)",
        ),
    ] = False,
    atom_style: AtomStyleOption = None,
) -> None:
    """Assign molecule IDs to a data file based on its bonds."""
    is_stdout = output_file == "-"
    if output_file is None:
        ext = input_file.suffix if fmt == MolidFormat.data else f".{fmt.value}"
        output_path: Path | str = input_file.with_stem(f"{input_file.stem}_molid").with_suffix(
            ext or ".data"
        )
    else:
        output_path = "-" if is_stdout else Path(output_file)

    if fmt == MolidFormat.data and is_stdout:
        raise _fail("Data file format cannot be written to stdout")

    try:
        if fmt == MolidFormat.data:
            result = assign_molecule_id(input_file, output_path, atom_style)
        else:
            result = assign_molecule_id(input_file, None, atom_style)
            write_output(result.molecule_of, output_path, fmt.value)
    except (ValueError, FileNotFoundError) as e:
        raise _fail(e) from None

    if not quiet and not is_stdout:
        console.print(f"[green]Wrote[/green] {output_path}")
        console.print(
            f"Assigned [cyan]{result.n_molecules}[/cyan] molecule_id(s) "
            f"to [cyan]{len(result.molecule_of)}[/cyan] atom(s)"
        )


@app.command()
def compare(
    before_file: DataFileArgument,
    after_file: Annotated[
        Path,
        typer.Argument(
            help="Data file written after the bonding event", exists=True, dir_okay=False
        ),
    ],
    output_file: ReportOutputArgument = "-",
    fmt: Annotated[CompareFormat, typer.Option("--format", "-f", help="Output format")] = (
        CompareFormat.table
    ),
    atom_style: AtomStyleOption = None,
) -> None:
    """Relate molecules after a bonding event to the molecules before it."""
    try:
        result = compare_molecules(before_file, after_file, atom_style)
        write_correspondence_output(result, output_file, fmt.value)
    except (ValueError, FileNotFoundError) as e:
        raise _fail(e) from None

    if output_file != "-":
        merged = sum(1 for priors in result.correspondence.values() if len(priors) > 1)
        console.print(f"[green]Wrote[/green] {output_file}")
        console.print(
            f"[cyan]{result.n_molecules}[/cyan] molecule(s) after the event, "
            f"[cyan]{merged}[/cyan] formed from several prior molecules"
        )


if __name__ == "__main__":
    app()

"""Output formatters for molecule mappings, correspondence tables and counts."""

from __future__ import annotations

import csv
import json
import sys
from io import StringIO
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections import OrderedDict
    from collections.abc import Callable, Mapping

    from lmptopo.graph import TopologyResult
    from lmptopo.labels import AtomLabel

_MAPPING_HEADERS = ["atom_id", "molecule_id"]
_CORRESPONDENCE_HEADERS = ["molecule_id", "n_atoms", "prior_molecule_ids"]
_COUNT_HEADERS = ["atom_type", "count"]
_LABEL_HEADERS = ["atom_id", "atom_type", "element", "n_bonds", "label"]


def _delimited(headers: list[str], rows: list[list[object]], delimiter: str = ",") -> str:
    output = StringIO()
    writer = csv.writer(output, delimiter=delimiter, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return output.getvalue()


def _table(headers: list[str], rows: list[list[object]]) -> str:
    """Left-aligned columns separated by two spaces, with a rule under the header."""
    cells = [[str(value) for value in row] for row in rows]
    widths = [len(h) for h in headers]
    for row in cells:
        widths = [max(w, len(value)) for w, value in zip(widths, row)]

    fmt_str = "  ".join(f"{{:<{w}}}" for w in widths)
    lines = [fmt_str.format(*headers), "-" * (sum(widths) + 2 * (len(widths) - 1))]
    lines.extend(fmt_str.format(*row).rstrip() for row in cells)
    return "\n".join(lines)


# Atom -> molecule mapping


def to_json(mapping: OrderedDict[int, int], indent: int = 2) -> str:
    """Convert mapping to JSON string."""
    return json.dumps({str(atom): mol for atom, mol in mapping.items()}, indent=indent)


def to_csv(mapping: OrderedDict[int, int]) -> str:
    """Convert mapping to CSV string."""
    return _delimited(_MAPPING_HEADERS, [[atom, mol] for atom, mol in mapping.items()])


def to_tsv(mapping: OrderedDict[int, int]) -> str:
    """Convert mapping to TSV string."""
    return _delimited(_MAPPING_HEADERS, [[atom, mol] for atom, mol in mapping.items()], "\t")


def to_table(mapping: OrderedDict[int, int]) -> str:
    """Convert mapping to human-readable table string."""
    return _table(_MAPPING_HEADERS, [[atom, mol] for atom, mol in mapping.items()])


# Final molecule -> prior molecules


def _correspondence_rows(result: TopologyResult) -> list[list[object]]:
    sizes: dict[int, int] = {}
    for mol in result.molecule_of.values():
        sizes[mol] = sizes.get(mol, 0) + 1
    return [
        [mol, sizes.get(mol, 0), " ".join(str(p) for p in priors)]
        for mol, priors in result.correspondence.items()
    ]


def correspondence_to_json(result: TopologyResult, indent: int = 2) -> str:
    """Convert correspondence table to JSON, keyed by molecule ID."""
    data = {str(mol): list(priors) for mol, priors in result.correspondence.items()}
    return json.dumps(data, indent=indent)


def correspondence_to_csv(result: TopologyResult) -> str:
    """Convert correspondence table to CSV (prior IDs space-separated)."""
    return _delimited(_CORRESPONDENCE_HEADERS, _correspondence_rows(result))


def correspondence_to_tsv(result: TopologyResult) -> str:
    """Convert correspondence table to TSV (prior IDs space-separated)."""
    return _delimited(_CORRESPONDENCE_HEADERS, _correspondence_rows(result), "\t")


def correspondence_to_table(result: TopologyResult) -> str:
    """Convert correspondence table to human-readable table string."""
    return _table(_CORRESPONDENCE_HEADERS, _correspondence_rows(result))


def _correspondence_tree(result: TopologyResult):
    from rich.tree import Tree

    root = Tree("[bold]Molecules[/bold]")
    for mol, n_atoms, _priors in _correspondence_rows(result):
        priors = result.correspondence[mol]
        style = "bold magenta" if len(priors) > 1 else "bold cyan"
        branch = root.add(f"[{style}]molecule {mol}[/{style}] [dim]({n_atoms} atoms)[/dim]")
        for prior in priors:
            branch.add(f"[yellow]prior molecule {prior}[/yellow]")
    return root


def correspondence_to_tree(result: TopologyResult) -> str:
    """Convert correspondence table to a hierarchical tree string.

    Shows the relationship: molecule after the event → molecules before it
    """
    from rich.console import Console

    console = Console(force_terminal=False, no_color=True, width=120)
    with console.capture() as capture:
        console.print(_correspondence_tree(result))
    return capture.get()


def print_correspondence_tree(result: TopologyResult) -> None:
    """Print hierarchical tree directly to console with colors."""
    from rich.console import Console

    Console().print(_correspondence_tree(result))


# Atom type counts and labels


def counts_to_json(counts: Mapping[int, int], indent: int = 2) -> str:
    """Convert atom type counts to JSON string."""
    return json.dumps({str(t): n for t, n in counts.items()}, indent=indent)


def counts_to_csv(counts: Mapping[int, int]) -> str:
    """Convert atom type counts to CSV string."""
    return _delimited(_COUNT_HEADERS, [[t, n] for t, n in counts.items()])


def counts_to_tsv(counts: Mapping[int, int]) -> str:
    """Convert atom type counts to TSV string."""
    return _delimited(_COUNT_HEADERS, [[t, n] for t, n in counts.items()], "\t")


def counts_to_table(counts: Mapping[int, int]) -> str:
    """Convert atom type counts to a table with a total line."""
    table = _table(_COUNT_HEADERS, [[t, n] for t, n in counts.items()])
    return f"{table}\ntotal: {sum(counts.values())}"


def _label_rows(labels: Mapping[int, AtomLabel]) -> list[list[object]]:
    return [
        [info.atom_id, info.atom_type, info.element, info.n_bonds, info.label]
        for info in labels.values()
    ]


def labels_to_json(labels: Mapping[int, AtomLabel], indent: int = 2) -> str:
    """Convert atom labels to JSON, keyed by atom id."""
    data = {
        str(info.atom_id): {
            "atom_type": info.atom_type,
            "element": info.element,
            "n_bonds": info.n_bonds,
            "label": info.label,
        }
        for info in labels.values()
    }
    return json.dumps(data, indent=indent)


def labels_to_csv(labels: Mapping[int, AtomLabel]) -> str:
    """Convert atom labels to CSV string."""
    return _delimited(_LABEL_HEADERS, _label_rows(labels))


def labels_to_tsv(labels: Mapping[int, AtomLabel]) -> str:
    """Convert atom labels to TSV string."""
    return _delimited(_LABEL_HEADERS, _label_rows(labels), "\t")


def labels_to_table(labels: Mapping[int, AtomLabel]) -> str:
    """Convert atom labels to human-readable table string."""
    return _table(_LABEL_HEADERS, _label_rows(labels))


def _emit(content: str, output_path: str | Path) -> None:
    if str(output_path) == "-":
        sys.stdout.write(content)
        if not content.endswith("\n"):
            sys.stdout.write("\n")
    else:
        Path(output_path).write_text(content)


def _write(
    value: object,
    output_path: str | Path | None,
    fmt: str,
    formatters: Mapping[str, Callable[..., str]],
) -> None:
    if output_path is None:
        return
    if fmt not in formatters:
        raise ValueError(f"Unknown format: {fmt}. Use one of: {', '.join(formatters)}")
    _emit(formatters[fmt](value), output_path)


def write_output(
    mapping: OrderedDict[int, int],
    output_path: str | Path | None,
    fmt: str = "table",
) -> None:
    """
    Write mapping to file or stdout in specified format.

    Args:
        mapping: The atom to molecule mapping to write.
        output_path: Path to write to, or "-" for stdout, or None for no output.
        fmt: Output format ("json", "csv", "tsv", "table").
    """
    formatters = {"json": to_json, "csv": to_csv, "tsv": to_tsv, "table": to_table}
    _write(mapping, output_path, fmt, formatters)


def write_correspondence_output(
    result: TopologyResult,
    output_path: str | Path | None,
    fmt: str = "table",
) -> None:
    """
    Write correspondence table to file or stdout in specified format.

    Args:
        result: The TopologyResult to write.
        output_path: Path to write to, or "-" for stdout, or None for no output.
        fmt: Output format ("json", "csv", "tsv", "table", "tree").
    """
    # Tree format is special - print directly for colors
    if fmt == "tree" and output_path is not None and str(output_path) == "-":
        print_correspondence_tree(result)
        return

    formatters = {
        "json": correspondence_to_json,
        "csv": correspondence_to_csv,
        "tsv": correspondence_to_tsv,
        "table": correspondence_to_table,
        "tree": correspondence_to_tree,
    }
    _write(result, output_path, fmt, formatters)


def write_counts_output(
    counts: Mapping[int, int],
    output_path: str | Path | None,
    fmt: str = "table",
) -> None:
    """Write atom type counts to file or stdout in specified format."""
    formatters = {
        "json": counts_to_json,
        "csv": counts_to_csv,
        "tsv": counts_to_tsv,
        "table": counts_to_table,
    }
    _write(counts, output_path, fmt, formatters)


def write_labels_output(
    labels: Mapping[int, AtomLabel],
    output_path: str | Path | None,
    fmt: str = "table",
) -> None:
    """Write atom labels to file or stdout in specified format."""
    formatters = {
        "json": labels_to_json,
        "csv": labels_to_csv,
        "tsv": labels_to_tsv,
        "table": labels_to_table,
    }
    _write(labels, output_path, fmt, formatters)

"""Command-line tool for computing intensity fields over mesh nodes.

The field-compute CLI executes a field script to build the pressure-field
model, evaluates intensity at every node of a node file in batches, and
writes the result to HDF5.
"""

import hashlib
import logging
import sys
import time
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from strata_field import __version__
from strata_field.core.config import BatchConfig
from strata_field.core.errors import EvaluationFailed, InvalidConfig
from strata_field.core.evaluator import evaluate
from strata_field.io.hdf5 import IntensityResultWriter
from strata_field.io.nodes import read_nodes

from .executor import (
    RestrictedImportError,
    execute_field_script,
    script_settings,
    validate_field_object,
)
from .progress import IntensityProgress, format_time, print_run_info

console = Console()


def _configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("strata_field")
    logger.handlers.clear()
    handler = RichHandler(console=console, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@click.command()
@click.argument("script", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("nodes", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Output file path (default: intensity_{hash}.h5)",
)
@click.option("--step-size", "-s", type=int, help="Points per field evaluation call")
@click.option("--threads", "-t", type=int, help="Worker threads for the field model")
@click.option(
    "--scale",
    type=float,
    default=1.0,
    show_default=True,
    help="Coordinate scale applied to nodes (e.g. 0.01 for a mesh in cm)",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output with debug info")
@click.option("--dry-run", is_flag=True, help="Validate inputs without evaluating")
@click.version_option(version=__version__, prog_name="field-compute")
def main(
    script: Path,
    nodes: Path,
    output: Path | None,
    step_size: int | None,
    threads: int | None,
    scale: float,
    verbose: bool,
    dry_run: bool,
):
    """Compute acoustic intensity at mesh nodes.

    SCRIPT is a Python file that defines a 'field' variable holding the
    pressure-field model. It may also define 'correction' (LensCorrection),
    'step_size' and 'threads'; command-line options take precedence.

    NODES is a node file (LS-DYNA *NODE keyword, .npy, .npz or .csv).

    Example script:

    \b
        from strata_field import LensCorrection, LinearArray
        field = LinearArray(num_elements=64, center_frequency=5e6, focus=(0, 0, 0.02))
        correction = LensCorrection.along_z(-0.001)
        step_size = 5000
    """
    sys.exit(run(script, nodes, output, step_size, threads, scale, verbose, dry_run))


def run(
    script: Path,
    nodes: Path,
    output: Path | None,
    step_size: int | None,
    threads: int | None,
    scale: float,
    verbose: bool,
    dry_run: bool,
) -> int:
    """Body of the field-compute command; returns the process exit code."""
    _configure_logging(verbose)

    try:
        console.print(f"\n[bold]Field Intensity:[/bold] {script.name}", style="blue")
        console.print("─" * 60)

        script_content = script.read_text()
        script_hash = hashlib.sha256(script_content.encode()).hexdigest()

        if verbose:
            console.print(f"Script hash: {script_hash}")

        if output is None:
            output = Path(f"intensity_{script_hash[:8]}.h5")

        console.print("Loading field model...", style="dim")
        try:
            namespace = execute_field_script(script, script_content, verbose=verbose)
        except RestrictedImportError as e:
            console.print(f"\n[bold red]Security Error:[/bold red] {e}")
            return 1
        except SyntaxError as e:
            console.print("\n[bold red]Syntax Error in script:[/bold red]")
            console.print(f"  {e}")
            return 1

        try:
            field = validate_field_object(namespace)
            correction, config = script_settings(namespace)
        except (ValueError, TypeError) as e:
            console.print(f"\n[bold red]Error:[/bold red] {e}")
            return 1

        try:
            config = BatchConfig(
                step_size=step_size if step_size is not None else config.step_size,
                threads=threads if threads is not None else config.threads,
            )
        except InvalidConfig as e:
            console.print(f"\n[bold red]Invalid configuration:[/bold red] {e}")
            return 1

        console.print("Reading nodes...", style="dim")
        try:
            node_set = read_nodes(nodes)
        except ValueError as e:
            console.print(f"\n[bold red]Node file error:[/bold red] {e}")
            return 1
        if scale != 1.0:
            node_set = node_set.scaled(scale)

        field_metadata = field.describe() if callable(getattr(field, "describe", None)) else None
        print_run_info(console, len(node_set), config, correction, field_metadata, output)

        if dry_run:
            console.print("[yellow]Dry run - intensity not computed[/yellow]")
            return 0

        start_time = time.time()
        with IntensityProgress(console, len(node_set)) as progress:
            try:
                result = evaluate(node_set, correction, config, field, progress=progress.update)
            except KeyboardInterrupt:
                progress.finish()
                console.print("\n[yellow]Interrupted by user[/yellow]")
                return 130
            except (EvaluationFailed, InvalidConfig) as e:
                progress.finish()
                console.print(f"\n[bold red]Evaluation Error:[/bold red] {e}")
                if verbose:
                    console.print_exception()
                return 1

        with IntensityResultWriter(output) as writer:
            writer.write(
                result,
                config,
                correction,
                field_metadata=field_metadata,
                script_content=script_content,
                node_file=str(nodes),
                scale=scale,
            )

        runtime = time.time() - start_time

        console.print("─" * 60)
        console.print("✓ [bold green]Intensity complete![/bold green]")
        if output.exists():
            console.print(f"  Output: {output} ({output.stat().st_size / 1e6:.1f} MB)")
        else:
            console.print(f"  Output: {output}")
        console.print(f"  Runtime: {format_time(runtime)}")
        console.print(f"  Field calls: {result.num_batches}")
        peak_id, peak_value = result.peak()
        console.print(f"  Peak: node {peak_id} ({peak_value:.4g})")

        return 0

    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            console.print_exception()
        return 1


if __name__ == "__main__":
    main()

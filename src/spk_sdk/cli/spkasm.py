"""
spkasm - SPK Assembler Command-Line Interface
=============================================

This module implements the command-line interface for the SPK assembler.

Usage Examples
--------------
Basic assembly:
    $ spkasm hello.spk

With output file:
    $ spkasm hello.spk -o hello.spkb

With listing:
    $ spkasm hello.spk -l hello.lst

Reject unknown mnemonics:
    $ spkasm --strict hello.spk

Verbose mode:
    $ spkasm -v hello.spk
"""

from pathlib import Path
from typing import Optional
import logging

import click

from spk_sdk import __version__
from spk_sdk.assembler import Assembler
from spk_sdk.cli.errors import handle_cli_exception


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output bytecode file (default: input.spkb)",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file",
)
@click.option(
    "-d", "--disassemble",
    is_flag=True,
    help="Print the listing to stdout after assembling",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Treat unknown mnemonics as errors instead of skipping them",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="spkasm")
def main(
    input_file: Path,
    output: Optional[Path],
    listing: Optional[Path],
    disassemble: bool,
    strict: bool,
    verbose: bool,
) -> None:
    """
    Assemble SPK source code into bytecode.

    INPUT_FILE is the assembly source file (.spk) to assemble.

    The program must declare its build target with '#build sps'.

    \b
    Examples:
        spkasm hello.spk              # Outputs hello.spkb
        spkasm hello.spk -o out.spkb  # Specify output file
        spkasm hello.spk -l out.lst   # Also write a listing
    """
    setup_logging(verbose)
    output_file = output if output is not None else input_file.with_suffix(".spkb")

    asm = Assembler(strict=strict)

    try:
        bytecode = asm.assemble_file(input_file)

        asm.write_bytecode(output_file)
        if verbose:
            click.echo(f"Wrote {len(bytecode.code)} bytes to {output_file}")

        if listing:
            asm.write_listing(listing)
            if verbose:
                click.echo(f"Wrote listing to {listing}")

        if disassemble:
            click.echo(asm.get_listing())

        if verbose:
            click.echo(
                f"Assembly complete: {len(bytecode.code)} bytes, "
                f"{len(bytecode.constants)} constants, "
                f"{len(asm.get_labels())} labels"
            )

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()

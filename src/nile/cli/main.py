"""Main CLI entry point for Nile."""

import logging
from pathlib import Path

import typer

from nile.cli.commands import keygen_command, thumbprint_command

app = typer.Typer(
    name="nile",
    help="Nile - key material for signed and encrypted peer messaging",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


@app.command("keygen")
def keygen(
    alg: str = typer.Option("ES512", "-a", "--alg", help="ES256, ES384 or ES512"),
    output_dir: Path = typer.Option(Path("."), "-o", "--output-dir", help="Directory for the key pair file"),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Generate a key pair file."""
    keygen_command(alg, output_dir, json_flag)


@app.command("thumbprint")
def thumbprint(
    key_pair_path: Path = typer.Argument(..., help="Key pair file written by keygen"),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the thumbprint of a key pair file's public key."""
    thumbprint_command(key_pair_path, json_flag)


if __name__ == "__main__":
    app()

"""Generate a key pair file for a Nile participant."""

from pathlib import Path

import typer
from rich.console import Console

from nile.cli.output import format_error, format_key_value, format_success, json_output
from nile.config import save_key_pair
from nile.jwk import calculate_thumbprint, generate_key_pair
from nile.types import KeyPairFile, SigningAlgorithm

console = Console()


def keygen_command(alg: str, output_dir: Path, json_flag: bool) -> None:
    """Generate an EC key pair tagged with ``alg`` and save it as JSON.

    Writes keypair_<epoch_ms>.json into ``output_dir`` holding the
    ``privateKey`` and ``publicKey`` JWKs. The file is chmod 600.
    """
    try:
        algorithm = SigningAlgorithm(alg.strip().upper())
    except ValueError:
        format_error(
            console,
            f"Unsupported algorithm: {alg}",
            hint=f"Choose one of {', '.join(a.value for a in SigningAlgorithm)}",
        )
        raise typer.Exit(code=2)

    private_key, public_key = generate_key_pair(algorithm.value)
    try:
        path = save_key_pair(KeyPairFile(privateKey=private_key, publicKey=public_key), output_dir)
    except OSError as e:
        format_error(console, f"Could not write key pair: {e}")
        raise typer.Exit(code=1)

    thumbprint = calculate_thumbprint(public_key)
    if json_flag:
        json_output(
            console,
            {"status": "generated", "alg": algorithm.value, "thumbprint": thumbprint, "path": path},
        )
    else:
        format_success(console, "Key pair generated and saved")
        format_key_value(console, {"Algorithm": algorithm.value, "Thumbprint": thumbprint, "Path": path})

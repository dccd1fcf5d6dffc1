"""Show the thumbprint of a key pair file's public key."""

from pathlib import Path

import typer
from rich.console import Console

from nile.cli.output import format_error, format_key_value, json_output
from nile.config import load_key_pair
from nile.exceptions import ConfigError, KeyParseError
from nile.jwk import calculate_thumbprint, parse_jwk, signing_algorithm

console = Console()


def thumbprint_command(key_pair_path: Path, json_flag: bool) -> None:
    try:
        key_pair = load_key_pair(key_pair_path)
        public_key = key_pair["publicKey"]
        parse_jwk(public_key)
        thumbprint = calculate_thumbprint(public_key)
        alg = signing_algorithm(public_key)
    except (ConfigError, KeyParseError) as e:
        format_error(console, str(e))
        raise typer.Exit(code=1)

    if json_flag:
        json_output(console, {"alg": alg, "thumbprint": thumbprint, "path": key_pair_path})
    else:
        format_key_value(console, {"Algorithm": alg, "Thumbprint": thumbprint})

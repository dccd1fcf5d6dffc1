"""Command-line tools for Nile key material."""

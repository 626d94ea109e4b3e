"""Command-line entrypoints (python -m sorinb.scripts.<name>)."""

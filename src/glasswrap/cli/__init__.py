"""Command-line interface for glasswrap.

This module provides the CLI using Typer with rich output for
user-friendly feedback and progress reporting.

Key features:
- Mask export with a progress bar for parallel band conversion
- Flat mockup and 3D scene stills
- UV mapping and product dimension diagnostics
- Detailed error reporting
"""

from glasswrap.cli.app import cli, main

__all__ = ["cli", "main"]

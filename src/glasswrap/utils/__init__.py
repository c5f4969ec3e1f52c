"""Utility functions for glasswrap.

This module provides utility functions including:

- Logging setup and configuration
- Render statistics and progress reporting helpers
"""

from glasswrap.utils.logging import (
    RenderLogger,
    RenderStats,
    configure_logging,
)

__all__ = [
    "RenderLogger",
    "RenderStats",
    "configure_logging",
]

"""Configuration management for glasswrap.

This module provides configuration management using Pydantic models.
Configuration can be provided via CLI arguments or defaults.

Key classes:
- EngravingConfig: Design-to-engraving conversion settings
- ArcConfig: Strip rasterizer defaults
- SceneConfig: 3D cylinder preview settings
- CompositorConfig: Flat 2D mockup settings
- ProcessingConfig: Batch export settings
- LoggingConfig: Logging settings
- GlassWrapSettings: Main application settings
"""

from glasswrap.config.settings import (
    ArcConfig,
    BlendMode,
    CompositorConfig,
    EngravingConfig,
    EngravingMode,
    GlassWrapSettings,
    LayerStyle,
    LoggingConfig,
    ProcessingConfig,
    SceneConfig,
    UVConfig,
    get_default_settings,
)

__all__ = [
    "ArcConfig",
    "BlendMode",
    "CompositorConfig",
    "EngravingConfig",
    "EngravingMode",
    "GlassWrapSettings",
    "LayerStyle",
    "LoggingConfig",
    "ProcessingConfig",
    "SceneConfig",
    "UVConfig",
    "get_default_settings",
]

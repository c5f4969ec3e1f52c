"""GlassWrap - Preview engraved designs on cylindrical glassware.

GlassWrap turns a flat design image into an engraving mask and shows how it
looks on a glass: wrapped around a simulated 3D cylinder, or painted onto a
photograph of the glass with the arc/perspective strip rasterizer.

Example:
    $ glasswrap mask design.png
    $ glasswrap preview design.png --glass rocks-white.jpg

This will create design-mask.png and design-preview.png next to the input.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]

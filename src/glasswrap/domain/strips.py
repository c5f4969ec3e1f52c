"""Strip types for the arc/perspective rasterizer.

A StripPlan tiles a destination region with equal-height horizontal strips.
Strips never overlap and leave no gaps: strip ``i`` ends exactly where strip
``i + 1`` starts. Adjacent strips are never blended; more, thinner strips is
how the rasterizer stays smooth.
"""

from collections.abc import Iterator
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Strip:
    """One horizontal slice of the destination region.

    Attributes:
        index: Position of the strip, top to bottom
        progress: Normalized vertical position in [0, 1]
        source_y: First source row sampled by this strip
        source_height: Source rows sampled by this strip
        dest_y: Destination top edge (before arc/squash)
        height: Destination height (uniform across the plan)
        width: Interpolated destination width
        arc_offset: Vertical displacement from the arc profile
        squashed_height: Height after vertical squash
        squash_offset: Offset that keeps the squashed strip centred
    """

    index: int
    progress: float
    source_y: float
    source_height: float
    dest_y: float
    height: float
    width: float
    arc_offset: float
    squashed_height: float
    squash_offset: float

    @property
    def dest_bottom(self) -> float:
        return self.dest_y + self.height

    @property
    def draw_y(self) -> float:
        """Top edge actually painted, after arc displacement and squash."""
        return self.dest_y + self.arc_offset + self.squash_offset


@dataclass(frozen=True, slots=True)
class StripPlan:
    """An ordered, non-overlapping tiling of a destination region.

    Attributes:
        strips: Strips ordered top to bottom
        region_y: Destination top edge of the region
        region_height: Destination height covered by the plan
        strip_height: Uniform destination strip height
        source_strip_height: Uniform source rows per strip
    """

    strips: tuple[Strip, ...]
    region_y: float
    region_height: float
    strip_height: float
    source_strip_height: float

    def __len__(self) -> int:
        return len(self.strips)

    def __iter__(self) -> Iterator[Strip]:
        return iter(self.strips)

    def __getitem__(self, index: int) -> Strip:
        return self.strips[index]

    @property
    def total_height(self) -> float:
        """Sum of all strip heights."""
        return sum(strip.height for strip in self.strips)

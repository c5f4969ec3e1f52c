"""Exception hierarchy for glasswrap."""


class GlassWrapError(Exception):
    """Base exception for all glasswrap errors."""

    pass


class ImageError(GlassWrapError):
    """Errors related to image loading or saving."""

    pass


class ImageLoadError(ImageError):
    """Error loading or decoding an image."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load image '{path}': {reason}")


class ImageSaveError(ImageError):
    """Error encoding or saving an image."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to save image '{path}': {reason}")


class GeometryError(GlassWrapError):
    """Errors in geometric or raster invariants."""

    pass


class InvalidGeometryError(GeometryError):
    """Non-positive radius/distance, too few strips, or out-of-range params."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class MaskInvariantError(GeometryError):
    """An engraving mask contains partial alpha or non-black engraved pixels."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ProductError(GlassWrapError):
    """Errors related to the product geometry table."""

    pass


class UnknownProductError(ProductError):
    """Requested glass product is not in the geometry table."""

    def __init__(self, product: str) -> None:
        self.product = product
        super().__init__(f"Invalid glass type: {product}")


class RenderError(GlassWrapError):
    """Errors raised while rendering a preview."""

    pass


class RenderCancelledError(RenderError):
    """A render pass was superseded by a newer parameter set."""

    def __init__(self, generation: int) -> None:
        self.generation = generation
        super().__init__(f"Render generation {generation} was superseded")


class ResourceDisposedError(RenderError):
    """A scene resource was used after it was disposed."""

    def __init__(self, resource: str) -> None:
        self.resource = resource
        super().__init__(f"{resource} has already been disposed")


class SceneStateError(RenderError):
    """Operation not allowed in the scene's current lifecycle state."""

    def __init__(self, state: str, action: str) -> None:
        self.state = state
        self.action = action
        super().__init__(f"Cannot {action} while scene is {state}")

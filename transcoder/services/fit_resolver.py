"""Resize fit resolution.

Both dimensions given: the explicit fit wins, otherwise ``default_fit``
applies. The service runs with ``inside`` (shrink to fit, never crop) unless
``TRANSCODER_DEFAULT_FIT`` selects another mode such as ``cover``.

One dimension given: the other follows the aspect ratio and the fit is always
``inside``; ``cover``/``fill`` have no meaning with a free dimension.

Neither given: no resize step.
"""

from transcoder.models.image import ResizeFit, ResizeGeometry

DEFAULT_FIT = ResizeFit.INSIDE


def resolve_fit(
    width: int | None = None,
    height: int | None = None,
    explicit_fit: ResizeFit | str | None = None,
    default_fit: ResizeFit | str = DEFAULT_FIT,
) -> ResizeGeometry | None:
    width = width if width and width > 0 else None
    height = height if height and height > 0 else None

    if width is None and height is None:
        return None

    if width is not None and height is not None:
        fit = ResizeFit.parse(explicit_fit) or ResizeFit.parse(default_fit) or DEFAULT_FIT
        return ResizeGeometry(width=width, height=height, fit=fit)

    return ResizeGeometry(width=width, height=height, fit=ResizeFit.INSIDE)

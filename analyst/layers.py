import logging
from typing import Any, Optional, Protocol

from analyst.types import KeyPath

logger = logging.getLogger(__name__)


class TileLayerHandle(Protocol):
    url: str


class TileLayerFactory(Protocol):
    def __call__(self, url: str, **options: Any) -> TileLayerHandle:
        ...


class TileLayer:
    """Minimal tile layer handle, used when no map library is injected.

    Mirrors the part of a map library's tile layer the client relies on: a
    mutable `url` template, the constructor options, and `redraw()`.
    """

    def __init__(self, url: str, **options: Any):
        self.url = url
        self.options = options
        self.redraws = 0

    def redraw(self) -> None:
        self.redraws += 1

    def __repr__(self) -> str:
        return f"TileLayer(url={self.url!r})"


def key_path(key: str, comparison_key: Optional[str] = None) -> KeyPath:
    if comparison_key:
        return f"{comparison_key}/{key}"
    return key


def _flag(value: bool) -> str:
    return "true" if value else "false"


def tile_url(
    base_url: str,
    key: str,
    comparison_key: Optional[str] = None,
    *,
    connectivity_type: str = "AVERAGE",
    time_limit: int = 3600,
    show_points: bool = False,
    show_iso: bool = True,
) -> str:
    """Build the single point tile URL template for a result key.

    The `{z}/{x}/{y}` placeholders are left in place for the map library.
    """
    return (
        f"{base_url}/single/{key_path(key, comparison_key)}/{{z}}/{{x}}/{{y}}.png"
        f"?which={connectivity_type}&timeLimit={time_limit}"
        f"&showPoints={_flag(show_points)}&showIso={_flag(show_iso)}"
    )


def set_layer_url(layer: TileLayerHandle, url: str) -> TileLayerHandle:
    logger.debug("Updating tile layer url to %s", url)
    setter = getattr(layer, "set_url", None)
    if callable(setter):
        setter(url)
    else:
        layer.url = url
        redraw = getattr(layer, "redraw", None)
        if callable(redraw):
            redraw()
    return layer

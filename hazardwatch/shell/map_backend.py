"""Map Backend - Imperative Shell.

The marker reconciler talks to the map only through the MapBackend
protocol. StaticMapBackend is a concrete backend that keeps markers in
memory and renders them onto OpenStreetMap tiles as a PNG snapshot.
"""

import io
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from staticmap import CircleMarker, StaticMap

from hazardwatch.core.formatter import MarkerIcon, PopupContent


logger = logging.getLogger(__name__)


DEFAULT_TILE_URL = "https://tile.openstreetmap.org/{z}/{x}/{y}.png"

ClickCallback = Callable[[], None]
HoverCallback = Callable[[], None]


class MapBackend(Protocol):
    """Operations a map-rendering library must provide.

    Handles returned by create_marker are opaque to callers.
    """

    def create_marker(
        self,
        coordinates: tuple[float, float],
        icon: MarkerIcon,
        popup: PopupContent,
    ) -> Any:
        ...

    def update_marker(
        self,
        handle: Any,
        coordinates: tuple[float, float],
        popup: PopupContent,
        icon: MarkerIcon,
    ) -> None:
        ...

    def remove_marker(self, handle: Any) -> None:
        ...

    def on_marker_click(self, handle: Any, callback: ClickCallback) -> None:
        ...

    def on_marker_hover(
        self,
        handle: Any,
        on_enter: HoverCallback,
        on_leave: HoverCallback,
    ) -> None:
        ...

    def set_popup_open(self, handle: Any, is_open: bool) -> None:
        ...


@dataclass
class MapImageResult:
    """Result of map image generation.

    Attributes:
        success: Whether the image was generated successfully
        image_bytes: PNG image data if successful
        error: Error message if failed
    """
    success: bool
    image_bytes: bytes | None = None
    error: str | None = None


@dataclass
class _Marker:
    """A marker held by StaticMapBackend."""
    coordinates: tuple[float, float]
    icon: MarkerIcon
    popup: PopupContent
    popup_open: bool = False
    on_click: ClickCallback | None = None
    on_enter: HoverCallback | None = None
    on_leave: HoverCallback | None = None
    updates: int = field(default=0)


class StaticMapBackend:
    """In-memory map backend that renders static PNG snapshots.

    Handles are integers. Pointer events can be simulated with click,
    pointer_enter and pointer_leave, which is how tests and non-visual
    front ends drive it.
    """

    def __init__(
        self,
        tile_url: str | None = None,
        width: int = 1024,
        height: int = 512,
    ) -> None:
        """Initialize static map backend.

        Args:
            tile_url: Custom tile URL template. Defaults to OpenStreetMap.
            width: Snapshot width in pixels
            height: Snapshot height in pixels
        """
        self.tile_url = tile_url or DEFAULT_TILE_URL
        self.width = width
        self.height = height
        self.markers: dict[int, _Marker] = {}
        self._handles = itertools.count(1)

    def create_marker(
        self,
        coordinates: tuple[float, float],
        icon: MarkerIcon,
        popup: PopupContent,
    ) -> int:
        handle = next(self._handles)
        self.markers[handle] = _Marker(coordinates=coordinates, icon=icon, popup=popup)
        return handle

    def update_marker(
        self,
        handle: int,
        coordinates: tuple[float, float],
        popup: PopupContent,
        icon: MarkerIcon,
    ) -> None:
        marker = self.markers[handle]
        marker.coordinates = coordinates
        marker.popup = popup
        marker.icon = icon
        marker.updates += 1

    def remove_marker(self, handle: int) -> None:
        self.markers.pop(handle, None)

    def on_marker_click(self, handle: int, callback: ClickCallback) -> None:
        self.markers[handle].on_click = callback

    def on_marker_hover(
        self,
        handle: int,
        on_enter: HoverCallback,
        on_leave: HoverCallback,
    ) -> None:
        marker = self.markers[handle]
        marker.on_enter = on_enter
        marker.on_leave = on_leave

    def set_popup_open(self, handle: int, is_open: bool) -> None:
        self.markers[handle].popup_open = is_open

    def click(self, handle: int) -> None:
        """Simulate a click on a marker."""
        callback = self.markers[handle].on_click
        if callback is not None:
            callback()

    def pointer_enter(self, handle: int) -> None:
        """Simulate the pointer entering a marker."""
        callback = self.markers[handle].on_enter
        if callback is not None:
            callback()

    def pointer_leave(self, handle: int) -> None:
        """Simulate the pointer leaving a marker."""
        callback = self.markers[handle].on_leave
        if callback is not None:
            callback()

    def render(self, zoom: int | None = None) -> MapImageResult:
        """Render all markers onto a static map image.

        This method performs I/O (fetches map tiles from tile server).
        Without markers or a zoom level the whole world is shown.

        Args:
            zoom: Zoom level; None fits the view to the markers

        Returns:
            MapImageResult with PNG bytes or error
        """
        markers = list(self.markers.values())
        logger.info("Rendering map snapshot with %d markers", len(markers))

        try:
            static_map = StaticMap(
                self.width,
                self.height,
                url_template=self.tile_url,
            )

            for marker in markers:
                latitude, longitude = marker.coordinates
                radius = 6 + 2 * int(marker.popup.severity)
                # White ring first so it renders behind the colored dot
                static_map.add_marker(CircleMarker((longitude, latitude), "white", radius + 3))
                static_map.add_marker(CircleMarker((longitude, latitude), marker.icon.color, radius))

            if not markers and zoom is None:
                image = static_map.render(zoom=1, center=(0, 20))
            else:
                image = static_map.render(zoom=zoom)

            buffer = io.BytesIO()
            image.save(buffer, format="PNG")
            image_bytes = buffer.getvalue()

            logger.info("Rendered map snapshot: %d bytes", len(image_bytes))

            return MapImageResult(success=True, image_bytes=image_bytes)

        except Exception as e:
            logger.error("Failed to render map snapshot: %s", str(e))
            return MapImageResult(success=False, error=str(e))

"""Tests for the static map backend.

Uses mocked tile fetching to avoid network calls in tests.
"""

from unittest.mock import MagicMock, patch

from hazardwatch.core.formatter import MarkerIcon, PopupContent
from hazardwatch.shell.map_backend import StaticMapBackend


ICON = MarkerIcon(symbol="🔥", color="#f97316", css_class="hazard-type-fire")
POPUP = PopupContent("Fire", 4, "Somewhere", "2024-06-01 12:00 UTC", "Brush fire")


def fake_static_map(mock_static_map_class):
    mock_map = MagicMock()
    mock_static_map_class.return_value = mock_map
    mock_image = MagicMock()
    mock_map.render.return_value = mock_image

    def save_to_buffer(buffer, format):
        buffer.write(b"PNG_IMAGE_DATA")

    mock_image.save = save_to_buffer
    return mock_map


class TestMarkerOperations:
    """Tests for the in-memory marker table."""

    def test_create_returns_distinct_handles(self):
        backend = StaticMapBackend()
        first = backend.create_marker((1.0, 2.0), ICON, POPUP)
        second = backend.create_marker((3.0, 4.0), ICON, POPUP)
        assert first != second
        assert backend.markers[first].coordinates == (1.0, 2.0)

    def test_update(self):
        backend = StaticMapBackend()
        handle = backend.create_marker((1.0, 2.0), ICON, POPUP)
        backend.update_marker(handle, (5.0, 6.0), POPUP, ICON)
        assert backend.markers[handle].coordinates == (5.0, 6.0)
        assert backend.markers[handle].updates == 1

    def test_remove(self):
        backend = StaticMapBackend()
        handle = backend.create_marker((1.0, 2.0), ICON, POPUP)
        backend.remove_marker(handle)
        assert handle not in backend.markers

    def test_callbacks(self):
        backend = StaticMapBackend()
        handle = backend.create_marker((1.0, 2.0), ICON, POPUP)
        events = []
        backend.on_marker_click(handle, lambda: events.append("click"))
        backend.on_marker_hover(handle, lambda: events.append("enter"), lambda: events.append("leave"))

        backend.pointer_enter(handle)
        backend.click(handle)
        backend.pointer_leave(handle)

        assert events == ["enter", "click", "leave"]

    def test_popup_state(self):
        backend = StaticMapBackend()
        handle = backend.create_marker((1.0, 2.0), ICON, POPUP)
        backend.set_popup_open(handle, True)
        assert backend.markers[handle].popup_open


class TestRender:
    """Tests for StaticMapBackend.render()."""

    @patch("hazardwatch.shell.map_backend.StaticMap")
    def test_render_returns_png_bytes(self, mock_static_map_class):
        mock_map = fake_static_map(mock_static_map_class)
        backend = StaticMapBackend(width=400, height=300)
        backend.create_marker((35.6762, 139.6503), ICON, POPUP)

        result = backend.render()

        assert result.success
        assert result.image_bytes == b"PNG_IMAGE_DATA"
        mock_static_map_class.assert_called_once_with(400, 300, url_template=backend.tile_url)
        # Outline and colored dot per marker
        assert mock_map.add_marker.call_count == 2
        mock_map.render.assert_called_once_with(zoom=None)

    @patch("hazardwatch.shell.map_backend.StaticMap")
    def test_render_empty_map_shows_world(self, mock_static_map_class):
        mock_map = fake_static_map(mock_static_map_class)

        result = StaticMapBackend().render()

        assert result.success
        mock_map.render.assert_called_once_with(zoom=1, center=(0, 20))

    @patch("hazardwatch.shell.map_backend.StaticMap")
    def test_render_failure_reported(self, mock_static_map_class):
        mock_map = fake_static_map(mock_static_map_class)
        mock_map.render.side_effect = RuntimeError("tile server down")

        result = StaticMapBackend().render()

        assert not result.success
        assert result.error == "tile server down"
        assert result.image_bytes is None

    def test_custom_tile_url(self):
        url = "https://tiles.example.com/{z}/{x}/{y}.png"
        assert StaticMapBackend(tile_url=url).tile_url == url

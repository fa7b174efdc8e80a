"""Canvas view-model - pan/zoom transform, independent of graph content."""

from __future__ import annotations

from dataclasses import dataclass

from ..config import settings

MIN_ZOOM = 0.5
MAX_ZOOM = 1.5
PAN_LIMIT = 1000.0
PRIMARY_BUTTON = 0


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass
class CanvasViewModel:
    zoom: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0
    sensitivity: float = settings.zoom_sensitivity
    dragging: bool = False
    _drag_origin: tuple[float, float] = (0.0, 0.0)

    def set_zoom(self, zoom: float) -> float:
        self.zoom = round(_clamp(zoom, MIN_ZOOM, MAX_ZOOM), 4)
        return self.zoom

    def set_pan(self, x: float, y: float) -> None:
        self.pan_x = _clamp(x, -PAN_LIMIT, PAN_LIMIT)
        self.pan_y = _clamp(y, -PAN_LIMIT, PAN_LIMIT)

    def wheel(self, delta_y: float, accelerator: bool) -> float:
        """Zoom on a modified wheel gesture; a plain wheel leaves zoom alone.

        Scrolling up (negative delta) zooms in.
        """
        if not accelerator:
            return self.zoom
        return self.set_zoom(self.zoom - delta_y * self.sensitivity)

    def pointer_down(self, x: float, y: float, button: int = PRIMARY_BUTTON) -> None:
        if button != PRIMARY_BUTTON:
            return
        self.dragging = True
        self._drag_origin = (x - self.pan_x, y - self.pan_y)

    def pointer_move(self, x: float, y: float) -> None:
        if not self.dragging:
            return
        origin_x, origin_y = self._drag_origin
        self.set_pan(x - origin_x, y - origin_y)

    def pointer_up(self) -> None:
        self.dragging = False

    def to_canvas(self, x: float, y: float) -> tuple[float, float]:
        """Screen coordinates to canvas coordinates."""
        return ((x - self.pan_x) / self.zoom, (y - self.pan_y) / self.zoom)

    def css_transform(self) -> str:
        return f"translate({self.pan_x:g}px, {self.pan_y:g}px) scale({self.zoom:g})"

    def reset(self) -> None:
        self.zoom, self.pan_x, self.pan_y = 1.0, 0.0, 0.0
        self.dragging = False

    def to_dict(self) -> dict[str, float | bool | str]:
        return {
            "zoom": self.zoom,
            "pan_x": self.pan_x,
            "pan_y": self.pan_y,
            "dragging": self.dragging,
            "transform": self.css_transform(),
        }

"""Tests for the canvas pan/zoom view-model."""

from __future__ import annotations

from flowbuilder.editor.canvas import MAX_ZOOM, MIN_ZOOM, CanvasViewModel


class TestZoom:
    def test_set_and_clamp(self):
        canvas = CanvasViewModel()
        assert canvas.set_zoom(1.2) == 1.2
        assert canvas.set_zoom(1.6) == MAX_ZOOM
        assert canvas.set_zoom(0.1) == MIN_ZOOM

    def test_wheel_requires_accelerator(self):
        canvas = CanvasViewModel()
        assert canvas.wheel(-200, accelerator=False) == 1.0

    def test_wheel_up_zooms_in(self):
        canvas = CanvasViewModel()
        assert canvas.wheel(-200, accelerator=True) == 1.2

    def test_wheel_has_no_float_drift(self):
        canvas = CanvasViewModel()
        for _ in range(3):
            canvas.wheel(-100, accelerator=True)
        assert canvas.zoom == 1.3

    def test_wheel_clamps(self):
        canvas = CanvasViewModel()
        canvas.wheel(5000, accelerator=True)
        assert canvas.zoom == MIN_ZOOM


class TestPan:
    def test_drag(self):
        canvas = CanvasViewModel()
        canvas.pointer_down(100, 100)
        canvas.pointer_move(150, 80)
        assert (canvas.pan_x, canvas.pan_y) == (50, -20)
        canvas.pointer_up()
        canvas.pointer_move(500, 500)
        assert (canvas.pan_x, canvas.pan_y) == (50, -20)

    def test_drag_continues_from_current_pan(self):
        canvas = CanvasViewModel(pan_x=10, pan_y=10)
        canvas.pointer_down(0, 0)
        canvas.pointer_move(5, 5)
        assert (canvas.pan_x, canvas.pan_y) == (15, 15)

    def test_secondary_button_ignored(self):
        canvas = CanvasViewModel()
        canvas.pointer_down(0, 0, button=2)
        canvas.pointer_move(40, 40)
        assert canvas.dragging is False
        assert (canvas.pan_x, canvas.pan_y) == (0, 0)

    def test_pan_is_clamped(self):
        canvas = CanvasViewModel()
        canvas.set_pan(5000, -5000)
        assert (canvas.pan_x, canvas.pan_y) == (1000, -1000)


def test_transform_and_coordinates():
    canvas = CanvasViewModel()
    canvas.set_pan(20, -10)
    canvas.set_zoom(1.5)
    assert canvas.css_transform() == "translate(20px, -10px) scale(1.5)"
    assert canvas.to_canvas(170, 140) == (100.0, 100.0)
    canvas.reset()
    assert canvas.to_dict()["transform"] == "translate(0px, 0px) scale(1)"

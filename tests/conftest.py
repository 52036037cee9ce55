"""Shared fakes for playback tests."""

from collections import defaultdict

import pytest

from marker_host import LngLat


class RecordingMarker:
    """MarkerHost fake that records every command it receives."""

    def __init__(self, position=(0.0, 0.0), emit_on_move: bool = False):
        self.position = LngLat(*position)
        self.emit_on_move = emit_on_move
        self.calls = []
        self.listeners = defaultdict(list)

    def get_position(self):
        return self.position

    def set_position(self, point):
        self.position = LngLat(float(point[0]), float(point[1]))
        self.calls.append(('set_position', self.position))

    def move_along(self, path, duration, auto_rotation=True):
        self.calls.append(('move_along', [tuple(p) for p in path], duration))
        if self.emit_on_move:
            self.emit(path[0])

    def move_to(self, point, duration, auto_rotation=True):
        self.calls.append(('move_to', tuple(point), duration))

    def pause_move(self):
        self.calls.append(('pause_move',))

    def resume_move(self):
        self.calls.append(('resume_move',))

    def stop_move(self):
        self.calls.append(('stop_move',))

    def on(self, event, callback):
        self.listeners[event].append(callback)

    def off(self, event, callback):
        self.listeners[event].remove(callback)

    def emit(self, position):
        """Simulate a live position update from the host."""
        self.position = LngLat(float(position[0]), float(position[1]))
        for callback in list(self.listeners['moving']):
            callback(self.position)

    def names(self):
        return [call[0] for call in self.calls]

    def last(self, name):
        for call in reversed(self.calls):
            if call[0] == name:
                return call
        return None


class RecordingCamera:
    """CameraHost fake recording set_center calls."""

    def __init__(self, timeline=None):
        self.timeline = timeline
        self.centers = []
        self.live_flags = []

    def set_center(self, position, animate):
        self.centers.append((tuple(position), animate))
        if self.timeline is not None:
            self.live_flags.append(self.timeline.is_live_update)


@pytest.fixture
def marker():
    return RecordingMarker()


@pytest.fixture
def camera():
    return RecordingCamera()


@pytest.fixture
def line_points():
    """Straight 3-point line along lng with total planar length 2."""
    return [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)]

"""Marker and camera host contracts, plus a headless animated marker.

The playback timeline only talks to hosts through the methods declared in
MarkerHost and CameraHost. AnimatedMarker implements MarkerHost without any
rendering: it advances along its commanded path whenever tick() is called and
emits 'moving' events with its live position.
"""

import logging
import math
from collections import defaultdict
from typing import Callable, Iterator, NamedTuple, Protocol

from trajectory_geometry import cumulative_distances, position_from_progress, segment_index_for_progress

logger = logging.getLogger(__name__)


class LngLat(NamedTuple):
    """Live marker position."""
    lng: float
    lat: float


class MarkerHost(Protocol):
    def get_position(self) -> LngLat: ...

    def set_position(self, point) -> None: ...

    def move_along(self, path, duration: float, auto_rotation: bool = True) -> None: ...

    def move_to(self, point, duration: float, auto_rotation: bool = True) -> None: ...

    def pause_move(self) -> None: ...

    def resume_move(self) -> None: ...

    def stop_move(self) -> None: ...

    def on(self, event: str, callback: Callable) -> None: ...

    def off(self, event: str, callback: Callable) -> None: ...


class CameraHost(Protocol):
    def set_center(self, position, animate: bool) -> None: ...


class _Motion:
    """A single scheduled move along a polyline."""

    def __init__(self, path, duration: float, auto_rotation: bool):
        self.path = [(float(p[0]), float(p[1])) for p in path]
        self.duration = float(duration)
        self.auto_rotation = auto_rotation
        self.elapsed = 0.0
        self.distances, self.total = cumulative_distances(self.path)

    @property
    def finished(self) -> bool:
        return self.elapsed >= self.duration

    def position(self) -> tuple[float, float]:
        if self.duration <= 0:
            return self.path[-1]
        fraction = min(1.0, self.elapsed / self.duration)
        position = position_from_progress(fraction * 100, self.path, self.distances, self.total)
        return position if position is not None else self.path[-1]

    def heading(self) -> float | None:
        """Direction of travel on the active segment in degrees, counter-clockwise from +lng."""
        if self.total == 0 or self.duration <= 0:
            return None
        fraction = min(1.0, self.elapsed / self.duration)
        index = segment_index_for_progress(fraction * 100, self.distances, self.total)
        start, end = self.path[index], self.path[index + 1]
        if start == end:
            return None
        return math.degrees(math.atan2(end[1] - start[1], end[0] - start[0]))

    def remaining_frames(self, frame_ms: float) -> int:
        """Ticks of ``frame_ms`` needed to finish this motion."""
        return max(0, math.ceil((self.duration - self.elapsed) / frame_ms))


class AnimatedMarker:
    """Headless MarkerHost that moves at constant speed along commanded paths."""

    def __init__(self, position=(0.0, 0.0)):
        self._position = LngLat(float(position[0]), float(position[1]))
        self._motion: _Motion | None = None
        self._paused = False
        self._listeners: dict[str, list[Callable]] = defaultdict(list)
        self.heading = 0.0

    # -- MarkerHost ------------------------------------------------------

    def get_position(self) -> LngLat:
        return self._position

    def set_position(self, point) -> None:
        self._position = LngLat(float(point[0]), float(point[1]))
        self._on_position_changed()

    def move_along(self, path, duration: float, auto_rotation: bool = True) -> None:
        if len(path) < 2:
            logger.debug("Ignoring move_along with %d point(s)", len(path))
            return
        if not duration > 0:
            logger.warning("Ignoring move_along with non-positive duration %r", duration)
            return
        self._motion = _Motion(path, duration, auto_rotation)
        self._paused = False
        logger.debug("move_along: %d points over %.1f ms", len(path), duration)

    def move_to(self, point, duration: float, auto_rotation: bool = True) -> None:
        self.move_along([self._position, point], duration, auto_rotation)

    def pause_move(self) -> None:
        if self._motion is not None:
            self._paused = True

    def resume_move(self) -> None:
        self._paused = False

    def stop_move(self) -> None:
        self._motion = None
        self._paused = False

    def on(self, event: str, callback: Callable) -> None:
        self._listeners[event].append(callback)

    def off(self, event: str, callback: Callable) -> None:
        if callback in self._listeners[event]:
            self._listeners[event].remove(callback)

    # -- animation -------------------------------------------------------

    @property
    def is_moving(self) -> bool:
        return self._motion is not None and not self._paused

    @property
    def is_paused(self) -> bool:
        return self._motion is not None and self._paused

    def tick(self, elapsed_ms: float) -> bool:
        """Advance the current motion by ``elapsed_ms``.

        Returns:
            True if the marker moved during this tick.
        """
        if not self.is_moving:
            return False

        motion = self._motion
        motion.elapsed += elapsed_ms
        position = motion.position()
        self._position = LngLat(*position)

        if motion.auto_rotation:
            heading = motion.heading()
            if heading is not None:
                self.heading = heading

        self._on_position_changed()
        self._emit('moving', self._position)

        if motion is self._motion and motion.finished:
            self._motion = None
            self._emit('moveend', self._position)
        return True

    def remaining_frames(self, frame_ms: float) -> int:
        """Ticks of ``frame_ms`` needed to finish the current motion."""
        if self._motion is None:
            return 0
        return self._motion.remaining_frames(frame_ms)

    def frames(self, frame_ms: float = 16.0, max_frames: int | None = None) -> Iterator[LngLat]:
        """Tick until the current motion ends, yielding the position each frame.

        Args:
            frame_ms: Playback time per frame, must be positive
            max_frames: Optional cap; a warning is logged if motion is still running when it is hit
        """
        if not frame_ms > 0:
            raise ValueError(f"frame_ms must be positive, got {frame_ms!r}")

        count = 0
        while max_frames is None or count < max_frames:
            if not self.tick(frame_ms):
                return
            count += 1
            yield self._position

        if self.is_moving:
            logger.warning("Frame limit %d reached with %d frame(s) of motion left",
                           max_frames, self.remaining_frames(frame_ms))

    def _on_position_changed(self) -> None:
        """Hook for rendering subclasses."""

    def _emit(self, event: str, position: LngLat) -> None:
        for callback in list(self._listeners[event]):
            callback(position)

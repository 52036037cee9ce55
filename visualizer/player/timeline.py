"""Trajectory playback timeline with pause/resume, speed control and seeking."""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from numbers import Real

from trajectory_geometry import (
    MIN_DURATION_MS,
    PROGRESS_EPSILON,
    accept_progress,
    cumulative_distances,
    distance,
    get_metric,
    invalid_point_indices,
    path_length,
    position_from_progress,
    progress_from_position,
    remaining_path,
    scaled_duration,
    segment_index_for_progress,
    validate_trajectory,
)

logger = logging.getLogger(__name__)


class PlaybackState(Enum):
    STOPPED = 'stopped'
    PLAYING = 'playing'
    PAUSED = 'paused'


@dataclass
class TimelineOptions:
    """Playback configuration.

    base_duration is the time in ms to traverse the whole trajectory at 1x.
    """
    base_duration: float = 1000.0
    follow_view: bool = True
    metric: str = 'planar'
    min_duration_ms: float = MIN_DURATION_MS
    progress_epsilon: float = PROGRESS_EPSILON
    auto_rotation: bool = True


class TrajectoryTimeline:
    """Animated playback of a trajectory on a marker host with optional camera following.

    Progress is always expressed against the whole trajectory. Whenever motion
    has to restart mid-path (resume after a speed change, speed change while
    playing, play from a non-zero progress) the remaining path is rebuilt from
    the marker's exact position and its duration is scaled by the fraction of
    the total distance left.
    """

    def __init__(self, options: TimelineOptions | None = None):
        self.options = options or TimelineOptions()
        get_metric(self.options.metric)

        self.base_duration = self.options.base_duration
        self.current_duration = self.base_duration
        self.follow_view = self.options.follow_view
        self.state = PlaybackState.STOPPED

        self.camera = None
        self.marker = None
        self.points: list = []
        self.distances = []
        self.total_distance = 0.0

        self.progress = 0.0
        self.current_index = 0
        self.current_position = None

        self.manual_seeking = False
        self.paused_duration: float | None = None
        self._watermark = 0.0
        self._handling_update = False
        self._issuing_motion = False
        self._subscribed = None

    # -- observable state ------------------------------------------------

    @property
    def speed_options(self) -> list[tuple[str, float]]:
        return [
            ('X1', self.base_duration),
            ('X2', self.base_duration / 2),
            ('X4', self.base_duration / 4),
        ]

    @property
    def play_label(self) -> str:
        return {
            PlaybackState.STOPPED: 'Play',
            PlaybackState.PLAYING: 'Pause',
            PlaybackState.PAUSED: 'Resume',
        }[self.state]

    @property
    def follow_label(self) -> str:
        return 'Follow view: on' if self.follow_view else 'Follow view: off'

    @property
    def is_live_update(self) -> bool:
        """True while a live position update from the marker is being applied."""
        return self._handling_update

    # -- setup -----------------------------------------------------------

    def initialize(self, camera, marker, points) -> None:
        """Bind hosts and a trajectory, replacing any previous binding."""
        self.release()

        self.camera = camera
        self.marker = marker
        self.points = list(points)
        self.state = PlaybackState.STOPPED
        self.progress = 0.0
        self.current_index = 0
        self.paused_duration = None
        self._watermark = 0.0
        self.current_position = tuple(self.points[0]) if self.points else None

        if validate_trajectory(self.points):
            self.distances, self.total_distance = cumulative_distances(self.points, self.options.metric)
        else:
            logger.warning("Trajectory has invalid points at indices %s", invalid_point_indices(self.points))
            self.distances, self.total_distance = [], 0.0

        if self.points and marker is not None:
            marker.on('moving', self._on_moving)
            self._subscribed = marker
        logger.debug("Initialized trajectory: %d points, total distance %.6f",
                     len(self.points), self.total_distance)

    def release(self) -> None:
        """Drop the subscription to the marker's position updates."""
        if self._subscribed is not None:
            self._subscribed.off('moving', self._on_moving)
            self._subscribed = None

    def begin_seek(self) -> None:
        self.manual_seeking = True

    def end_seek(self) -> None:
        self.manual_seeking = False

    # -- live updates ----------------------------------------------------

    def _on_moving(self, position) -> None:
        self._handling_update = True
        try:
            lng, lat = float(position[0]), float(position[1])
            self.current_position = (lng, lat)

            if (self.points and not self.manual_seeking and not self._issuing_motion
                    and math.isfinite(lng) and math.isfinite(lat)):
                candidate = progress_from_position(
                    (lng, lat), self.points, self.distances, self.total_distance, self.options.metric,
                )
                self._watermark = accept_progress(candidate, self._watermark, self.options.progress_epsilon)
                self.progress = round(self._watermark, 2)
                if self.progress >= 100:
                    self.state = PlaybackState.STOPPED
                self.current_index = math.floor(self._watermark / 100 * (len(self.points) - 1))

            if self.follow_view and self.camera is not None:
                self.camera.set_center(position, True)
        finally:
            self._handling_update = False

    # -- motion commands -------------------------------------------------

    def _move_along(self, path, duration: float) -> None:
        self._issuing_motion = True
        try:
            logger.debug("move_along: %d points, %.1f ms", len(path), duration)
            self.marker.move_along(path, duration=duration, auto_rotation=self.options.auto_rotation)
        finally:
            self._issuing_motion = False

    def _play_full(self) -> None:
        self._move_along(self.points, scaled_duration(
            self.current_duration, 1, 1, self.options.min_duration_ms,
        ))

    def _restart_from(self, position) -> None:
        """Issue a fresh motion from ``position`` to the end at the current speed."""
        path = remaining_path(position, self.points, self.options.metric)
        remaining = path_length(path, self.options.metric)
        duration = scaled_duration(
            self.current_duration, remaining, self.total_distance, self.options.min_duration_ms,
        )
        self._move_along(path, duration)

    # -- controls --------------------------------------------------------

    def play(self) -> None:
        if len(self.points) < 2 or self.marker is None:
            return

        if not validate_trajectory(self.points):
            logger.warning("Invalid trajectory points at indices %s", invalid_point_indices(self.points))
            self.stop()
            return

        self.state = PlaybackState.PLAYING

        if self.progress >= 100:
            self.progress = 0.0
            self.current_index = 0
            self._watermark = 0.0
            self._play_full()
        elif self.progress > 0:
            position = position_from_progress(self.progress, self.points, self.distances, self.total_distance)
            if position is None:
                self._play_full()
                return
            self.marker.set_position(position)
            self._restart_from(position)
        else:
            self._play_full()

    def pause(self) -> None:
        if self.marker is None or self.state is not PlaybackState.PLAYING:
            return
        self.marker.pause_move()
        self.state = PlaybackState.PAUSED
        self.paused_duration = self.current_duration

    def resume(self) -> None:
        if self.state is not PlaybackState.PAUSED or self.marker is None:
            return

        self.state = PlaybackState.PLAYING
        speed_changed = self.paused_duration is not None and self.paused_duration != self.current_duration

        if speed_changed:
            # resume_move would replay the duration scheduled before the pause
            position = self.marker.get_position()
            self.marker.stop_move()
            self._restart_from(position)
        else:
            self.marker.resume_move()

        self.paused_duration = None

    def stop(self) -> None:
        self.state = PlaybackState.STOPPED
        self.paused_duration = None
        if self.marker is not None:
            self.marker.stop_move()

        if self.points and self.marker is not None:
            self.marker.set_position(self.points[0])
            self.progress = 0.0
            self.current_index = 0
            self.current_position = tuple(self.points[0])
            self._watermark = 0.0

    def toggle_play(self) -> None:
        if not self.points:
            return

        if self.state is PlaybackState.STOPPED:
            self.play()
        elif self.state is PlaybackState.PLAYING:
            self.pause()
        else:
            self.resume()

    def change_duration(self, duration: float) -> None:
        """Set the full-trajectory duration; an in-flight motion is re-paced from where it is."""
        self.current_duration = duration
        logger.debug("Duration set to %s ms", duration)

        if self.state is PlaybackState.PLAYING and self.marker is not None:
            position = self.marker.get_position()
            self.marker.stop_move()
            self._restart_from(position)

    def on_progress_change(self, value: float) -> None:
        """Seek to ``value`` percent of the trajectory."""
        if self.marker is None or not self.points or len(self.distances) != len(self.points):
            return
        if not isinstance(value, Real) or isinstance(value, bool) or not math.isfinite(value):
            logger.warning("Ignoring seek to invalid progress %r", value)
            return

        target = min(100.0, max(0.0, float(value)))
        was_playing = self.state is PlaybackState.PLAYING

        self.marker.stop_move()
        self.progress = target
        self._watermark = target
        self.current_index = math.floor(target / 100 * (len(self.points) - 1))

        # Snaps back to the vertex at the start of the target segment
        index = segment_index_for_progress(target, self.distances, self.total_distance)
        path = self.points[index:]

        if len(path) > 1:
            remaining = self.total_distance * (1 - target / 100)
            duration = scaled_duration(
                self.current_duration, remaining, self.total_distance, self.options.min_duration_ms,
            )
            self._move_along(path, duration)

            if was_playing:
                self.state = PlaybackState.PLAYING
            elif self.state is not PlaybackState.PLAYING:
                self.marker.pause_move()
        else:
            position = position_from_progress(target, self.points, self.distances, self.total_distance)
            if position is None:
                return
            current = self.marker.get_position()
            span = distance(current, position, self.options.metric)
            duration = scaled_duration(
                self.current_duration, span, self.total_distance, self.options.min_duration_ms,
            )
            self._issuing_motion = True
            try:
                self.marker.move_to(position, duration=duration, auto_rotation=self.options.auto_rotation)
            finally:
                self._issuing_motion = False

    def toggle_follow_view(self) -> None:
        self.follow_view = not self.follow_view
        logger.debug(self.follow_label)

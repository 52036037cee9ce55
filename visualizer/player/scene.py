"""PyVista scene that hosts trajectory playback."""

import numpy as np
import pyvista as pv

from marker_host import AnimatedMarker
from timeline import TrajectoryTimeline


class PyVistaMarker(AnimatedMarker):
    """AnimatedMarker that moves a cone actor to follow its position and heading."""

    def __init__(self, actor, position=(0.0, 0.0)):
        self.actor = actor
        super().__init__(position)
        self._on_position_changed()

    def _on_position_changed(self) -> None:
        lng, lat = self.get_position()
        self.actor.position = (lng, lat, 0.0)
        self.actor.orientation = (0.0, 0.0, self.heading)


class PlaybackScene:
    """Map-like view of a trajectory with an animated marker and follow camera."""

    def __init__(self, points, tube_radius: float | None = None, off_screen: bool = False):
        """Initialize playback scene.

        Args:
            points: Trajectory as (lng, lat) pairs
            tube_radius: Radius of the path tube; derived from the trajectory extent if None
            off_screen: Render without opening a window (exports, headless runs)
        """
        self.points = [tuple(p) for p in points]
        self.off_screen = off_screen

        self.positions = self._to_scene_coordinates(self.points)
        extent = float(np.linalg.norm(np.ptp(self.positions, axis=0))) if len(self.positions) else 0.0
        self.tube_radius = tube_radius if tube_radius is not None else max(extent * 0.004, 1e-6)

        self.plotter = None
        self.marker = None
        self.timeline = None
        self._slider = None

    def _to_scene_coordinates(self, points) -> np.ndarray:
        """Place (lng, lat) pairs on the z=0 plane: x = lng, y = lat."""
        positions = np.zeros((len(points), 3))
        if len(points):
            positions[:, :2] = np.asarray(points, dtype=float)
        return positions

    def build(self) -> None:
        """Build the scene: trajectory tube, endpoints and the marker actor."""
        self.plotter = pv.Plotter(off_screen=self.off_screen)
        self.plotter.set_background('#0a0e14')
        self.plotter.add_text('Trajectory Playback', position='upper_left', color='white', font_size=12)

        if len(self.positions) > 1:
            polyline = pv.lines_from_points(self.positions)
            tube = polyline.tube(radius=self.tube_radius, n_sides=12)
            self.plotter.add_mesh(tube, color='#3a86ff', opacity=0.9)

        if len(self.positions) > 0:
            self.plotter.add_mesh(pv.Sphere(radius=self.tube_radius * 2, center=self.positions[0]), color='#00ff00')
            self.plotter.add_mesh(pv.Sphere(radius=self.tube_radius * 2, center=self.positions[-1]), color='#ff0000')

        cone = pv.Cone(
            center=(0.0, 0.0, 0.0),
            direction=(1.0, 0.0, 0.0),
            height=self.tube_radius * 6,
            radius=self.tube_radius * 2.5,
            resolution=24,
        )
        actor = self.plotter.add_mesh(cone, color='#ffd700')
        start = self.points[0] if self.points else (0.0, 0.0)
        self.marker = PyVistaMarker(actor, position=start)

        self.plotter.view_xy()

    def set_center(self, position, animate: bool) -> None:
        """Center the camera on ``position`` keeping the current viewing offset.

        The view jumps to the new center; ``animate`` is accepted for host
        compatibility only.
        """
        camera = self.get_plotter().camera
        fx, fy, fz = camera.focal_point
        px, py, pz = camera.position
        x, y = float(position[0]), float(position[1])

        camera.focal_point = (x, y, fz)
        camera.position = (px + x - fx, py + y - fy, pz)

    def bind_controls(self, timeline: TrajectoryTimeline) -> None:
        """Wire keyboard shortcuts, the progress slider and the HUD to a timeline.

        Keys: space = play/pause/resume, x = stop, c = toggle follow view,
        1/2/3 = X1/X2/X4 speed.
        """
        plotter = self.get_plotter()
        self.timeline = timeline

        plotter.add_key_event('space', timeline.toggle_play)
        plotter.add_key_event('x', timeline.stop)
        plotter.add_key_event('c', timeline.toggle_follow_view)
        for key, (_, duration) in zip(('1', '2', '3'), timeline.speed_options):
            plotter.add_key_event(key, lambda d=duration: timeline.change_duration(d))

        def on_slider(value: float) -> None:
            if timeline.is_live_update:
                return
            timeline.on_progress_change(value)
            timeline.end_seek()

        self._slider = plotter.add_slider_widget(
            on_slider,
            rng=(0.0, 100.0),
            value=timeline.progress,
            title='Progress (%)',
            pointa=(0.25, 0.08),
            pointb=(0.75, 0.08),
            interaction_event='end',
            style='modern',
        )
        self._slider.AddObserver('StartInteractionEvent', lambda *args: timeline.begin_seek())
        self.update_hud()

    def update_hud(self) -> None:
        """Refresh the status text and progress slider from the timeline."""
        if self.timeline is None:
            return
        timeline = self.timeline

        speed = next(
            (label for label, duration in timeline.speed_options if duration == timeline.current_duration),
            f'{timeline.current_duration:.0f} ms',
        )
        status = (
            f'{timeline.play_label} [space]   speed {speed}   '
            f'progress {timeline.progress:6.2f}%   {timeline.follow_label}'
        )
        self.get_plotter().add_text(status, position='lower_left', color='white', font_size=10, name='hud')

        if self._slider is not None and not timeline.manual_seeking:
            self._slider.GetRepresentation().SetValue(timeline.progress)

    def show(self, frame_ms: int = 16) -> None:
        """Display the interactive window and drive the marker from a render timer."""
        plotter = self.get_plotter()

        def on_timer(step) -> None:
            self.marker.tick(frame_ms)
            self.update_hud()
            plotter.render()

        plotter.add_timer_event(max_steps=10_000_000, duration=frame_ms, callback=on_timer)
        plotter.show()

    def get_plotter(self) -> pv.Plotter:
        """Get the PyVista plotter instance."""
        if self.plotter is None:
            raise RuntimeError("Must call build() before get_plotter()")

        return self.plotter

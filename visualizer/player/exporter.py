"""Export utilities for playback screenshots, GIFs and videos."""

from tqdm import tqdm
from scene import PlaybackScene
from timeline import TrajectoryTimeline


class PlaybackExporter:
    """Render a full playback run of a timeline to image files."""

    def __init__(self, scene: PlaybackScene, timeline: TrajectoryTimeline):
        """Initialize exporter.

        Args:
            scene: Built PlaybackScene whose marker the timeline is bound to
            timeline: Initialized TrajectoryTimeline
        """
        self.scene = scene
        self.timeline = timeline
        self.plotter = scene.get_plotter()

    def screenshot(self, path: str) -> None:
        """Save a screenshot of the current view.

        Args:
            path: Output file path (PNG/JPEG based on extension)
        """
        self.plotter.screenshot(path)
        print(f"Screenshot saved to {path}")

    def gif(self, path: str, frame_ms: float = 40.0, seek: float | None = None) -> None:
        """Export the playback as an animated GIF.

        Args:
            path: Output GIF file path
            frame_ms: Playback time covered by each frame
            seek: Optional start progress percentage
        """
        self.plotter.open_gif(path)

        for _ in self._play_frames(frame_ms, "Rendering GIF", seek):
            self.plotter.write_frame()

        self.plotter.close()
        print(f"GIF saved to {path}")

    def video(self, path: str, fps: int = 30, seek: float | None = None) -> None:
        """Export the playback as an MP4 video.

        Args:
            path: Output MP4 file path
            fps: Frames per second; one frame covers 1000 / fps ms of playback
            seek: Optional start progress percentage
        """
        import imageio

        frames = []

        print("Rendering frames...")
        for _ in self._play_frames(1000.0 / fps, "Rendering video", seek):
            self.plotter.render()
            frames.append(self.plotter.screenshot(return_img=True))

        print(f"Writing video to {path}...")
        imageio.mimsave(path, frames, fps=fps, codec='libx264')
        print(f"Video saved to {path}")

    def _play_frames(self, frame_ms: float, desc: str, seek: float | None = None):
        """Restart playback, from 'seek' percent if given, and yield once per rendered frame."""
        self.timeline.stop()
        if seek is not None:
            self.timeline.on_progress_change(seek)
        self.timeline.play()

        marker = self.scene.marker
        for _ in tqdm(marker.frames(frame_ms), total=marker.remaining_frames(frame_ms), desc=desc):
            self.scene.update_hud()
            yield

#!/usr/bin/env python3
"""Trajectory playback CLI."""

import argparse
import logging
import sys
from pathlib import Path

from tqdm import tqdm

from marker_host import AnimatedMarker
from trajectory_geometry import METRICS, invalid_point_indices
from trajectory_loader import generate_points, parse_geojson_trajectory, parse_trajectory_csv, write_trajectory_csv
from trajectory_stats import compute_stats, print_stats
from timeline import PlaybackState, TimelineOptions, TrajectoryTimeline

SPEED_INDEX = {1: 0, 2: 1, 4: 2}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Trajectory Marker Playback',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        'trajectory_file',
        type=str,
        nargs='?',
        help='Path to trajectory CSV (lng,lat) or GeoJSON file',
    )

    parser.add_argument(
        '--demo',
        type=int,
        metavar='N',
        help='Play a generated spiral of N points instead of a file',
    )

    parser.add_argument(
        '--duration',
        type=float,
        default=10000.0,
        help='Time in ms to play the whole trajectory at 1x (default: 10000)',
    )

    parser.add_argument(
        '--speed',
        type=int,
        choices=sorted(SPEED_INDEX),
        default=1,
        help='Playback speed multiplier (default: 1)',
    )

    parser.add_argument(
        '--metric',
        type=str,
        choices=sorted(METRICS),
        default='planar',
        help='Distance metric for progress (default: planar)',
    )

    parser.add_argument(
        '--no-follow',
        action='store_true',
        help='Disable camera follow during playback',
    )

    parser.add_argument(
        '--seek',
        type=float,
        metavar='PERCENT',
        help='Start playback (and GIF/video exports) from this progress percentage',
    )

    parser.add_argument(
        '--frame-ms',
        type=int,
        default=16,
        help='Animation frame interval in ms (default: 16)',
    )

    parser.add_argument(
        '--screenshot',
        type=str,
        help='Save screenshot to path',
    )

    parser.add_argument(
        '--gif',
        type=str,
        help='Export playback GIF to path',
    )

    parser.add_argument(
        '--video',
        type=str,
        help='Export playback MP4 video to path',
    )

    parser.add_argument(
        '--export-csv',
        type=str,
        help='Write the loaded trajectory to a CSV file',
    )

    parser.add_argument(
        '--no-display',
        action='store_true',
        help="Don't show interactive window; play headless in the terminal",
    )

    parser.add_argument(
        '--stats',
        action='store_true',
        help='Print statistics to terminal',
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging',
    )

    return parser


def load_points(args) -> list[tuple[float, float]]:
    """Load the trajectory selected on the command line."""
    if args.demo is not None:
        return generate_points(args.demo, 116.397428, 39.90923)

    path = Path(args.trajectory_file)
    if not path.exists():
        raise FileNotFoundError(f"Trajectory file not found: {path}")

    if path.suffix.lower() in ('.geojson', '.json'):
        return parse_geojson_trajectory(str(path))
    return parse_trajectory_csv(str(path))


def make_timeline(args) -> TrajectoryTimeline:
    options = TimelineOptions(
        base_duration=args.duration,
        follow_view=not args.no_follow,
        metric=args.metric,
    )
    timeline = TrajectoryTimeline(options)
    timeline.change_duration(timeline.speed_options[SPEED_INDEX[args.speed]][1])
    return timeline


def start_playback(timeline: TrajectoryTimeline, seek: float | None) -> None:
    if seek is not None:
        timeline.on_progress_change(seek)
    timeline.play()


def run_headless(timeline: TrajectoryTimeline, marker: AnimatedMarker, frame_ms: float) -> float:
    """Play to the end without rendering, reporting progress in the terminal.

    Returns:
        Final progress percentage
    """
    with tqdm(total=100.0, desc='Playback', unit='%', bar_format='{l_bar}{bar}| {n:.2f}/{total:.0f}%') as bar:
        for _ in marker.frames(frame_ms):
            if bar.n != timeline.progress:
                bar.n = timeline.progress
                bar.refresh()
            if timeline.state is PlaybackState.STOPPED:
                break
    return timeline.progress


def main(argv=None):
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    if args.trajectory_file is None and args.demo is None:
        parser.error('a trajectory file or --demo N is required')

    try:
        points = load_points(args)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error loading trajectory: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Loaded {len(points)} trajectory points")

    invalid = invalid_point_indices(points)
    if invalid:
        print(f"Warning: invalid points at indices {invalid}", file=sys.stderr)

    if args.stats and not invalid:
        print_stats(compute_stats(points, args.duration))

    if args.export_csv:
        print(f"Writing trajectory to {args.export_csv}...")
        write_trajectory_csv(points, args.export_csv)

    if len(points) < 2:
        print("Warning: trajectory needs at least 2 points to play", file=sys.stderr)
        return

    wants_export = args.screenshot or args.gif or args.video

    if args.no_display and not wants_export:
        print("Playing headless...")
        marker = AnimatedMarker(points[0])
        timeline = make_timeline(args)
        timeline.initialize(None, marker, points)
        start_playback(timeline, args.seek)
        progress = run_headless(timeline, marker, args.frame_ms)
        print(f"Final progress: {progress:.2f}%")
        print("Done")
        return

    from exporter import PlaybackExporter
    from scene import PlaybackScene

    if wants_export:
        print("Building off-screen scene...")
        scene = PlaybackScene(points, off_screen=True)
        scene.build()
        timeline = make_timeline(args)
        timeline.initialize(scene, scene.marker, points)
        scene.bind_controls(timeline)
        exporter = PlaybackExporter(scene, timeline)

        if args.screenshot:
            print(f"Saving screenshot to {args.screenshot}...")
            exporter.screenshot(args.screenshot)

        if args.video:
            print(f"Exporting video to {args.video}...")
            exporter.video(args.video, fps=max(1, round(1000 / args.frame_ms)), seek=args.seek)

        if args.gif:
            print(f"Exporting GIF to {args.gif}...")
            exporter.gif(args.gif, frame_ms=args.frame_ms, seek=args.seek)

    if not args.no_display:
        print("Building scene...")
        scene = PlaybackScene(points)
        scene.build()
        timeline = make_timeline(args)
        timeline.initialize(scene, scene.marker, points)
        scene.bind_controls(timeline)
        start_playback(timeline, args.seek)
        print("Showing interactive window (space: play/pause, x: stop, c: follow, 1/2/3: speed)...")
        scene.show(frame_ms=args.frame_ms)

    print("Done")


if __name__ == '__main__':
    main()

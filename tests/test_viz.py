"""Tests for the headless command-line paths."""

import pytest

import viz
from trajectory_loader import generate_points, parse_trajectory_csv, write_trajectory_csv


class TestHeadlessCli:
    """Runs the CLI without a display."""

    def test_demo_plays_to_end(self, capsys):
        viz.main(['--demo', '50', '--no-display', '--duration', '200'])

        out = capsys.readouterr().out
        assert 'Loaded 50 trajectory points' in out
        assert 'Final progress: 100.00%' in out

    def test_csv_with_seek_and_speed(self, tmp_path, capsys):
        path = tmp_path / 'route.csv'
        write_trajectory_csv([(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)], str(path))

        viz.main([str(path), '--no-display', '--seek', '50', '--speed', '4', '--duration', '400'])

        assert 'Final progress: 100.00%' in capsys.readouterr().out

    def test_stats_and_export(self, tmp_path, capsys):
        out_path = tmp_path / 'demo.csv'
        viz.main(['--demo', '20', '--no-display', '--stats', '--export-csv', str(out_path), '--duration', '50'])

        assert 'Trajectory Statistics' in capsys.readouterr().out
        assert parse_trajectory_csv(str(out_path)) == generate_points(20, 116.397428, 39.90923)

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            viz.main([str(tmp_path / 'missing.csv'), '--no-display'])

        assert exc.value.code == 1
        assert 'not found' in capsys.readouterr().err

    def test_requires_input(self):
        with pytest.raises(SystemExit) as exc:
            viz.main(['--no-display'])

        assert exc.value.code == 2

    def test_single_point_not_played(self, tmp_path, capsys):
        path = tmp_path / 'route.csv'
        path.write_text('lng,lat\n1,1\n')

        viz.main([str(path), '--no-display'])

        assert 'at least 2 points' in capsys.readouterr().err


class TestRunHeadless:
    """Tests for the headless playback driver."""

    def test_invalid_trajectory_stays_at_zero(self):
        marker = viz.AnimatedMarker((0.0, 0.0))
        timeline = viz.TrajectoryTimeline()
        timeline.initialize(None, marker, [(0.0, 0.0), (float('nan'), 1.0)])
        timeline.play()

        assert viz.run_headless(timeline, marker, 16) == 0
        assert timeline.state is viz.PlaybackState.STOPPED

    def test_long_playback_reaches_end(self):
        points = [(0.0, 0.0), (1.0, 0.0)]
        marker = viz.AnimatedMarker(points[0])
        timeline = viz.TrajectoryTimeline(viz.TimelineOptions(base_duration=2_000_000))
        timeline.initialize(None, marker, points)
        timeline.play()

        assert viz.run_headless(timeline, marker, 16) == 100
        assert timeline.state is viz.PlaybackState.STOPPED

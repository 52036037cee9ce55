"""Unit tests for the headless animated marker and its timeline integration."""

import logging

import pytest

from marker_host import AnimatedMarker, LngLat
from timeline import PlaybackState, TimelineOptions, TrajectoryTimeline


class TestAnimatedMarker:
    """Tests for AnimatedMarker motion."""

    def test_move_along_interpolates_by_time(self):
        marker = AnimatedMarker()
        marker.move_along([(0, 0), (2, 0)], duration=1000)

        marker.tick(250)
        assert marker.get_position() == pytest.approx((0.5, 0.0))
        marker.tick(250)
        assert marker.get_position() == pytest.approx((1.0, 0.0))

    def test_constant_speed_across_segments(self):
        marker = AnimatedMarker()
        marker.move_along([(0, 0), (1, 0), (1, 3)], duration=400)

        marker.tick(200)
        assert marker.get_position() == pytest.approx((1.0, 1.0))

    def test_emits_moving_and_moveend(self):
        marker = AnimatedMarker()
        moving = []
        ended = []
        marker.on('moving', moving.append)
        marker.on('moveend', ended.append)

        marker.move_along([(0, 0), (1, 0)], duration=100)
        frames = list(marker.frames(40))

        assert len(frames) == 3
        assert moving[-1] == LngLat(1.0, 0.0)
        assert ended == [LngLat(1.0, 0.0)]
        assert not marker.is_moving

    def test_pause_and_resume_keep_schedule(self):
        marker = AnimatedMarker()
        marker.move_along([(0, 0), (4, 0)], duration=400)
        marker.tick(100)
        marker.pause_move()

        assert marker.is_paused
        assert not marker.tick(100)
        assert marker.get_position() == pytest.approx((1.0, 0.0))

        marker.resume_move()
        marker.tick(100)
        assert marker.get_position() == pytest.approx((2.0, 0.0))

    def test_stop_move_cancels(self):
        marker = AnimatedMarker()
        marker.move_along([(0, 0), (4, 0)], duration=400)
        marker.stop_move()

        assert not marker.tick(100)
        assert marker.get_position() == (0.0, 0.0)

    def test_move_to_starts_from_current_position(self):
        marker = AnimatedMarker((1.0, 1.0))
        marker.move_to((3.0, 1.0), duration=100)
        marker.tick(50)

        assert marker.get_position() == pytest.approx((2.0, 1.0))

    def test_heading_follows_segment(self):
        marker = AnimatedMarker()
        marker.move_along([(0, 0), (1, 0), (1, 1)], duration=200)

        marker.tick(50)
        assert marker.heading == pytest.approx(0.0)
        marker.tick(100)
        assert marker.heading == pytest.approx(90.0)

    def test_no_rotation_keeps_heading(self):
        marker = AnimatedMarker()
        marker.move_along([(0, 0), (0, 1)], duration=100, auto_rotation=False)
        marker.tick(50)

        assert marker.heading == 0.0

    def test_rejects_unplayable_commands(self):
        marker = AnimatedMarker()
        marker.move_along([(0, 0)], duration=100)
        assert not marker.is_moving

        marker.move_along([(0, 0), (1, 0)], duration=0)
        assert not marker.is_moving

    def test_off_unsubscribes(self):
        marker = AnimatedMarker()
        seen = []
        marker.on('moving', seen.append)
        marker.off('moving', seen.append)
        marker.move_along([(0, 0), (1, 0)], duration=100)
        marker.tick(50)

        assert seen == []

    def test_heading_on_path_that_turns_back(self):
        marker = AnimatedMarker()
        marker.move_along([(0, 0), (2, 2), (2, 0)], duration=1000)
        first = 2 * 2 ** 0.5
        marker.tick(1000 * (first + 1) / (first + 2))

        assert marker.get_position() == pytest.approx((2.0, 1.0))
        assert marker.heading == pytest.approx(-90.0)

    def test_frames_run_long_motion_to_completion(self):
        marker = AnimatedMarker()
        marker.move_along([(0, 0), (1, 0)], duration=2_000_000)

        assert marker.remaining_frames(16) == 125_000
        count = sum(1 for _ in marker.frames(16))

        assert count == 125_000
        assert marker.get_position() == (1.0, 0.0)

    def test_frame_limit_warns(self, caplog):
        marker = AnimatedMarker()
        marker.move_along([(0, 0), (1, 0)], duration=1000)

        with caplog.at_level(logging.WARNING, logger='marker_host'):
            frames = list(marker.frames(100, max_frames=3))

        assert len(frames) == 3
        assert marker.remaining_frames(100) == 7
        assert 'Frame limit 3 reached' in caplog.text

    def test_frames_rejects_non_positive_interval(self):
        marker = AnimatedMarker()
        marker.move_along([(0, 0), (1, 0)], duration=100)

        with pytest.raises(ValueError):
            next(marker.frames(0))


class TestTimelineWithAnimatedMarker:
    """End-to-end playback driven by marker ticks."""

    @pytest.fixture
    def setup(self):
        points = [(0.0, 0.0), (10.0, 0.0)]
        marker = AnimatedMarker(points[0])
        timeline = TrajectoryTimeline(TimelineOptions(base_duration=1000))
        timeline.initialize(None, marker, points)
        return timeline, marker

    def test_plays_to_completion(self, setup):
        timeline, marker = setup
        timeline.play()
        frames = list(marker.frames(100))

        assert len(frames) == 10
        assert timeline.progress == 100
        assert timeline.state is PlaybackState.STOPPED

    def test_speed_change_while_paused(self, setup):
        timeline, marker = setup
        timeline.play()
        marker.tick(300)
        assert timeline.progress == pytest.approx(30.0)

        timeline.pause()
        timeline.change_duration(500)
        timeline.resume()
        marker.tick(175)

        assert timeline.progress == pytest.approx(65.0)
        assert len(list(marker.frames(175))) == 1
        assert timeline.state is PlaybackState.STOPPED

    def test_speed_change_while_playing_keeps_progress(self, setup):
        timeline, marker = setup
        timeline.play()
        marker.tick(400)
        timeline.change_duration(250)

        assert timeline.progress == pytest.approx(40.0)
        marker.tick(75)
        assert timeline.progress == pytest.approx(70.0)

    def test_resume_without_change_continues(self, setup):
        timeline, marker = setup
        timeline.play()
        marker.tick(200)
        timeline.pause()
        marker.tick(500)
        timeline.resume()
        marker.tick(200)

        assert timeline.progress == pytest.approx(40.0)

    def test_seek_then_play(self, setup):
        timeline, marker = setup
        timeline.on_progress_change(80)
        assert not marker.is_moving

        timeline.play()
        assert marker.get_position() == pytest.approx((8.0, 0.0))
        frames = list(marker.frames(50))

        assert len(frames) == 4
        assert timeline.state is PlaybackState.STOPPED

    def test_replay_after_completion(self, setup):
        timeline, marker = setup
        timeline.play()
        list(marker.frames(250))
        timeline.play()
        marker.tick(250)

        assert timeline.progress == pytest.approx(25.0)
        assert timeline.state is PlaybackState.PLAYING

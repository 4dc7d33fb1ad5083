"""Tests for blink liveness detection."""

import asyncio

import pytest

from conftest import FakeCapability, ScriptedFrameSource, tagged_image
from face_locker.types import Frame


def frame():
    return Frame(image=tagged_image(), timestamp=0.0)


def run_observations(detector, count):
    return [detector.observe(frame()) for _ in range(count)]


class TestLivenessState:
    """Test cases for LivenessState."""

    def test_history_is_bounded(self):
        from face_locker.liveness import LivenessState

        state = LivenessState(capacity=5)
        for ear in (0.30, 0.31, 0.32, 0.33, 0.34, 0.35, 0.36):
            state.push(ear)

        assert len(state.history) == 5
        assert list(state.history) == [0.32, 0.33, 0.34, 0.35, 0.36]

    def test_defaults(self):
        from face_locker.liveness import LivenessState

        state = LivenessState()
        assert state.threshold == 0.28
        assert state.calibrated is False
        assert len(state.history) == 0


class TestBlinkDetector:
    """Test cases for BlinkDetector.observe."""

    def test_blink_sequence(self, liveness_config):
        """EAR samples 0.30, 0.29, 0.31, 0.18 against 0.25 blink on the 4th."""
        from face_locker.liveness import BlinkDetector, LivenessState

        capability = FakeCapability(ears=[0.30, 0.29, 0.31, 0.18])
        detector = BlinkDetector(
            capability,
            state=LivenessState(threshold=0.25),
            config=liveness_config,
        )

        results = run_observations(detector, 4)

        assert [r.blink_detected for r in results] == [False, False, False, True]
        assert results[3].ear == pytest.approx(0.18)
        assert len(detector.state.history) == 0

    def test_needs_minimum_frames(self, liveness_config):
        from face_locker.liveness import BlinkDetector

        capability = FakeCapability(ears=[0.1, 0.1, 0.1])
        detector = BlinkDetector(capability, config=liveness_config)

        results = run_observations(detector, 3)

        assert [r.blink_detected for r in results] == [False, False, True]

    def test_history_never_exceeds_capacity(self, liveness_config):
        from face_locker.liveness import BlinkDetector

        capability = FakeCapability(ears=[0.3] * 12)
        detector = BlinkDetector(capability, config=liveness_config)

        for observation in run_observations(detector, 12):
            assert not observation.blink_detected
            assert len(detector.state.history) <= 5

        assert len(detector.state.history) == 5

    def test_no_face_leaves_history_untouched(self, liveness_config):
        from face_locker.liveness import BlinkDetector, NO_FACE

        capability = FakeCapability(ears=[0.3, 0.3, None])
        detector = BlinkDetector(capability, config=liveness_config)

        run_observations(detector, 2)
        observation = detector.observe(frame())

        assert observation.blink_detected is False
        assert observation.error == NO_FACE
        assert observation.ear is None
        assert len(detector.state.history) == 2

    def test_uses_liveness_detection_floor(self, liveness_config):
        from face_locker.liveness import BlinkDetector

        capability = FakeCapability()
        BlinkDetector(capability, config=liveness_config).observe(frame())

        assert capability.min_scores == [0.4]

    def test_degenerate_geometry_propagates(self, liveness_config):
        from face_locker.errors import DegenerateGeometry
        from face_locker.liveness import BlinkDetector

        capability = FakeCapability()
        original = capability.detect

        def collapsed(image, min_score):
            face = original(image, min_score)
            face.landmarks[36:48] = 0.0
            return face

        capability.detect = collapsed
        detector = BlinkDetector(capability, config=liveness_config)

        with pytest.raises(DegenerateGeometry):
            detector.observe(frame())

    def test_reset(self, liveness_config):
        from face_locker.liveness import BlinkDetector, LivenessState

        detector = BlinkDetector(
            FakeCapability(ears=[0.3, 0.3]),
            state=LivenessState(threshold=0.26, calibrated=True),
            config=liveness_config,
        )
        run_observations(detector, 2)

        detector.reset()

        assert detector.threshold == 0.28
        assert detector.state.calibrated is False
        assert len(detector.state.history) == 0


class TestCalibration:
    """Test cases for BlinkDetector.calibrate."""

    def _calibrate(self, capability, liveness_config, clock, sample_count=10):
        from face_locker.liveness import BlinkDetector

        detector = BlinkDetector(capability, config=liveness_config)
        source = ScriptedFrameSource()
        source.open()
        threshold = asyncio.run(
            detector.calibrate(source, sample_count=sample_count, sleep=clock.sleep)
        )
        return detector, threshold

    def test_threshold_clamped_to_minimum(self, liveness_config, clock):
        """Average EAR 0.32 gives 0.12, clamped up to 0.25."""
        detector, threshold = self._calibrate(
            FakeCapability(ears=[0.32] * 10), liveness_config, clock
        )

        assert threshold == pytest.approx(0.25)
        assert detector.state.calibrated is True

    def test_wide_open_eyes_raise_threshold(self, liveness_config, clock):
        _, threshold = self._calibrate(
            FakeCapability(ears=[0.50] * 10), liveness_config, clock
        )

        assert threshold == pytest.approx(0.30)

    def test_skips_frames_without_face(self, liveness_config, clock):
        ears = [None, 0.48, None, 0.52] + [None] * 6
        _, threshold = self._calibrate(FakeCapability(ears=ears), liveness_config, clock)

        assert threshold == pytest.approx(0.30)

    def test_no_face_keeps_default(self, liveness_config, clock):
        detector, threshold = self._calibrate(
            FakeCapability(ears=[None] * 10), liveness_config, clock
        )

        assert threshold == 0.28
        assert detector.state.calibrated is False

    def test_never_below_minimum(self, liveness_config, clock):
        for average in (0.20, 0.30, 0.40, 0.45):
            _, threshold = self._calibrate(
                FakeCapability(ears=[average] * 10), liveness_config, clock
            )
            assert threshold >= 0.25

    def test_samples_spaced_100ms(self, liveness_config, clock):
        self._calibrate(FakeCapability(ears=[0.3] * 10), liveness_config, clock)

        assert clock.sleeps == [0.1] * 10

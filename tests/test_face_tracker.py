"""Tests for the stateful decoder shell and the face-tracker lifecycle."""

import pytest

from blink_decoder import (
    BlinkDecoder,
    BlinkFaceTracker,
    DecoderConfig,
    EmissionKind,
    EyeSample,
    EyeState,
)


OPEN = EyeSample(left=0.9, right=0.9)
CLOSED = EyeSample(left=0.1, right=0.1)


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now_ms: float = 0.0):
        self.now_ms = now_ms

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, ms: float):
        self.now_ms += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def messages():
    return []


# =============================================================================
# BLINK DECODER
# =============================================================================

class TestBlinkDecoder:

    def test_sink_receives_full_snapshots(self, clock, messages):
        decoder = BlinkDecoder(sink=messages.append, clock=clock)
        for now_ms, sample in [
            (0, CLOSED), (200, OPEN), (1700, OPEN), (3700, OPEN),
            (3800, CLOSED), (5800, OPEN), (7300, OPEN), (9300, OPEN),
        ]:
            decoder.process(sample, now_ms)
        assert messages == ["E", "E ", "E T", "E T "]
        assert decoder.current_message == "E T "
        assert decoder.current_word == ""

    def test_reads_clock_when_no_timestamp(self, clock, messages):
        decoder = BlinkDecoder(sink=messages.append, clock=clock)
        decoder.process(CLOSED)
        clock.advance(2000)
        decoder.process(OPEN)
        assert decoder.current_pattern == "-"
        clock.advance(1500)
        emissions = decoder.process(OPEN)
        assert [e.kind for e in emissions] == [EmissionKind.LETTER]
        assert messages == ["T"]

    def test_initial_timestamp_comes_from_clock(self, messages):
        decoder = BlinkDecoder(sink=messages.append, clock=FakeClock(10000.0))
        decoder.process(OPEN, 11000.0)
        assert messages == []
        decoder.process(OPEN, 11500.0)
        assert messages == [""]

    def test_works_without_sink(self, clock):
        decoder = BlinkDecoder(clock=clock)
        decoder.process(CLOSED, 0)
        decoder.process(OPEN, 100)
        emissions = decoder.process(OPEN, 1600)
        assert emissions[0].character == "E"

    def test_eye_state(self, clock):
        decoder = BlinkDecoder(clock=clock)
        assert decoder.eye_state == EyeState.OPEN
        decoder.process(CLOSED, 0)
        assert decoder.eye_state == EyeState.CLOSED

    def test_custom_config(self, clock, messages):
        config = DecoderConfig(dash_duration_ms=500, letter_space_ms=700, word_space_ms=1400)
        decoder = BlinkDecoder(sink=messages.append, config=config, clock=clock)
        decoder.process(CLOSED, 0)
        decoder.process(OPEN, 600)
        decoder.process(OPEN, 1300)
        decoder.process(OPEN, 2000)
        assert messages == ["T", "T "]

    def test_sink_errors_propagate(self, clock):
        def broken_sink(message):
            raise RuntimeError("display gone")

        decoder = BlinkDecoder(sink=broken_sink, clock=clock)
        with pytest.raises(RuntimeError):
            decoder.process(OPEN, 1500)


# =============================================================================
# FACE TRACKER
# =============================================================================

class TestBlinkFaceTracker:

    def test_update_without_face_is_ignored(self, clock, messages):
        tracker = BlinkFaceTracker(sink=messages.append, clock=clock)
        assert not tracker.is_tracking
        assert tracker.on_update(OPEN, 5000) == []
        assert messages == []

    def test_new_item_creates_fresh_decoder(self, clock, messages):
        tracker = BlinkFaceTracker(sink=messages.append, clock=clock)
        tracker.on_new_item(7)
        assert tracker.is_tracking
        assert tracker.face_id == 7
        tracker.on_update(CLOSED, 0)
        tracker.on_update(OPEN, 200)
        tracker.on_update(OPEN, 1800)
        assert messages == ["E"]
        assert tracker.last_message == "E"

    def test_missing_keeps_decoder_state(self, clock, messages):
        tracker = BlinkFaceTracker(sink=messages.append, clock=clock)
        tracker.on_new_item()
        tracker.on_update(CLOSED, 0)
        tracker.on_update(OPEN, 200)
        decoder = tracker.decoder
        tracker.on_missing()
        tracker.on_missing()
        assert tracker.decoder is decoder
        tracker.on_update(OPEN, 1800)
        assert messages == ["E"]

    def test_done_discards_state_but_keeps_last_message(self, clock, messages):
        tracker = BlinkFaceTracker(sink=messages.append, clock=clock)
        tracker.on_new_item()
        tracker.on_update(CLOSED, 0)
        tracker.on_update(OPEN, 200)
        tracker.on_update(OPEN, 1800)
        tracker.on_done()
        assert not tracker.is_tracking
        assert tracker.last_message == "E"
        assert tracker.on_update(OPEN, 5000) == []

    def test_reappearing_face_starts_over(self, clock, messages):
        tracker = BlinkFaceTracker(sink=messages.append, clock=clock)
        tracker.on_new_item(1)
        tracker.on_update(CLOSED, 0)
        tracker.on_update(OPEN, 200)
        tracker.on_done()

        clock.now_ms = 10000
        tracker.on_new_item(2)
        assert tracker.decoder.current_pattern == ""
        assert tracker.decoder.current_message == ""
        tracker.on_update(OPEN, 11500)
        assert messages == [""]

    def test_reset_clears_decoder_and_last_message(self, clock, messages):
        tracker = BlinkFaceTracker(sink=messages.append, clock=clock)
        tracker.on_new_item()
        tracker.on_update(CLOSED, 0)
        tracker.on_update(OPEN, 200)
        tracker.on_update(OPEN, 1800)
        assert tracker.last_message == "E"
        tracker.reset()
        assert not tracker.is_tracking
        assert tracker.face_id is None
        assert tracker.last_message == ""

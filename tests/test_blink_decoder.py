"""Unit tests for the blink-duration Morse decoder."""

import pytest

import blink_decoder
from blink_decoder import (
    CHARACTER_TO_MORSE,
    DEFAULT_CONFIG,
    MORSE_CODE_TABLE,
    DecoderConfig,
    DecoderState,
    EmissionKind,
    EyeSample,
    EyeState,
    ResolvedEyes,
    Symbol,
    combined_state,
    decode_frames,
    encode_message,
    lookup_pattern,
    open_state_check,
    resolve_eye,
    resolve_eyes,
    step,
)


OPEN = EyeSample(left=1.0, right=1.0)
CLOSED = EyeSample(left=0.0, right=0.0)
UNKNOWN = EyeSample()


def run(frames, start_ms=0.0, config=None):
    """Feed (now_ms, sample) pairs into a fresh state, collecting emissions."""
    state = DecoderState.initial(start_ms)
    emissions = []
    for now_ms, sample in frames:
        state, new = step(state, sample, now_ms, config)
        emissions.extend(new)
    return state, emissions


def letters(emissions):
    return [e for e in emissions if e.kind == EmissionKind.LETTER]


def words(emissions):
    return [e for e in emissions if e.kind == EmissionKind.WORD]


# =============================================================================
# CODE TABLE
# =============================================================================

class TestCodeTable:

    def test_covers_letters_and_digits(self):
        assert sorted(MORSE_CODE_TABLE.values()) == sorted("ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789")

    def test_patterns_are_one_to_five_symbols(self):
        for pattern in MORSE_CODE_TABLE:
            assert 1 <= len(pattern) <= 5
            assert set(pattern) <= {".", "-"}

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            MORSE_CODE_TABLE["......"] = "?"

    def test_reverse_table(self):
        assert CHARACTER_TO_MORSE["A"] == ".-"
        assert CHARACTER_TO_MORSE["0"] == "-----"

    def test_lookup(self):
        assert lookup_pattern("...") == "S"
        assert lookup_pattern("") is None
        assert lookup_pattern("......") is None


# =============================================================================
# EYE-STATE RESOLVER
# =============================================================================

class TestResolver:

    @pytest.mark.parametrize("score", [0.41, 0.5, 0.99, 1.0])
    def test_above_threshold_is_open(self, score):
        assert resolve_eye(score, previous=False) is True

    @pytest.mark.parametrize("score", [0.0, 0.1, 0.39, 0.4])
    def test_at_or_below_threshold_is_closed(self, score):
        assert resolve_eye(score, previous=True) is False

    @pytest.mark.parametrize("previous", [True, False])
    def test_unknown_reuses_previous(self, previous):
        assert resolve_eye(None, previous) is previous

    def test_unknown_eye_keeps_memory(self):
        memory = ResolvedEyes(left=False, right=True)
        resolved = resolve_eyes(EyeSample(left=None, right=0.9), memory)
        assert resolved == ResolvedEyes(left=False, right=True)

    def test_known_eye_overwrites_memory(self):
        resolved = resolve_eyes(EyeSample(left=0.9, right=0.1), ResolvedEyes(left=False, right=True))
        assert resolved == ResolvedEyes(left=True, right=False)

    def test_default_memory_is_open(self):
        assert resolve_eyes(UNKNOWN, ResolvedEyes()) == ResolvedEyes(left=True, right=True)

    def test_combined_state(self):
        assert combined_state(ResolvedEyes(True, True)) == EyeState.OPEN
        assert combined_state(ResolvedEyes(True, False)) == EyeState.CLOSED
        assert combined_state(ResolvedEyes(False, True)) == EyeState.CLOSED
        assert combined_state(ResolvedEyes(False, False)) == EyeState.CLOSED

    def test_custom_threshold(self):
        config = DecoderConfig(eye_closed_threshold=0.7)
        state, _ = run([(0, EyeSample(0.6, 0.6))], config=config)
        assert state.is_closed


# =============================================================================
# DURATION STATE MACHINE
# =============================================================================

class TestStateMachine:

    def test_initial_state_is_open(self):
        state = DecoderState.initial(123.0)
        assert state.eye_state == EyeState.OPEN
        assert state.last_transition_ms == 123.0
        assert state.symbols == ()
        assert state.message == ""

    @pytest.mark.parametrize("duration,expected", [
        (0, Symbol.DOT),
        (200, Symbol.DOT),
        (1500, Symbol.DOT),
        (1501, Symbol.DASH),
        (4000, Symbol.DASH),
    ])
    def test_closed_duration_classifies_symbol(self, duration, expected):
        state, _ = run([(0, CLOSED), (duration, OPEN)])
        assert state.symbols == (expected,)

    def test_closing_does_not_commit_symbol(self):
        state, _ = run([(0, CLOSED), (2000, CLOSED)])
        assert state.is_closed
        assert state.symbols == ()

    def test_one_closed_eye_counts_as_closed(self):
        state, _ = run([(0, EyeSample(left=0.9, right=0.1))])
        assert state.is_closed

    def test_closed_while_closed_keeps_timestamp(self):
        state, _ = run([(100, CLOSED), (500, CLOSED), (900, CLOSED)])
        assert state.last_transition_ms == 100

    def test_transitions_reset_emitted_flags(self):
        state, _ = run([(0, OPEN), (1600, OPEN)])
        assert state.letter_emitted
        state, _ = step(state, CLOSED, 1700)
        assert not state.letter_emitted
        assert not state.word_emitted

    def test_dot_then_open_gap_emits_e(self):
        state, emissions = run([(0, CLOSED), (200, OPEN), (1800, OPEN)])
        assert len(letters(emissions)) == 1
        assert letters(emissions)[0].character == "E"
        assert letters(emissions)[0].pattern == "."
        assert letters(emissions)[0].message == "E"
        assert words(emissions) == []
        assert state.current_word == "E"
        assert state.symbols == ()

    def test_dot_dash_emits_a(self):
        frames = [
            (0, CLOSED), (300, OPEN),     # dot
            (800, CLOSED), (2800, OPEN),  # dash
            (4300, OPEN),                 # letter space
        ]
        _, emissions = run(frames)
        assert [e.character for e in letters(emissions)] == ["A"]

    def test_emission_is_idempotent_within_open_run(self):
        frames = [(0, CLOSED), (200, OPEN)]
        frames += [(t, OPEN) for t in range(300, 10000, 100)]
        _, emissions = run(frames)
        assert len(letters(emissions)) == 1
        assert len(words(emissions)) == 1

    def test_letter_fires_before_word_in_same_frame(self):
        _, emissions = run([(0, CLOSED), (200, OPEN), (4000, OPEN)])
        assert [e.kind for e in emissions] == [EmissionKind.LETTER, EmissionKind.WORD]
        assert [e.message for e in emissions] == ["E", "E "]

    def test_long_open_run_without_blinks(self):
        state, emissions = run([(0, OPEN), (3500, OPEN)])
        assert len(emissions) == 2
        letter, word = emissions
        assert letter.kind == EmissionKind.LETTER
        assert letter.character is None
        assert letter.pattern == ""
        assert letter.message == ""
        assert word.kind == EmissionKind.WORD
        assert word.message == " "
        assert state.message == " "

    def test_unrecognized_pattern_is_dropped(self):
        frames = []
        t = 0
        for _ in range(6):  # six dots: no such letter
            frames += [(t, CLOSED), (t + 200, OPEN)]
            t += 500
        frames.append((t + 1500, OPEN))
        state, emissions = run(frames)
        assert len(letters(emissions)) == 1
        assert letters(emissions)[0].character is None
        assert letters(emissions)[0].pattern == "......"
        assert state.symbols == ()
        assert state.current_word == ""

    def test_letter_completes_on_closing_edge(self):
        # no open frame arrives after the letter space; the closing frame flushes it
        _, emissions = run([(0, CLOSED), (200, OPEN), (1900, CLOSED)])
        assert [e.character for e in letters(emissions)] == ["E"]

    def test_closing_edge_uses_open_run_duration(self):
        # open for only 1000 ms before closing: nothing to flush
        _, emissions = run([(0, CLOSED), (200, OPEN), (1200, CLOSED)])
        assert emissions == []

    def test_word_completes_on_closing_edge(self):
        _, emissions = run([(0, CLOSED), (200, OPEN), (1800, OPEN), (4000, CLOSED)])
        assert [e.message for e in emissions] == ["E", "E "]

    def test_dash_measured_from_closing_instant(self):
        # a long open run followed by a short blink is still a dot
        frames = [
            (0, CLOSED), (200, OPEN),
            (1400, CLOSED), (1700, OPEN),
            (3300, OPEN),
        ]
        _, emissions = run(frames)
        assert [e.pattern for e in letters(emissions)] == [".."]
        assert [e.character for e in letters(emissions)] == ["I"]

    def test_message_snapshot_includes_completed_words(self):
        frames = [
            (0, CLOSED), (200, OPEN), (1700, OPEN), (3700, OPEN),    # "E "
            (3800, CLOSED), (5800, OPEN), (7300, OPEN),              # "T"
        ]
        state, emissions = run(frames)
        assert [e.message for e in emissions] == ["E", "E ", "E T"]
        assert state.message == "E "
        assert state.current_word == "T"

    def test_open_state_check_is_noop_before_threshold(self):
        state = DecoderState.initial(0)
        new_state, emissions = open_state_check(state, 1499, DecoderConfig())
        assert new_state == state
        assert emissions == []

    def test_step_does_not_mutate_input_state(self):
        state = DecoderState.initial(0)
        step(state, CLOSED, 10)
        assert state == DecoderState.initial(0)


# =============================================================================
# UNKNOWN SAMPLES
# =============================================================================

class TestUnknownSamples:

    def test_unknown_keeps_closed_state(self):
        state, _ = run([(0, CLOSED), (100, UNKNOWN), (200, UNKNOWN)])
        assert state.is_closed

    def test_unknown_keeps_open_state(self):
        state, _ = run([(0, CLOSED), (100, OPEN), (200, UNKNOWN)])
        assert not state.is_closed
        assert state.symbols == (Symbol.DOT,)

    def test_unknown_runs_do_not_change_output(self):
        frames = encode_message("HI 42")
        with_unknowns = []
        for index, (now_ms, sample) in enumerate(frames):
            with_unknowns.append((now_ms, sample))
            if index % 3 == 0 and index + 1 < len(frames):
                gap = frames[index + 1][0] - now_ms
                with_unknowns += [(now_ms + gap * k / 4, UNKNOWN) for k in range(1, 4)]
        assert decode_frames(with_unknowns) == decode_frames(frames)

    def test_single_eye_dropout(self):
        frames = [
            (0, EyeSample(left=0.0, right=0.0)),
            (100, EyeSample(left=None, right=0.0)),
            (200, EyeSample(left=1.0, right=None)),  # right still closed
            (300, EyeSample(left=None, right=1.0)),
        ]
        state, _ = run(frames)
        assert state.symbols == (Symbol.DOT,)
        assert state.last_transition_ms == 300


# =============================================================================
# ROUND TRIP
# =============================================================================

class TestRoundTrip:

    @pytest.mark.parametrize("text", ["E", "SOS", "HELLO WORLD", "CQ DX 73", "0123456789"])
    def test_encode_then_decode(self, text):
        assert decode_frames(encode_message(text)).rstrip() == text

    def test_decoded_words_end_with_space(self):
        assert decode_frames(encode_message("AB CD")) == "AB CD "

    def test_lowercase_is_encoded_as_uppercase(self):
        assert decode_frames(encode_message("sos")).rstrip() == "SOS"

    def test_custom_timing(self):
        config = DecoderConfig(dash_duration_ms=600, letter_space_ms=800, word_space_ms=2000)
        frames = encode_message("PARIS", config, dot_ms=150, intra_gap_ms=200, frame_ms=20)
        assert decode_frames(frames, config).rstrip() == "PARIS"

    def test_unknown_character_raises(self):
        with pytest.raises(ValueError):
            encode_message("HI?")

    def test_dot_rounding_past_dash_threshold_raises(self):
        # 1500 ms at 33 ms frames lasts 1518 ms, which reads as a dash
        with pytest.raises(ValueError):
            encode_message("E", dot_ms=1500.0, frame_ms=33.0)

    def test_dash_not_longer_than_threshold_raises(self):
        with pytest.raises(ValueError):
            encode_message("T", dash_ms=1500.0)

    def test_intra_gap_reaching_letter_space_raises(self):
        with pytest.raises(ValueError):
            encode_message("A", intra_gap_ms=2000.0)
        with pytest.raises(ValueError):
            encode_message("A", intra_gap_ms=1450.0, frame_ms=50.0)

    def test_longest_valid_timings_round_trip(self):
        frames = encode_message("A", dot_ms=1500.0, dash_ms=1501.0, intra_gap_ms=1449.0, frame_ms=50.0)
        assert decode_frames(frames).rstrip() == "A"

    def test_empty_schedule(self):
        assert decode_frames([]) == ""


# =============================================================================
# CONFIGURATION
# =============================================================================

class TestConfig:

    def test_defaults(self):
        config = DecoderConfig()
        assert config.eye_closed_threshold == 0.4
        assert config.dash_duration_ms == 1500
        assert config.letter_space_ms == 1500
        assert config.word_space_ms == 3500

    @pytest.mark.parametrize("kwargs", [
        {"eye_closed_threshold": -0.1},
        {"eye_closed_threshold": 1.5},
        {"dash_duration_ms": 0},
        {"letter_space_ms": -5},
        {"word_space_ms": 1000},
    ])
    def test_invalid_values_raise(self, kwargs):
        with pytest.raises(ValueError):
            DecoderConfig(**kwargs)

    def test_default_config_is_shared(self):
        assert DEFAULT_CONFIG == DecoderConfig()

    def test_step_without_config_does_not_build_one(self, monkeypatch):
        def no_new_config(*args, **kwargs):
            raise AssertionError("DecoderConfig built per frame")

        monkeypatch.setattr(blink_decoder, "DecoderConfig", no_new_config)
        state, _ = step(DecoderState.initial(0), CLOSED, 0)
        state, _ = step(state, OPEN, 1600)
        assert state.symbols == (Symbol.DASH,)

    def test_config_is_frozen(self):
        config = DecoderConfig()
        with pytest.raises(AttributeError):
            config.word_space_ms = 10

"""
Blink-Duration Morse Decoder
============================
Temporal decoder for eye-blink Morse code.

Converts a stream of timestamped per-eye open probabilities into Morse
symbols, letters and words. Dot/dash is decided by how long the eyes stay
closed; letter and word boundaries are decided by how long they stay open.

The decoder is a pure transition function over an explicit state value, so
it can be driven deterministically from tests as well as from a live camera.
"""

import logging
import math
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional, Tuple


logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS & CONFIGURATION
# =============================================================================

EYE_CLOSED_THRESHOLD = 0.4
DASH_DURATION_MS = 1500.0
LETTER_SPACE_MS = 1500.0
WORD_SPACE_MS = 3500.0

# Morse code table (letters and digits only)
MORSE_CODE_TABLE: Mapping[str, str] = MappingProxyType({
    '.-': 'A', '-...': 'B', '-.-.': 'C', '-..': 'D', '.': 'E',
    '..-.': 'F', '--.': 'G', '....': 'H', '..': 'I', '.---': 'J',
    '-.-': 'K', '.-..': 'L', '--': 'M', '-.': 'N', '---': 'O',
    '.--.': 'P', '--.-': 'Q', '.-.': 'R', '...': 'S', '-': 'T',
    '..-': 'U', '...-': 'V', '.--': 'W', '-..-': 'X', '-.--': 'Y',
    '--..': 'Z', '.----': '1', '..---': '2', '...--': '3', '....-': '4',
    '.....': '5', '-....': '6', '--...': '7', '---..': '8', '----.': '9',
    '-----': '0',
})

CHARACTER_TO_MORSE: Mapping[str, str] = MappingProxyType(
    {char: code for code, char in MORSE_CODE_TABLE.items()}
)


@dataclass(frozen=True)
class DecoderConfig:
    """Timing and threshold parameters of the decoder."""
    eye_closed_threshold: float = EYE_CLOSED_THRESHOLD  # open iff probability > threshold
    dash_duration_ms: float = DASH_DURATION_MS          # closed longer than this => dash
    letter_space_ms: float = LETTER_SPACE_MS            # open at least this => letter done
    word_space_ms: float = WORD_SPACE_MS                # open at least this => word done

    def __post_init__(self):
        if not 0.0 <= self.eye_closed_threshold <= 1.0:
            raise ValueError(
                f"eye_closed_threshold must be within [0, 1], got {self.eye_closed_threshold}"
            )
        for name in ('dash_duration_ms', 'letter_space_ms', 'word_space_ms'):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.word_space_ms < self.letter_space_ms:
            raise ValueError(
                f"word_space_ms ({self.word_space_ms}) must not be shorter than "
                f"letter_space_ms ({self.letter_space_ms})"
            )


DEFAULT_CONFIG = DecoderConfig()


# =============================================================================
# DATA CLASSES & ENUMS
# =============================================================================

class EyeState(Enum):
    """Enumeration of possible eye states."""
    OPEN = "open"
    CLOSED = "closed"
    UNKNOWN = "unknown"


class Symbol(Enum):
    """Morse symbols produced by a single blink."""
    DOT = "."
    DASH = "-"


class EmissionKind(Enum):
    """What was committed to the message."""
    LETTER = "letter"
    WORD = "word"


@dataclass(frozen=True)
class EyeSample:
    """Open probabilities for both eyes in one frame. None means unknown."""
    left: Optional[float] = None
    right: Optional[float] = None


@dataclass(frozen=True)
class ResolvedEyes:
    """Last resolved open/closed state of each eye."""
    left: bool = True
    right: bool = True


@dataclass(frozen=True)
class Emission:
    """
    A letter or word commit.

    `message` is the full text snapshot handed to the sink, never a delta.
    """
    kind: EmissionKind
    message: str
    character: Optional[str] = None
    pattern: str = ""


@dataclass(frozen=True)
class DecoderState:
    """Complete decoder state for one tracked face."""
    last_transition_ms: float
    is_closed: bool = False
    letter_emitted: bool = False
    word_emitted: bool = False
    symbols: Tuple[Symbol, ...] = ()
    current_word: str = ""
    message: str = ""
    eyes: ResolvedEyes = field(default_factory=ResolvedEyes)

    @classmethod
    def initial(cls, now_ms: float) -> "DecoderState":
        """Fresh state: eyes assumed open since `now_ms`."""
        return cls(last_transition_ms=now_ms)

    @property
    def pattern(self) -> str:
        """Morse pattern of the letter in progress, e.g. '.-'."""
        return ''.join(symbol.value for symbol in self.symbols)

    @property
    def eye_state(self) -> EyeState:
        return EyeState.CLOSED if self.is_closed else EyeState.OPEN


# =============================================================================
# EYE-STATE RESOLVER
# =============================================================================

def resolve_eye(score: Optional[float], previous: bool,
                threshold: float = EYE_CLOSED_THRESHOLD) -> bool:
    """
    Resolve an open probability into an open/closed decision.

    Args:
        score: Open probability, or None when the sensor produced nothing
        previous: Last resolved state of the same eye
        threshold: Probabilities strictly above this count as open

    Returns:
        True if the eye is considered open
    """
    if score is None:
        return previous
    return score > threshold


def resolve_eyes(sample: EyeSample, previous: ResolvedEyes,
                 threshold: float = EYE_CLOSED_THRESHOLD) -> ResolvedEyes:
    """Resolve both eyes; an unknown eye keeps its previous value."""
    return ResolvedEyes(
        left=resolve_eye(sample.left, previous.left, threshold),
        right=resolve_eye(sample.right, previous.right, threshold),
    )


def combined_state(eyes: ResolvedEyes) -> EyeState:
    """OPEN only when both eyes are open."""
    if eyes.left and eyes.right:
        return EyeState.OPEN
    return EyeState.CLOSED


def lookup_pattern(pattern: str) -> Optional[str]:
    """Decode a Morse pattern, or None if it is not in the table."""
    return MORSE_CODE_TABLE.get(pattern)


# =============================================================================
# DURATION STATE MACHINE
# =============================================================================

def open_state_check(state: DecoderState, now_ms: float,
                     config: DecoderConfig) -> Tuple[DecoderState, List[Emission]]:
    """
    Commit a letter and/or a word once the current open run is long enough.

    Both thresholds are measured from the same transition timestamp, and
    each fires at most once per open run.

    Args:
        state: Current decoder state (expected to be in the open state)
        now_ms: Current timestamp in milliseconds
        config: Decoder configuration

    Returns:
        Tuple of (new_state, emissions)
    """
    emissions: List[Emission] = []
    open_elapsed = now_ms - state.last_transition_ms

    if open_elapsed >= config.letter_space_ms and not state.letter_emitted:
        pattern = state.pattern
        character = lookup_pattern(pattern)
        current_word = state.current_word
        if character is not None:
            current_word += character
            logger.debug("Current word now: %r", current_word)
        else:
            logger.debug("Dropped unrecognized pattern %r", pattern)
        state = replace(state, symbols=(), current_word=current_word, letter_emitted=True)
        emissions.append(Emission(
            kind=EmissionKind.LETTER,
            message=state.message + state.current_word,
            character=character,
            pattern=pattern,
        ))

    if open_elapsed >= config.word_space_ms and not state.word_emitted:
        message = state.message + state.current_word + " "
        logger.debug("Current message now: %r", message)
        state = replace(state, message=message, current_word="", word_emitted=True)
        emissions.append(Emission(kind=EmissionKind.WORD, message=message))

    return state, emissions


def step(state: DecoderState, sample: EyeSample, now_ms: float,
         config: Optional[DecoderConfig] = None) -> Tuple[DecoderState, List[Emission]]:
    """
    Advance the decoder by one frame.

    Args:
        state: Current decoder state
        sample: Per-eye open probabilities for this frame
        now_ms: Timestamp of the frame in milliseconds
        config: Decoder configuration (defaults if None)

    Returns:
        Tuple of (new_state, emissions)
    """
    config = config or DEFAULT_CONFIG
    eyes = resolve_eyes(sample, state.eyes, config.eye_closed_threshold)
    state = replace(state, eyes=eyes)
    emissions: List[Emission] = []

    if combined_state(eyes) == EyeState.CLOSED:
        if not state.is_closed:
            logger.debug("Open -> closed at %.0f ms", now_ms)
            # Flush the open run that is ending before the timestamp moves
            state, emissions = open_state_check(state, now_ms, config)
            state = replace(
                state,
                is_closed=True,
                letter_emitted=False,
                word_emitted=False,
                last_transition_ms=now_ms,
            )
        return state, emissions

    if state.is_closed:
        closed_elapsed = now_ms - state.last_transition_ms
        symbol = Symbol.DASH if closed_elapsed > config.dash_duration_ms else Symbol.DOT
        logger.debug("Closed -> open after %.0f ms: %s", closed_elapsed, symbol.value)
        state = replace(
            state,
            is_closed=False,
            symbols=state.symbols + (symbol,),
            letter_emitted=False,
            word_emitted=False,
            last_transition_ms=now_ms,
        )
        return state, emissions

    return open_state_check(state, now_ms, config)


# =============================================================================
# STATEFUL DECODER
# =============================================================================

def wall_clock_ms() -> float:
    """Current wall-clock time in milliseconds."""
    return time.time() * 1000.0


class BlinkDecoder:
    """
    Stateful wrapper around `step` that owns the clock and the message sink.
    """

    def __init__(self, sink: Optional[Callable[[str], None]] = None,
                 config: Optional[DecoderConfig] = None,
                 clock: Callable[[], float] = wall_clock_ms):
        """
        Initialize the decoder.

        Args:
            sink: Called with the full decoded message on every commit
            config: Decoder configuration (uses defaults if None)
            clock: Returns the current time in milliseconds
        """
        self.sink = sink
        self.config = config or DEFAULT_CONFIG
        self.clock = clock
        self.state = DecoderState.initial(self.clock())

    def process(self, sample: EyeSample, now_ms: Optional[float] = None) -> List[Emission]:
        """
        Feed one frame and notify the sink of any commits.

        Args:
            sample: Per-eye open probabilities
            now_ms: Frame timestamp; read from the clock if None

        Returns:
            Emissions produced by this frame
        """
        if now_ms is None:
            now_ms = self.clock()
        self.state, emissions = step(self.state, sample, now_ms, self.config)
        for emission in emissions:
            if emission.kind == EmissionKind.LETTER:
                logger.debug("Letter %r from %r", emission.character, emission.pattern)
            if self.sink is not None:
                self.sink(emission.message)
        return emissions

    @property
    def current_message(self) -> str:
        """Completed words, each followed by a space."""
        return self.state.message

    @property
    def current_word(self) -> str:
        return self.state.current_word

    @property
    def current_pattern(self) -> str:
        return self.state.pattern

    @property
    def eye_state(self) -> EyeState:
        return self.state.eye_state


# =============================================================================
# FACE TRACKER LIFECYCLE
# =============================================================================

class BlinkFaceTracker:
    """
    Owns one decoder per tracked face appearance.

    A new face gets a fresh decoder; a face that is only missing for some
    frames keeps its decoder; a face that is gone for good drops it.
    """

    def __init__(self, sink: Optional[Callable[[str], None]] = None,
                 config: Optional[DecoderConfig] = None,
                 clock: Callable[[], float] = wall_clock_ms):
        self.sink = sink
        self.config = config or DEFAULT_CONFIG
        self.clock = clock
        self.decoder: Optional[BlinkDecoder] = None
        self.face_id: Optional[int] = None
        self.last_message = ""

    @property
    def is_tracking(self) -> bool:
        return self.decoder is not None

    def _notify(self, message: str):
        self.last_message = message
        if self.sink is not None:
            self.sink(message)

    def on_new_item(self, face_id: int = 0):
        """A face appeared: start decoding from scratch."""
        logger.info("Tracking face %s", face_id)
        self.face_id = face_id
        self.decoder = BlinkDecoder(sink=self._notify, config=self.config, clock=self.clock)

    def on_update(self, sample: EyeSample, now_ms: Optional[float] = None) -> List[Emission]:
        """Feed one frame of the tracked face."""
        if self.decoder is None:
            logger.debug("Frame ignored, no face is tracked")
            return []
        return self.decoder.process(sample, now_ms)

    def on_missing(self):
        """The face was not detected in this frame; keep the decoder."""
        logger.debug("Face %s missing from frame", self.face_id)

    def on_done(self):
        """The face is gone for good: discard the decoder state."""
        logger.info("Face %s gone, decoder discarded", self.face_id)
        self.decoder = None
        self.face_id = None

    def reset(self):
        """Drop the decoder and forget the last message."""
        self.on_done()
        self.last_message = ""


# =============================================================================
# SIMULATION
# =============================================================================

def encode_message(text: str, config: Optional[DecoderConfig] = None,
                   dot_ms: float = 300.0, dash_ms: Optional[float] = None,
                   intra_gap_ms: float = 500.0, frame_ms: float = 50.0,
                   start_ms: float = 0.0) -> List[Tuple[float, EyeSample]]:
    """
    Turn text into a frame-by-frame blink schedule for the decoder.

    Each symbol is a closed interval (short for a dot, long for a dash)
    followed by an open interval: `intra_gap_ms` inside a letter, a letter
    space after the last symbol of a letter and a word space after the last
    letter of a word.

    Args:
        text: Letters, digits and spaces
        config: Decoder configuration the schedule must satisfy
        dot_ms: Closed duration of a dot
        dash_ms: Closed duration of a dash (defaults to dash threshold + 500)
        intra_gap_ms: Open duration between symbols of one letter
        frame_ms: Sampling period
        start_ms: Timestamp of the first frame

    Returns:
        List of (timestamp_ms, EyeSample) frames

    Raises:
        ValueError: if a character has no Morse code, or the timings would
            not decode back to `text` under `config`
    """
    config = config or DEFAULT_CONFIG
    if dash_ms is None:
        dash_ms = config.dash_duration_ms + 500.0
    if frame_ms <= 0:
        raise ValueError(f"frame_ms must be positive, got {frame_ms}")
    if math.ceil(dot_ms / frame_ms) * frame_ms > config.dash_duration_ms:
        raise ValueError(
            f"dot_ms ({dot_ms}) at a {frame_ms} ms frame period would decode as a dash"
        )
    if dash_ms <= config.dash_duration_ms:
        raise ValueError(
            f"dash_ms ({dash_ms}) must exceed dash_duration_ms ({config.dash_duration_ms})"
        )
    if intra_gap_ms + frame_ms >= config.letter_space_ms:
        raise ValueError(
            f"intra_gap_ms ({intra_gap_ms}) plus one frame would end the letter"
        )
    letter_gap_ms = config.letter_space_ms + 2 * frame_ms
    word_gap_ms = config.word_space_ms + 2 * frame_ms

    closed = EyeSample(left=0.0, right=0.0)
    opened = EyeSample(left=1.0, right=1.0)
    frames: List[Tuple[float, EyeSample]] = []
    now = start_ms

    def hold(sample: EyeSample, duration_ms: float):
        nonlocal now
        end = now + duration_ms
        while now < end:
            frames.append((now, sample))
            now += frame_ms

    words = text.upper().split()
    for word_index, word in enumerate(words):
        for letter_index, char in enumerate(word):
            if char not in CHARACTER_TO_MORSE:
                raise ValueError(f"Character {char!r} has no Morse code")
            code = CHARACTER_TO_MORSE[char]
            for symbol_index, symbol in enumerate(code):
                hold(closed, dash_ms if symbol == Symbol.DASH.value else dot_ms)
                if symbol_index < len(code) - 1:
                    hold(opened, intra_gap_ms)
            if letter_index < len(word) - 1:
                hold(opened, letter_gap_ms)
        hold(opened, word_gap_ms)

    # one more open frame so the last threshold crossing is observed
    frames.append((now, opened))
    return frames


def decode_frames(frames: List[Tuple[float, EyeSample]],
                  config: Optional[DecoderConfig] = None) -> str:
    """Run a frame schedule through a fresh decoder and return the message."""
    if not frames:
        return ""
    config = config or DEFAULT_CONFIG
    state = DecoderState.initial(frames[0][0])
    for now_ms, sample in frames:
        state, _ = step(state, sample, now_ms, config)
    return state.message + state.current_word

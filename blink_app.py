"""
Real-Time Eye-Blink to Morse Code Application
=============================================
MediaPipe FaceLandmarker + YOLO-cls + Streamlit

Feeds per-eye open probabilities from a webcam into the blink-duration
Morse decoder and shows the decoded message. The eye probability of each
eye is its normalized Eye Aspect Ratio, fused with a YOLO eye-state
classifier when a model is available.
"""

import cv2
import numpy as np
import mediapipe as mp
from mediapipe.tasks import python as mp_tasks
from mediapipe.tasks.python import vision as mp_vision
from mediapipe import Image as MpImage
import streamlit as st
from ultralytics import YOLO
from dataclasses import dataclass, field, fields, replace
from typing import Optional, Tuple, List
import logging
import time
import urllib.request
import os

from blink_decoder import (
    MORSE_CODE_TABLE,
    BlinkFaceTracker,
    DecoderConfig,
    EyeSample,
    EyeState,
)


logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS & CONFIGURATION
# =============================================================================

# MediaPipe FaceMesh eye landmark indices
# Left eye landmarks (from user's perspective, right side of image)
LEFT_EYE_LANDMARKS = [362, 385, 387, 263, 373, 380]
# Right eye landmarks (from user's perspective, left side of image)
RIGHT_EYE_LANDMARKS = [33, 160, 158, 133, 153, 144]

# Extended eye region for cropping (includes eyebrow area)
LEFT_EYE_REGION = [362, 382, 381, 380, 374, 373, 390, 249, 263, 466, 388, 387, 386, 385, 384, 398]
RIGHT_EYE_REGION = [33, 7, 163, 144, 145, 153, 154, 155, 133, 173, 157, 158, 159, 160, 161, 246]

DECODER_KEYS = {f.name for f in fields(DecoderConfig)}


@dataclass
class AppConfig:
    """Camera adapter and UI configuration."""
    # Per-eye fusion
    alpha: float = 0.4  # Weight for YOLO open probability (1-alpha for EAR)

    # EAR normalization
    ear_min: float = 0.15  # EAR of a closed eye
    ear_max: float = 0.35  # EAR of an open eye

    # Face tracking
    face_lost_frames: int = 15  # Consecutive misses before the face is gone

    # Model paths
    yolo_model_path: str = "runs/classify/nano_100/weights/best.pt"
    use_gpu: bool = True

    # Camera
    camera_index: int = 0
    frame_width: int = 640
    frame_height: int = 480
    target_fps: int = 30

    decoder: DecoderConfig = field(default_factory=DecoderConfig)


@dataclass
class EyeData:
    """Container for eye-related data from a single frame."""
    left_ear: Optional[float] = None
    right_ear: Optional[float] = None
    left_norm: Optional[float] = None
    right_norm: Optional[float] = None
    left_crop: Optional[np.ndarray] = None
    right_crop: Optional[np.ndarray] = None
    landmarks_detected: bool = False


# =============================================================================
# EYE ANALYSIS MODULE
# =============================================================================

# Download FaceLandmarker model if not exists
FACE_LANDMARKER_MODEL_PATH = "face_landmarker.task"
FACE_LANDMARKER_MODEL_URL = "https://storage.googleapis.com/mediapipe-models/face_landmarker/face_landmarker/float16/1/face_landmarker.task"

def download_face_landmarker_model():
    """Download the FaceLandmarker model if it doesn't exist."""
    if not os.path.exists(FACE_LANDMARKER_MODEL_PATH):
        logger.info("Downloading FaceLandmarker model...")
        urllib.request.urlretrieve(FACE_LANDMARKER_MODEL_URL, FACE_LANDMARKER_MODEL_PATH)
        logger.info("Model downloaded to %s", FACE_LANDMARKER_MODEL_PATH)


def compute_ear(landmarks: np.ndarray, eye_indices: List[int]) -> Optional[float]:
    """
    Compute Eye Aspect Ratio (EAR) from landmarks.

    EAR = (||p2-p6|| + ||p3-p5||) / (2 * ||p1-p4||)

    Args:
        landmarks: Array of facial landmarks
        eye_indices: Indices of the 6 eye landmarks

    Returns:
        Eye Aspect Ratio, or None if the eye corners collapse
    """
    eye_points = landmarks[eye_indices]

    v1 = np.linalg.norm(eye_points[1] - eye_points[5])  # p2-p6
    v2 = np.linalg.norm(eye_points[2] - eye_points[4])  # p3-p5
    h = np.linalg.norm(eye_points[0] - eye_points[3])   # p1-p4

    if h < 1e-6:
        return None
    return float((v1 + v2) / (2.0 * h))


def normalize_ear(ear: Optional[float], ear_min: float = 0.15,
                  ear_max: float = 0.35) -> Optional[float]:
    """Map EAR onto [0, 1] (0=closed, 1=open); None stays None."""
    if ear is None:
        return None
    normalized = (ear - ear_min) / (ear_max - ear_min + 1e-6)
    return float(np.clip(normalized, 0.0, 1.0))


class EyeAnalyzer:
    """
    Eye landmark detection with MediaPipe FaceLandmarker (Tasks API).
    Computes per-eye EAR and crops eye regions for YOLO inference.
    """

    def __init__(self, min_detection_confidence: float = 0.5,
                 min_tracking_confidence: float = 0.5):
        download_face_landmarker_model()

        base_options = mp_tasks.BaseOptions(model_asset_path=FACE_LANDMARKER_MODEL_PATH)
        options = mp_vision.FaceLandmarkerOptions(
            base_options=base_options,
            running_mode=mp_vision.RunningMode.IMAGE,
            num_faces=1,
            min_face_detection_confidence=min_detection_confidence,
            min_face_presence_confidence=min_tracking_confidence,
            min_tracking_confidence=min_tracking_confidence,
            output_face_blendshapes=False,
            output_facial_transformation_matrixes=False
        )
        self.face_landmarker = mp_vision.FaceLandmarker.create_from_options(options)

    def crop_eye_region(self, frame: np.ndarray, landmarks: np.ndarray,
                        eye_region_indices: List[int], padding: float = 0.3) -> Optional[np.ndarray]:
        """
        Crop eye region from frame based on landmark coordinates.

        Args:
            frame: Input frame (BGR)
            landmarks: Facial landmarks as pixel coordinates
            eye_region_indices: Indices of landmarks defining eye region
            padding: Padding ratio around the eye region

        Returns:
            Cropped eye region or None if the region is empty
        """
        h, w = frame.shape[:2]
        eye_points = landmarks[eye_region_indices]

        x_min = int(np.min(eye_points[:, 0]))
        x_max = int(np.max(eye_points[:, 0]))
        y_min = int(np.min(eye_points[:, 1]))
        y_max = int(np.max(eye_points[:, 1]))

        pad_x = int((x_max - x_min) * padding)
        pad_y = int((y_max - y_min) * padding)

        x_min = max(0, x_min - pad_x)
        x_max = min(w, x_max + pad_x)
        y_min = max(0, y_min - pad_y)
        y_max = min(h, y_max + pad_y)

        crop = frame[y_min:y_max, x_min:x_max]
        if crop.size == 0:
            return None
        return crop

    def process_frame(self, frame: np.ndarray, config: AppConfig) -> Tuple[EyeData, np.ndarray]:
        """
        Process a frame to extract eye data and annotated frame.

        Args:
            frame: Input frame (BGR)
            config: Application configuration

        Returns:
            Tuple of (EyeData, annotated_frame)
        """
        eye_data = EyeData()
        annotated_frame = frame.copy()

        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        mp_image = MpImage(image_format=mp.ImageFormat.SRGB, data=rgb_frame)
        results = self.face_landmarker.detect(mp_image)

        if not results.face_landmarks:
            return eye_data, annotated_frame

        face_landmarks = results.face_landmarks[0]
        h, w = frame.shape[:2]

        # Pixel coordinates
        landmarks = np.array([
            [lm.x * w, lm.y * h, lm.z * w]
            for lm in face_landmarks
        ])

        eye_data.landmarks_detected = True
        eye_data.left_ear = compute_ear(landmarks, LEFT_EYE_LANDMARKS)
        eye_data.right_ear = compute_ear(landmarks, RIGHT_EYE_LANDMARKS)
        eye_data.left_norm = normalize_ear(eye_data.left_ear, config.ear_min, config.ear_max)
        eye_data.right_norm = normalize_ear(eye_data.right_ear, config.ear_min, config.ear_max)

        eye_data.left_crop = self.crop_eye_region(frame, landmarks, LEFT_EYE_REGION)
        eye_data.right_crop = self.crop_eye_region(frame, landmarks, RIGHT_EYE_REGION)

        self._draw_eye_contour(annotated_frame, landmarks, LEFT_EYE_LANDMARKS, (0, 255, 0))
        self._draw_eye_contour(annotated_frame, landmarks, RIGHT_EYE_LANDMARKS, (0, 255, 0))

        return eye_data, annotated_frame

    def _draw_eye_contour(self, frame: np.ndarray, landmarks: np.ndarray,
                          indices: List[int], color: Tuple[int, int, int]):
        """Draw eye landmarks and the contour connecting them."""
        points = landmarks[indices][:, :2].astype(int)
        for i in range(len(points)):
            pt1 = tuple(points[i])
            pt2 = tuple(points[(i + 1) % len(points)])
            cv2.circle(frame, pt1, 2, color, -1)
            cv2.line(frame, pt1, pt2, color, 1)

    def close(self):
        """Release resources."""
        if self.face_landmarker:
            self.face_landmarker.close()


# =============================================================================
# YOLO CLASSIFIER MODULE
# =============================================================================

class YOLOEyeClassifier:
    """
    Eye state classifier using a YOLO classification model.
    Gives the open probability of a single eye crop.
    """

    def __init__(self, model_path: str, use_gpu: bool = True):
        self.model_path = model_path
        self.use_gpu = use_gpu
        self.model = None
        self.class_names = ['closed', 'open']
        self._load_model()

    def _load_model(self):
        """Load the YOLO model; leave it unset if the weights are missing."""
        if not os.path.exists(self.model_path):
            logger.warning("YOLO weights not found at %s, using EAR only", self.model_path)
            return
        try:
            self.model = YOLO(self.model_path)
            if self.use_gpu:
                import torch
                if torch.cuda.is_available():
                    self.model.to('cuda')
                else:
                    logger.info("GPU not available, falling back to CPU")
                    self.use_gpu = False
        except Exception as e:
            logger.warning("Error loading YOLO model: %s", e)
            self.model = None

    @property
    def available(self) -> bool:
        return self.model is not None

    def open_probability(self, image: Optional[np.ndarray]) -> Optional[float]:
        """
        Classify an eye crop.

        Args:
            image: Eye crop image (BGR)

        Returns:
            Probability that the eye is open, or None if unavailable
        """
        if self.model is None or image is None or image.size == 0:
            return None

        try:
            if image.shape[0] < 32 or image.shape[1] < 32:
                image = cv2.resize(image, (64, 64))

            predictions = self.model(image, verbose=False)
            if not predictions or predictions[0].probs is None:
                return None

            class_probs = predictions[0].probs.data.cpu().numpy()
            # index 0 = closed, index 1 = open
            return float(class_probs[1])
        except Exception as e:
            logger.warning("YOLO inference error: %s", e)
            return None


def fuse_probabilities(yolo_prob: Optional[float], ear_prob: Optional[float],
                       alpha: float) -> Optional[float]:
    """
    Combine the two estimates of one eye.

    final = alpha * yolo + (1 - alpha) * ear when both exist, otherwise
    whichever exists, otherwise None (unknown).
    """
    if yolo_prob is None:
        return ear_prob
    if ear_prob is None:
        return yolo_prob
    return float(np.clip(alpha * yolo_prob + (1 - alpha) * ear_prob, 0.0, 1.0))


# =============================================================================
# FRAME SAMPLER
# =============================================================================

class EyeProbabilitySampler:
    """Turns camera frames into per-eye open probabilities."""

    def __init__(self, config: AppConfig, eye_analyzer: Optional[EyeAnalyzer] = None,
                 yolo_classifier: Optional[YOLOEyeClassifier] = None):
        self.config = config
        self.eye_analyzer = eye_analyzer or EyeAnalyzer()
        self.yolo_classifier = yolo_classifier or YOLOEyeClassifier(
            config.yolo_model_path, config.use_gpu
        )

    def sample(self, frame: np.ndarray) -> Tuple[bool, EyeSample, np.ndarray]:
        """
        Args:
            frame: Input frame (BGR)

        Returns:
            Tuple of (face_detected, EyeSample, annotated_frame)
        """
        eye_data, annotated = self.eye_analyzer.process_frame(frame, self.config)
        if not eye_data.landmarks_detected:
            return False, EyeSample(), annotated

        left = fuse_probabilities(
            self.yolo_classifier.open_probability(eye_data.left_crop),
            eye_data.left_norm, self.config.alpha
        )
        right = fuse_probabilities(
            self.yolo_classifier.open_probability(eye_data.right_crop),
            eye_data.right_norm, self.config.alpha
        )
        return True, EyeSample(left=left, right=right), annotated

    def close(self):
        self.eye_analyzer.close()


# =============================================================================
# MAIN PIPELINE
# =============================================================================

class EyeBlinkMorseSystem:
    """
    Connects the frame sampler to the face tracker and its decoder.
    """

    def __init__(self, config: Optional[AppConfig] = None, sink=None,
                 sampler: Optional[EyeProbabilitySampler] = None):
        """
        Args:
            config: Application configuration (uses defaults if None)
            sink: Called with the decoded message on every commit
            sampler: Frame sampler (built from config if None)
        """
        self.config = config or AppConfig()
        self.sampler = sampler or EyeProbabilitySampler(self.config)
        self.tracker = BlinkFaceTracker(sink=sink, config=self.config.decoder)

        self.missed_frames = 0
        self.next_face_id = 0
        self.frame_count = 0
        self.processing_time_ms = 0.0

    def process_frame(self, frame: np.ndarray) -> Tuple[np.ndarray, dict]:
        """
        Process a single frame through the entire pipeline.

        Args:
            frame: Input frame (BGR)

        Returns:
            Tuple of (annotated_frame, results_dict)
        """
        start_time = time.time()
        face_detected, sample, annotated_frame = self.sampler.sample(frame)

        if face_detected:
            self.missed_frames = 0
            if not self.tracker.is_tracking:
                self.tracker.on_new_item(self.next_face_id)
                self.next_face_id += 1
            self.tracker.on_update(sample)
        elif self.tracker.is_tracking:
            self.missed_frames += 1
            self.tracker.on_missing()
            if self.missed_frames >= self.config.face_lost_frames:
                self.tracker.on_done()

        results = self.snapshot(face_detected, sample)

        self.frame_count += 1
        self.processing_time_ms = (time.time() - start_time) * 1000
        annotated_frame = self._add_overlays(annotated_frame, results)
        return annotated_frame, results

    def snapshot(self, face_detected: bool, sample: EyeSample) -> dict:
        """Current decoder state as a plain dict for display."""
        decoder = self.tracker.decoder
        results = {
            'face_detected': face_detected,
            'tracking': decoder is not None,
            'left_prob': sample.left,
            'right_prob': sample.right,
            'eye_state': EyeState.UNKNOWN,
            'morse_sequence': '',
            'current_word': '',
            'decoded_text': self.tracker.last_message,
        }
        if decoder is not None:
            results['eye_state'] = decoder.eye_state if face_detected else EyeState.UNKNOWN
            results['morse_sequence'] = decoder.current_pattern
            results['current_word'] = decoder.current_word
            results['decoded_text'] = decoder.current_message + decoder.current_word
        return results

    def _add_overlays(self, frame: np.ndarray, results: dict) -> np.ndarray:
        """Add status overlays to the frame."""
        h, w = frame.shape[:2]

        state = results['eye_state']
        state_color = (0, 255, 0) if state == EyeState.OPEN else (0, 0, 255)
        cv2.putText(frame, f"Eyes: {state.value}",
                    (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, state_color, 2)

        for row, key in enumerate(('left_prob', 'right_prob')):
            value = results[key]
            label = "---" if value is None else f"{value:.2f}"
            cv2.putText(frame, f"{key.split('_')[0].title()}: {label}",
                        (10, 60 + 25 * row), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)

        if results['morse_sequence']:
            cv2.putText(frame, f"Morse: {results['morse_sequence']}",
                        (10, h - 60), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 255, 255), 2)

        if results['decoded_text']:
            cv2.putText(frame, f"Text: {results['decoded_text'][-30:]}",
                        (10, h - 25), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 0), 2)

        if not results['tracking']:
            cv2.putText(frame, "NO FACE",
                        (w // 2 - 60, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.8, (0, 165, 255), 2)

        return frame

    def reset_decoder(self):
        """Start over as if a new face had appeared."""
        self.tracker.reset()
        self.missed_frames = 0

    def update_config(self, **kwargs):
        """Update configuration parameters; decoder keys rebuild the decoder config."""
        decoder_changes = {k: v for k, v in kwargs.items() if k in DECODER_KEYS}
        for key, value in kwargs.items():
            if key not in DECODER_KEYS and hasattr(self.config, key):
                setattr(self.config, key, value)

        if decoder_changes:
            decoder_config = replace(self.config.decoder, **decoder_changes)
            if decoder_config != self.config.decoder:
                self.config.decoder = decoder_config
                self.tracker.config = decoder_config
                if self.tracker.decoder is not None:
                    self.tracker.decoder.config = decoder_config

    def close(self):
        """Release resources."""
        self.sampler.close()


# =============================================================================
# STREAMLIT APPLICATION
# =============================================================================

def start_detection():
    """Callback for start button."""
    st.session_state.is_running = True

def stop_detection():
    """Callback for stop button."""
    st.session_state.is_running = False

def reset_decoder_cb():
    """Callback for reset decoder button."""
    st.session_state.reset_decoder_flag = True

def message_sink(message: str):
    """Receives the full decoded message on every letter or word."""
    st.session_state.decoded_text = message


def create_streamlit_app():
    """
    Create and run the Streamlit application.
    """
    st.set_page_config(
        page_title="Eye-Blink Morse Decoder",
        page_icon="👁️",
        layout="wide"
    )

    st.title("👁️ Eye-Blink Morse Decoder")
    st.markdown("*Short blink = dot, long blink = dash, keep your eyes open to finish a letter or a word*")

    # Initialize session state
    if 'system' not in st.session_state:
        st.session_state.system = None
    if 'is_running' not in st.session_state:
        st.session_state.is_running = False
    if 'decoded_text' not in st.session_state:
        st.session_state.decoded_text = ""
    if 'reset_decoder_flag' not in st.session_state:
        st.session_state.reset_decoder_flag = False

    defaults = AppConfig()

    # Sidebar controls
    with st.sidebar:
        st.header("⚙️ Settings")

        st.subheader("Model Configuration")
        use_gpu = st.checkbox("Use GPU", value=defaults.use_gpu)
        alpha = st.slider(
            "Alpha (YOLO weight)",
            min_value=0.0, max_value=1.0, value=defaults.alpha, step=0.05,
            help="Weight for YOLO open probability. (1-alpha) is used for EAR."
        )

        st.subheader("Timing Settings")
        eye_closed_threshold = st.slider(
            "Eye Closed Threshold",
            min_value=0.1, max_value=0.9, value=defaults.decoder.eye_closed_threshold, step=0.05,
            help="An eye counts as open when its probability is above this value."
        )
        dash_duration_ms = st.slider(
            "Dash Duration (ms)",
            min_value=300, max_value=3000, value=int(defaults.decoder.dash_duration_ms), step=100,
            help="Eyes closed longer than this produce a dash."
        )
        letter_space_ms = st.slider(
            "Letter Space (ms)",
            min_value=500, max_value=4000, value=int(defaults.decoder.letter_space_ms), step=100,
            help="Eyes open this long finish the current letter."
        )
        word_space_ms = st.slider(
            "Word Space (ms)",
            min_value=1000, max_value=8000, value=int(defaults.decoder.word_space_ms), step=100,
            help="Eyes open this long finish the current word."
        )
        word_space_ms = max(word_space_ms, letter_space_ms)

        st.subheader("EAR Normalization")
        ear_min = st.slider("EAR Min", 0.05, 0.25, defaults.ear_min, 0.01)
        ear_max = st.slider("EAR Max", 0.25, 0.50, defaults.ear_max, 0.01)

        st.divider()
        st.button("Reset Decoder", use_container_width=True, key="reset_decoder_btn", on_click=reset_decoder_cb)

    # Main content area
    col_video, col_info = st.columns([2, 1])

    with col_video:
        st.subheader("📹 Live Video Feed")
        video_placeholder = st.empty()

        btn_col1, btn_col2 = st.columns(2)
        with btn_col1:
            st.button("▶️ Start Detection", use_container_width=True, key="start_btn", on_click=start_detection)
        with btn_col2:
            st.button("⏹️ Stop Detection", use_container_width=True, key="stop_btn", on_click=stop_detection)

    with col_info:
        st.subheader("📊 Status")
        eye_state_display = st.empty()
        probs_display = st.empty()

        st.subheader("📡 Current Morse")
        morse_display = st.empty()

        st.subheader("📝 Decoded Message")
        text_display = st.empty()

    with st.expander("📖 Morse Code Reference"):
        columns = st.columns(4)
        morse_items = list(MORSE_CODE_TABLE.items())
        chunk_size = len(morse_items) // 4 + 1
        for i, col in enumerate(columns):
            with col:
                for code, char in morse_items[i * chunk_size:(i + 1) * chunk_size]:
                    st.text(f"{char}: {code}")

    # Initialize system
    if st.session_state.system is None:
        config = AppConfig(alpha=alpha, ear_min=ear_min, ear_max=ear_max, use_gpu=use_gpu)
        st.session_state.system = EyeBlinkMorseSystem(config, sink=message_sink)

    system = st.session_state.system
    system.update_config(
        alpha=alpha,
        ear_min=ear_min,
        ear_max=ear_max,
        eye_closed_threshold=eye_closed_threshold,
        dash_duration_ms=float(dash_duration_ms),
        letter_space_ms=float(letter_space_ms),
        word_space_ms=float(word_space_ms),
    )

    if st.session_state.reset_decoder_flag:
        system.reset_decoder()
        st.session_state.decoded_text = ""
        st.session_state.reset_decoder_flag = False

    # Video processing with while loop (no flickering)
    if st.session_state.is_running:
        cap = cv2.VideoCapture(system.config.camera_index)
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, system.config.frame_width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, system.config.frame_height)
        cap.set(cv2.CAP_PROP_FPS, system.config.target_fps)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        if cap.isOpened():
            try:
                while st.session_state.is_running:
                    ret, frame = cap.read()
                    if not ret:
                        st.error("Failed to capture frame from webcam")
                        break

                    frame = cv2.flip(frame, 1)
                    annotated_frame, results = system.process_frame(frame)

                    display_frame = cv2.cvtColor(annotated_frame, cv2.COLOR_BGR2RGB)
                    video_placeholder.image(display_frame, channels="RGB", use_container_width=True)

                    state_emoji = {EyeState.OPEN: "👁️", EyeState.CLOSED: "😑"}.get(results['eye_state'], "❔")
                    eye_state_display.metric("Eye State", f"{state_emoji} {results['eye_state'].value.upper()}")
                    probs_display.markdown(
                        f"Left: `{_format_prob(results['left_prob'])}` | "
                        f"Right: `{_format_prob(results['right_prob'])}`"
                    )

                    if results['morse_sequence']:
                        morse_display.code(results['morse_sequence'], language=None)
                    else:
                        morse_display.info("Waiting for blinks...")

                    decoded = results['decoded_text'] or st.session_state.decoded_text
                    if decoded.strip():
                        text_display.success(decoded)
                    else:
                        text_display.info("No text decoded yet")

                    time.sleep(0.001)

            except Exception as e:
                logger.exception("Detection loop failed")
                st.error(f"Error: {e}")
            finally:
                cap.release()
        else:
            st.error("Camera not available")
            st.session_state.is_running = False
    else:
        video_placeholder.info("👆 Click 'Start Detection' to begin")
        eye_state_display.metric("Eye State", "---")
        probs_display.markdown("Left: `---` | Right: `---`")
        morse_display.info("Waiting for input...")
        if st.session_state.decoded_text.strip():
            text_display.success(st.session_state.decoded_text)
        else:
            text_display.info("No text decoded yet")


def _format_prob(value: Optional[float]) -> str:
    return "---" if value is None else f"{value:.2f}"


# =============================================================================
# ENTRY POINT
# =============================================================================

if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    create_streamlit_app()

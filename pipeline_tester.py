"""
Pipeline Tester for the Eye-Blink Morse Decoder
===============================================

Streamlit-based interactive testing for each component:
1. Decoder Simulation (typed text -> blink schedule -> decoder)
2. EAR (Eye Aspect Ratio) Analysis
3. YOLO Eye State Classification
4. Full Pipeline Integration Test

Run with: streamlit run pipeline_tester.py
"""

import streamlit as st
import cv2
import numpy as np
import pandas as pd
import time
from typing import List

from blink_decoder import (
    DecoderConfig,
    DecoderState,
    EmissionKind,
    EyeSample,
    encode_message,
    step,
)
from blink_app import (
    AppConfig,
    EyeAnalyzer,
    EyeBlinkMorseSystem,
    EyeProbabilitySampler,
    YOLOEyeClassifier,
)


# =============================================================================
# CACHED RESOURCE LOADERS
# =============================================================================

@st.cache_resource
def load_eye_analyzer():
    """Load MediaPipe FaceLandmarker with caching."""
    return EyeAnalyzer()


@st.cache_resource
def load_yolo_classifier(model_path: str, use_gpu: bool):
    """Load YOLO classifier with caching."""
    return YOLOEyeClassifier(model_path, use_gpu)


def open_camera(config: AppConfig):
    cap = cv2.VideoCapture(config.camera_index)
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, config.frame_width)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, config.frame_height)
    cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
    return cap


# =============================================================================
# DECODER SIMULATION PAGE
# =============================================================================

def simulate(text: str, config: DecoderConfig, dot_ms: float, dash_ms: float,
             intra_gap_ms: float, frame_ms: float, dropout: float, seed: int) -> dict:
    """
    Replay `text` through the decoder.

    A `dropout` fraction of per-eye values is replaced by None to exercise
    the unknown-sample substitution.
    """
    frames = encode_message(text, config, dot_ms=dot_ms, dash_ms=dash_ms,
                            intra_gap_ms=intra_gap_ms, frame_ms=frame_ms)
    rng = np.random.default_rng(seed)

    state = DecoderState.initial(frames[0][0])
    rows: List[dict] = []
    timeline = {'time_ms': [], 'closed': []}
    for now_ms, sample in frames:
        if dropout > 0:
            sample = EyeSample(
                left=None if rng.random() < dropout else sample.left,
                right=None if rng.random() < dropout else sample.right,
            )
        state, emissions = step(state, sample, now_ms, config)
        timeline['time_ms'].append(now_ms)
        timeline['closed'].append(1 if state.is_closed else 0)
        for emission in emissions:
            rows.append({
                'time_ms': now_ms,
                'kind': emission.kind.value,
                'pattern': emission.pattern if emission.kind == EmissionKind.LETTER else '',
                'character': emission.character or '',
                'message': repr(emission.message),
            })

    return {
        'frames': len(frames),
        'decoded': state.message + state.current_word,
        'emissions': rows,
        'timeline': timeline,
    }


def render_decoder_test():
    """Render decoder simulation page."""
    st.header("Decoder Simulation")
    st.markdown("*Text -> blink timing -> duration state machine -> message*")

    defaults = DecoderConfig()

    with st.sidebar:
        st.subheader("Decoder Settings")
        dash_duration_ms = st.slider("Dash Duration (ms)", 300, 3000, int(defaults.dash_duration_ms), 100)
        letter_space_ms = st.slider("Letter Space (ms)", 500, 4000, int(defaults.letter_space_ms), 100)
        word_space_ms = st.slider("Word Space (ms)", 1000, 8000, int(defaults.word_space_ms), 100)

        st.subheader("Operator Timing")
        dot_ms = st.slider("Dot Blink (ms)", 50, 1500, 300, 50)
        dash_ms = st.slider("Dash Blink (ms)", 300, 4000, 2000, 50)
        intra_gap_ms = st.slider("Gap Inside Letter (ms)", 50, 2000, 500, 50)
        frame_ms = st.slider("Frame Period (ms)", 10, 200, 33, 1)
        dropout = st.slider("Unknown Sample Rate", 0.0, 0.9, 0.0, 0.05)

    try:
        config = DecoderConfig(
            dash_duration_ms=float(dash_duration_ms),
            letter_space_ms=float(letter_space_ms),
            word_space_ms=float(word_space_ms),
        )
    except ValueError as e:
        st.error(str(e))
        return

    input_text = st.text_input("Message", value=st.session_state.get('sim_input', 'SOS 73'))
    st.session_state.sim_input = input_text

    if st.button("Run Simulation", type="primary"):
        start = time.time()
        try:
            result = simulate(input_text, config, dot_ms, dash_ms, intra_gap_ms,
                              frame_ms, dropout, seed=len(st.session_state.get('sim_history', [])))
        except ValueError as e:
            st.error(str(e))
            return
        result['time_ms'] = (time.time() - start) * 1000
        result['input'] = input_text
        result['match'] = result['decoded'].strip() == " ".join(input_text.upper().split())
        st.session_state.sim_last_result = result
        st.session_state.setdefault('sim_history', []).insert(0, result)

    if 'sim_last_result' in st.session_state:
        result = st.session_state.sim_last_result

        m1, m2, m3 = st.columns(3)
        m1.metric("Frames", result['frames'])
        m2.metric("Round Trip", "OK" if result['match'] else "Mismatch")
        m3.metric("Decode Time", f"{result['time_ms']:.1f} ms")

        st.markdown("**Decoded Output:**")
        st.code(result['decoded'], language=None)

        st.subheader("Eye State Timeline")
        st.area_chart(pd.DataFrame(result['timeline']).set_index('time_ms'), height=150)

        st.subheader("Emissions")
        if result['emissions']:
            st.dataframe(pd.DataFrame(result['emissions']), use_container_width=True, hide_index=True)
        else:
            st.info("Nothing emitted")

    history = st.session_state.get('sim_history', [])
    if history:
        st.divider()
        st.subheader("Simulation History")
        df = pd.DataFrame([
            {'Input': r['input'], 'Decoded': r['decoded'], 'Match': r['match'], 'Frames': r['frames']}
            for r in history[:20]
        ])
        st.dataframe(df, use_container_width=True, hide_index=True)
        if st.button("Clear History"):
            st.session_state.sim_history = []
            st.session_state.pop('sim_last_result', None)
            st.rerun()


# =============================================================================
# EAR ANALYSIS TEST PAGE
# =============================================================================

def render_ear_test():
    """Render EAR analysis test page."""
    st.header("Eye Aspect Ratio (EAR) Analysis Test")

    if 'ear_running' not in st.session_state:
        st.session_state.ear_running = False
    if 'ear_stats' not in st.session_state:
        st.session_state.ear_stats = {'frames': 0, 'detected': 0, 'unknown': 0, 'left': [], 'right': []}

    config = AppConfig()

    with st.sidebar:
        st.subheader("EAR Settings")
        config.ear_min = st.slider("EAR Min (closed)", 0.05, 0.25, config.ear_min, 0.01)
        config.ear_max = st.slider("EAR Max (open)", 0.25, 0.50, config.ear_max, 0.01)

    with st.spinner("Loading FaceLandmarker..."):
        try:
            eye_analyzer = load_eye_analyzer()
            st.success("FaceLandmarker loaded")
        except Exception as e:
            st.error(f"Load failed: {e}")
            return

    ctrl_cols = st.columns(3)
    if ctrl_cols[0].button("Start", use_container_width=True, type="primary"):
        st.session_state.ear_running = True
    if ctrl_cols[1].button("Stop", use_container_width=True):
        st.session_state.ear_running = False
    if ctrl_cols[2].button("Reset Stats", use_container_width=True):
        st.session_state.ear_stats = {'frames': 0, 'detected': 0, 'unknown': 0, 'left': [], 'right': []}

    col_video, col_metrics = st.columns([2, 1])
    with col_video:
        st.subheader("Live Feed")
        video_placeholder = st.empty()
        st.subheader("Normalized EAR History")
        chart_placeholder = st.empty()
    with col_metrics:
        st.subheader("Real-time EAR")
        left_display = st.empty()
        right_display = st.empty()
        st.subheader("Statistics")
        stats_display = st.empty()

    if not st.session_state.ear_running:
        video_placeholder.info("Click 'Start' to begin EAR analysis test")
        return

    cap = open_camera(config)
    if not cap.isOpened():
        st.error("Cannot open webcam")
        st.session_state.ear_running = False
        return

    try:
        while st.session_state.ear_running:
            ret, frame = cap.read()
            if not ret:
                continue

            frame = cv2.flip(frame, 1)
            eye_data, annotated = eye_analyzer.process_frame(frame, config)

            stats = st.session_state.ear_stats
            stats['frames'] += 1
            if eye_data.landmarks_detected:
                stats['detected'] += 1
                if eye_data.left_norm is None or eye_data.right_norm is None:
                    stats['unknown'] += 1
                stats['left'].append(eye_data.left_norm)
                stats['right'].append(eye_data.right_norm)
                stats['left'] = stats['left'][-500:]
                stats['right'] = stats['right'][-500:]

            display_frame = cv2.cvtColor(annotated, cv2.COLOR_BGR2RGB)
            video_placeholder.image(display_frame, channels="RGB", use_container_width=True)

            if eye_data.landmarks_detected:
                left_display.metric("Left EAR", "---" if eye_data.left_ear is None else f"{eye_data.left_ear:.4f}")
                right_display.metric("Right EAR", "---" if eye_data.right_ear is None else f"{eye_data.right_ear:.4f}")
            else:
                left_display.metric("Left EAR", "---")
                right_display.metric("Right EAR", "---")

            stats_display.markdown(f"""
            | Metric | Value |
            |--------|-------|
            | Frames | {stats['frames']} |
            | Detection Rate | {100*stats['detected']/stats['frames']:.1f}% |
            | Unknown Eye Frames | {stats['unknown']} |
            """)

            if len(stats['left']) > 10:
                chart_data = pd.DataFrame({'Left': stats['left'][-100:], 'Right': stats['right'][-100:]})
                chart_placeholder.line_chart(chart_data, height=200)
    finally:
        cap.release()


# =============================================================================
# YOLO CLASSIFICATION TEST PAGE
# =============================================================================

def render_yolo_test():
    """Render YOLO eye classification test page."""
    st.header("YOLO Eye State Classification Test")

    if 'yolo_running' not in st.session_state:
        st.session_state.yolo_running = False

    config = AppConfig()

    with st.sidebar:
        st.subheader("YOLO Settings")
        use_gpu = st.checkbox("Use GPU", value=True)

    col_status = st.columns(2)
    with col_status[0]:
        classifier = load_yolo_classifier(config.yolo_model_path, use_gpu)
        if classifier.available:
            st.success(f"YOLO loaded | GPU: {classifier.use_gpu}")
        else:
            st.error(f"YOLO weights not available at {config.yolo_model_path}")
            return
    with col_status[1]:
        with st.spinner("Loading FaceLandmarker..."):
            try:
                eye_analyzer = load_eye_analyzer()
                st.success("FaceLandmarker loaded")
            except Exception as e:
                st.error(f"FaceLandmarker load failed: {e}")
                return

    ctrl_cols = st.columns(2)
    if ctrl_cols[0].button("Start", use_container_width=True, type="primary"):
        st.session_state.yolo_running = True
    if ctrl_cols[1].button("Stop", use_container_width=True):
        st.session_state.yolo_running = False

    col_video, col_metrics = st.columns([2, 1])
    with col_video:
        video_placeholder = st.empty()
    with col_metrics:
        probs_display = st.empty()
        timing_display = st.empty()

    st.subheader("Eye Crops")
    crop_cols = st.columns(2)
    left_crop_display = crop_cols[0].empty()
    right_crop_display = crop_cols[1].empty()

    if not st.session_state.yolo_running:
        video_placeholder.info("Click 'Start' to begin YOLO test")
        return

    cap = open_camera(config)
    if not cap.isOpened():
        st.error("Cannot open webcam")
        st.session_state.yolo_running = False
        return

    try:
        while st.session_state.yolo_running:
            ret, frame = cap.read()
            if not ret:
                continue

            frame = cv2.flip(frame, 1)
            eye_data, annotated = eye_analyzer.process_frame(frame, config)
            video_placeholder.image(cv2.cvtColor(annotated, cv2.COLOR_BGR2RGB),
                                    channels="RGB", use_container_width=True)
            if not eye_data.landmarks_detected:
                probs_display.warning("No face detected")
                continue

            start = time.time()
            left = classifier.open_probability(eye_data.left_crop)
            right = classifier.open_probability(eye_data.right_crop)
            elapsed_ms = (time.time() - start) * 1000

            probs_display.markdown(f"""
            | Eye | Open Probability |
            |-----|------------------|
            | Left | {'---' if left is None else f'{left:.2%}'} |
            | Right | {'---' if right is None else f'{right:.2%}'} |
            """)
            timing_display.metric("Inference", f"{elapsed_ms:.1f} ms")

            if eye_data.left_crop is not None:
                left_crop_display.image(cv2.cvtColor(eye_data.left_crop, cv2.COLOR_BGR2RGB), caption="Left")
            if eye_data.right_crop is not None:
                right_crop_display.image(cv2.cvtColor(eye_data.right_crop, cv2.COLOR_BGR2RGB), caption="Right")
    finally:
        cap.release()


# =============================================================================
# FULL PIPELINE TEST PAGE
# =============================================================================

def render_full_pipeline_test():
    """Render full pipeline integration test page."""
    st.header("Full Pipeline Integration Test")
    st.markdown("*Eye Analysis -> YOLO -> Per-Eye Fusion -> Blink Decoder*")

    if 'pipeline_running' not in st.session_state:
        st.session_state.pipeline_running = False
    if 'pipeline_messages' not in st.session_state:
        st.session_state.pipeline_messages = []

    config = AppConfig()
    with st.sidebar:
        st.subheader("Pipeline Settings")
        config.alpha = st.slider("Alpha (YOLO weight)", 0.0, 1.0, config.alpha, 0.05)

    try:
        sampler = EyeProbabilitySampler(
            config,
            eye_analyzer=load_eye_analyzer(),
            yolo_classifier=load_yolo_classifier(config.yolo_model_path, config.use_gpu),
        )
    except Exception as e:
        st.error(f"Component load failed: {e}")
        return

    def record(message: str):
        st.session_state.pipeline_messages.insert(0, {'time': time.strftime('%H:%M:%S'), 'message': repr(message)})

    if 'pipeline_system' not in st.session_state:
        st.session_state.pipeline_system = EyeBlinkMorseSystem(config, sink=record, sampler=sampler)
    system = st.session_state.pipeline_system
    system.update_config(alpha=config.alpha)

    ctrl_cols = st.columns(3)
    if ctrl_cols[0].button("Start Pipeline", use_container_width=True, type="primary"):
        st.session_state.pipeline_running = True
    if ctrl_cols[1].button("Stop", use_container_width=True):
        st.session_state.pipeline_running = False
    if ctrl_cols[2].button("Reset Decoder", use_container_width=True):
        system.reset_decoder()
        st.session_state.pipeline_messages = []

    col_video, col_metrics = st.columns([2, 1])
    with col_video:
        video_placeholder = st.empty()
    with col_metrics:
        state_display = st.empty()
        morse_display = st.empty()
        timing_display = st.empty()
    st.subheader("Sink Notifications")
    sink_display = st.empty()

    if not st.session_state.pipeline_running:
        video_placeholder.info("Click 'Start Pipeline' to begin full integration test")
        if st.session_state.pipeline_messages:
            sink_display.dataframe(pd.DataFrame(st.session_state.pipeline_messages),
                                   use_container_width=True, hide_index=True)
        return

    cap = open_camera(config)
    if not cap.isOpened():
        st.error("Cannot open webcam")
        st.session_state.pipeline_running = False
        return

    try:
        while st.session_state.pipeline_running:
            ret, frame = cap.read()
            if not ret:
                continue

            frame = cv2.flip(frame, 1)
            annotated, results = system.process_frame(frame)
            video_placeholder.image(cv2.cvtColor(annotated, cv2.COLOR_BGR2RGB),
                                    channels="RGB", use_container_width=True)
            state_display.metric("Eye State", results['eye_state'].value.upper())
            morse_display.code(results['morse_sequence'] or " ", language=None)
            timing_display.metric("Frame Time", f"{system.processing_time_ms:.1f} ms")
            if st.session_state.pipeline_messages:
                sink_display.dataframe(pd.DataFrame(st.session_state.pipeline_messages[:20]),
                                       use_container_width=True, hide_index=True)
    finally:
        cap.release()


# =============================================================================
# MAIN APP
# =============================================================================

def main():
    """Main Streamlit application."""
    st.set_page_config(
        page_title="Pipeline Tester - Eye-Blink Morse",
        page_icon="",
        layout="wide"
    )

    st.title("Eye-Blink Morse Decoder - Pipeline Tester")
    st.markdown("*Interactive testing for each system component*")

    st.sidebar.title("Navigation")
    page = st.sidebar.radio(
        "Select Test:",
        [
            "Decoder Simulation",
            "EAR Analysis",
            "YOLO Classification",
            "Full Pipeline"
        ]
    )
    st.sidebar.divider()

    if page == "Decoder Simulation":
        render_decoder_test()
    elif page == "EAR Analysis":
        render_ear_test()
    elif page == "YOLO Classification":
        render_yolo_test()
    elif page == "Full Pipeline":
        render_full_pipeline_test()


if __name__ == "__main__":
    main()

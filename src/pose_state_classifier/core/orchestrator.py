"""Python based runner."""

import logging
from typing import Optional

import cv2

from pose_state_classifier.classifiers.sequence import build_classifier
from pose_state_classifier.core import config, export
from pose_state_classifier.core.controller import StateController
from pose_state_classifier.detection.pose_detector import PoseDetector
from pose_state_classifier.display import utils

logger = logging.getLogger(__name__)


def run(
    camera_index: int = config.CAMERA_INDEX,
    model_path: Optional[str] = None,
    pose_model: str = config.POSE_MODEL,
    window_size: int = config.WINDOW_SIZE,
    display: bool = False,
    source_id: str = config.LSL_SOURCE_ID,
) -> None:
    """This function is responsible for the main processing of the pipeline.

    The pipeline first waits for the user to start the lsl stream in LabRecorder. Enter "c" once complete.
    The classifier variant is then chosen once: the sequence model if it loads, the head tilt heuristic otherwise.
    For every captured frame the main subject's joints are detected and handed to the state controller, which
    classifies the sliding window on a worker thread. Every published state is streamed to LabStreamingLayer.
    If display argument was provided, a live display with a skeleton overlay and the current state also appears.
    The pipeline will run until the user presses "q" or the camera stops delivering frames.

    Args:
        camera_index: opencv index of the camera to open.
        model_path: path to an .onnx sequence classifier, or None for the heuristic.
        pose_model: YOLO pose weights.
        window_size: frames per classification window.
        display: cli user input boolean to display live output with skeleton overlay.
        source_id: lsl source identifier.
    """
    lsl_outlet = export.create_label_outlet(source_id)

    while True:
        key = input(
            "Press 'c' to continue after starting lsl stream in LabRecorder: "
        ).strip()
        if key == "c":
            break

    detector = PoseDetector(pose_model).load_model()
    classifier = build_classifier(model_path)
    controller = StateController(classifier, window_size=window_size)
    controller.channel.subscribe(lambda label: export.push_label(lsl_outlet, label))
    controller.channel.subscribe(lambda label: logger.info("State: %s", label))

    capture = cv2.VideoCapture(camera_index)
    if not capture.isOpened():
        export.push_marker(lsl_outlet, "failed_camera_open")
        logger.error("Camera %s could not be opened", camera_index)
        raise SystemExit(1)
    export.push_marker(lsl_outlet, "camera_open")

    controller.start()
    print("Press 'q' to QUIT.")
    f = 0
    try:
        while True:
            ok, frame = capture.read()
            if not ok:
                export.push_marker(lsl_outlet, "failed_camera_read")
                logger.error("Failed camera read")
                break
            f += 1

            observation = detector.detect(frame)
            if observation.is_empty:
                logger.debug("Frame %d - no subject detected", f)
            controller.submit(observation)

            if display:
                label = controller.channel.value
                utils.render_skeleton(frame, observation, utils.state_color(label))
                utils.render_state(frame, label)
                cv2.imshow("Pose State", frame)
                key = cv2.waitKey(1) & 0xFF  # Non-blocking key press check
                if key == ord("q"):
                    print("You pressed 'q', quitting...")
                    export.push_marker(lsl_outlet, "quit_key_press")
                    break
    except KeyboardInterrupt:
        export.push_marker(lsl_outlet, "quit_key_press")
    finally:
        controller.stop()
        capture.release()
        export.push_marker(lsl_outlet, "camera_close")
        if display:
            cv2.destroyAllWindows()

"""Per-frame body pose detection with an Ultralytics YOLO pose model."""

import logging
from typing import Any, Optional

import numpy as np

from pose_state_classifier.core import config
from pose_state_classifier.core.joints import JointObservation, observation_from_keypoints

logger = logging.getLogger(__name__)


def select_subject(result: Any) -> Optional[int]:
    """Picks the single highest-confidence person in a YOLO result.

    Args:
        result: one ultralytics Results object.

    Returns:
        index of the person, or None if nobody was detected.
    """
    if result.keypoints is None or result.boxes is None or len(result.boxes) == 0:
        return None
    box_conf = np.asarray(result.boxes.conf.cpu().numpy()).reshape(-1)
    return int(np.argmax(box_conf))


def observation_from_result(
    result: Any, threshold: float = config.JOINT_CONFIDENCE_THRESHOLD
) -> JointObservation:
    """Converts a YOLO pose result into the observation of its main subject.

    Args:
        result: one ultralytics Results object.
        threshold: minimum keypoint confidence (exclusive).

    Returns:
        JointObservation, empty when no person was detected.
    """
    person_idx = select_subject(result)
    if person_idx is None:
        return JointObservation.empty()

    keypoints = result.keypoints
    kp_xyn = keypoints.xyn[person_idx].cpu().numpy()  # (17, 2)
    if keypoints.conf is None:
        kp_conf = np.ones(len(kp_xyn))
    else:
        kp_conf = keypoints.conf[person_idx].cpu().numpy()  # (17,)
    return observation_from_keypoints(kp_xyn, kp_conf, threshold)


class PoseDetector:
    """Black-box joint detector for camera frames.

    Attributes:
        model_path: path or name of the YOLO pose weights.
        device: device to run inference on.
        model: loaded YOLO model instance.
    """

    def __init__(
        self,
        model_path: str = config.POSE_MODEL,
        device: str = config.POSE_DEVICE,
        detection_confidence: float = 0.5,
    ) -> None:
        self.model_path = model_path
        self.device = device
        self.detection_confidence = detection_confidence
        self.model: Any = None

    def load_model(self) -> "PoseDetector":
        """Loads the pose model.

        Returns:
            self for method chaining.

        Raises:
            ImportError: if ultralytics is not installed.
        """
        try:
            from ultralytics import YOLO
        except ImportError as err:
            logger.error("ultralytics package not installed")
            raise ImportError(
                "ultralytics package required. Install with: pip install pose_state_classifier[detector]"
            ) from err

        logger.info("Loading pose model from %s", self.model_path)
        self.model = YOLO(self.model_path)
        return self

    def detect(self, frame: np.ndarray) -> JointObservation:
        """Detects the main subject's joints in a BGR frame.

        Raises:
            RuntimeError: if the model is not loaded.
        """
        if self.model is None:
            raise RuntimeError("Model not loaded. Call load_model() first.")

        results = self.model.predict(
            source=frame,
            conf=self.detection_confidence,
            verbose=False,
            device=self.device,
        )
        if not results:
            return JointObservation.empty()
        return observation_from_result(results[0])

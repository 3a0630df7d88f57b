"""file containing the functions for classifying drowsiness from head tilt."""

from typing import Optional

import numpy as np

from pose_state_classifier.classifiers.base import SequenceClassifier
from pose_state_classifier.core import config
from pose_state_classifier.core.features import CONFIDENCE_CHANNEL, Y_CHANNEL
from pose_state_classifier.core.joints import Joint, StateLabel

HEAD_JOINTS = (Joint.NOSE, Joint.LEFT_SHOULDER, Joint.RIGHT_SHOULDER)
# worst-case float32 rounding of nose and shoulder heights in [0, 1]
HEAD_TILT_TOLERANCE = float(np.finfo(np.float32).eps) / 2


def head_tilt_confidence(head_tilt: float) -> float:
    """Scales head tilt into a display confidence.

    This is an ad hoc scaling, not a calibrated probability.

    Args:
        head_tilt: nose drop below the shoulder line.

    Returns:
        abs(head_tilt) * 100, capped at 95.
    """
    return min(
        abs(float(head_tilt)) * config.HEAD_TILT_CONFIDENCE_SCALE,
        config.HEAD_TILT_CONFIDENCE_CAP,
    )


def compute_head_tilt(frame: np.ndarray) -> Optional[np.float32]:
    """Computes how far the nose sits below the shoulder line in one frame.

    Coordinates in the tensor grow upward, so the drop in image space is the
    average shoulder height minus the nose height.

    Args:
        frame: (channel, joint) slice of the feature tensor.

    Returns:
        head tilt as float32, or None if nose or either shoulder is not confident.
    """
    threshold = np.float32(config.JOINT_CONFIDENCE_THRESHOLD)
    if any(frame[CONFIDENCE_CHANNEL, joint] <= threshold for joint in HEAD_JOINTS):
        return None

    nose_y = frame[Y_CHANNEL, Joint.NOSE]
    shoulder_y = (
        frame[Y_CHANNEL, Joint.LEFT_SHOULDER] + frame[Y_CHANNEL, Joint.RIGHT_SHOULDER]
    ) / np.float32(2)
    return np.float32(shoulder_y - nose_y)


def classify_head_tilt(tensor: np.ndarray) -> Optional[StateLabel]:
    """Classifies the most recent frame of a window as alert or drowsy.

    Args:
        tensor: feature tensor of shape (time, channel, joint).

    Returns:
        StateLabel, or None when the frame lacks confident head joints.
    """
    if len(tensor) == 0:
        return None
    head_tilt = compute_head_tilt(np.asarray(tensor[-1], dtype=np.float32))
    if head_tilt is None:
        return None

    if float(head_tilt) - config.HEAD_TILT_THRESHOLD > HEAD_TILT_TOLERANCE:
        label = config.DROWSY_LABEL
    else:
        label = config.ALERT_LABEL
    return StateLabel(
        label=label,
        confidence=head_tilt_confidence(head_tilt),
        rationale=f"head tilt {float(head_tilt):.3f}",
        source=HeuristicClassifier.name,
    )


class HeuristicClassifier(SequenceClassifier):
    """Rule-based fallback using nose-to-shoulder geometry."""

    name = "heuristic"

    def classify(self, tensor: np.ndarray) -> StateLabel:
        result = classify_head_tilt(tensor)
        if result is None:
            return StateLabel(
                config.UNKNOWN_LABEL,
                rationale="nose or shoulders below confidence threshold",
                source=self.name,
            )
        return result

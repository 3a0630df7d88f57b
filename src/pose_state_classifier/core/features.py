"""file containing functions for building feature tensors from joint windows."""

from typing import Optional, Sequence

import numpy as np

from pose_state_classifier.core import config
from pose_state_classifier.core.joints import (
    DETECTED_JOINTS,
    NUM_JOINTS,
    Joint,
    JointObservation,
    RecognizedPoint,
)

X_CHANNEL = 0
Y_CHANNEL = 1
CONFIDENCE_CHANNEL = 2


def synthesize_neck(observation: JointObservation) -> Optional[RecognizedPoint]:
    """Derives the neck joint from both shoulders.

    Args:
        observation: joints detected in one frame.

    Returns:
        midpoint of the shoulders with their mean confidence, or None if either
        shoulder is missing.
    """
    left = observation.get(Joint.LEFT_SHOULDER)
    right = observation.get(Joint.RIGHT_SHOULDER)
    if left is None or right is None:
        return None
    return RecognizedPoint(
        x=(left.x + right.x) / 2,
        y=(left.y + right.y) / 2,
        confidence=(left.confidence + right.confidence) / 2,
    )


def write_point(tensor: np.ndarray, t: int, joint: Joint, point: RecognizedPoint) -> None:
    tensor[t, X_CHANNEL, joint] = point.x
    tensor[t, Y_CHANNEL, joint] = point.y
    tensor[t, CONFIDENCE_CHANNEL, joint] = point.confidence


def build_feature_tensor(window: Sequence[JointObservation]) -> np.ndarray:
    """Maps a window of observations into a dense (time, channel, joint) tensor.

    Missing joints leave their slots at zero; nothing is interpolated across
    frames. The neck slot is filled only in frames where both shoulders are
    present.

    Args:
        window: observations in chronological order, oldest first.

    Returns:
        float32 array of shape (len(window), 3, 18).
    """
    tensor = np.zeros((len(window), config.NUM_CHANNELS, NUM_JOINTS), dtype=np.float32)
    for t, observation in enumerate(window):
        for joint in DETECTED_JOINTS:
            point = observation.get(joint)
            if point is not None:
                write_point(tensor, t, joint, point)

        neck = synthesize_neck(observation)
        if neck is not None:
            write_point(tensor, t, Joint.NECK, neck)
    return tensor

"""utils for the opencv viewer."""

import cv2
import numpy as np

from pose_state_classifier.core import config
from pose_state_classifier.core.features import synthesize_neck
from pose_state_classifier.core.joints import Joint, JointObservation, StateLabel

STATE_COLORS = {
    config.ALERT_LABEL: (102, 205, 105),
    config.DROWSY_LABEL: (99, 107, 252),
    config.NO_SUBJECT_LABEL: (185, 185, 185),
    config.UNKNOWN_LABEL: (232, 176, 59),
}
DEFAULT_COLOR = (255, 255, 255)

BONES = [
    (Joint.NOSE, Joint.NECK),
    (Joint.NECK, Joint.LEFT_SHOULDER),
    (Joint.NECK, Joint.RIGHT_SHOULDER),
    (Joint.LEFT_SHOULDER, Joint.LEFT_ELBOW),
    (Joint.LEFT_ELBOW, Joint.LEFT_WRIST),
    (Joint.RIGHT_SHOULDER, Joint.RIGHT_ELBOW),
    (Joint.RIGHT_ELBOW, Joint.RIGHT_WRIST),
    (Joint.LEFT_SHOULDER, Joint.LEFT_HIP),
    (Joint.RIGHT_SHOULDER, Joint.RIGHT_HIP),
    (Joint.LEFT_HIP, Joint.RIGHT_HIP),
    (Joint.LEFT_HIP, Joint.LEFT_KNEE),
    (Joint.LEFT_KNEE, Joint.LEFT_ANKLE),
    (Joint.RIGHT_HIP, Joint.RIGHT_KNEE),
    (Joint.RIGHT_KNEE, Joint.RIGHT_ANKLE),
]


def state_color(label: StateLabel) -> tuple:
    return STATE_COLORS.get(label.label, DEFAULT_COLOR)


def to_pixels(point, width: int, height: int) -> tuple:
    """Converts a lower-left origin normalized point to opencv pixel coordinates."""
    return int(point.x * width), int((1.0 - point.y) * height)


def render_skeleton(image: np.ndarray, observation: JointObservation, color: tuple) -> None:
    """Draw joints and bones of one observation on the image in place.

    Args:
        image: BGR frame.
        observation: joints detected in the frame.
        color: BGR color for the skeleton.
    """
    height, width = image.shape[:2]
    points = dict(observation)
    neck = synthesize_neck(observation)
    if neck is not None:
        points[Joint.NECK] = neck

    for start, end in BONES:
        if start in points and end in points:
            cv2.line(
                image,
                to_pixels(points[start], width, height),
                to_pixels(points[end], width, height),
                color,
                2,
            )
    for point in points.values():
        cv2.circle(image, to_pixels(point, width, height), 4, color, -1)


def render_state(image: np.ndarray, label: StateLabel) -> None:
    """Write the current state in the top-left corner of the image."""
    cv2.putText(
        image,
        f"State: {label}",
        (20, 40),
        cv2.FONT_HERSHEY_SIMPLEX,
        1.0,
        state_color(label),
        2,
    )

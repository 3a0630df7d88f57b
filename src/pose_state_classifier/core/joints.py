"""Data model for per-frame joint observations and published state labels."""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import IntEnum
from types import MappingProxyType
from typing import Optional

import numpy as np

from pose_state_classifier.core import config


class Joint(IntEnum):
    """Joint identifiers with their fixed index along the tensor joint axis.

    The first 17 follow the COCO keypoint order used by the detector. NECK is
    derived from the shoulders and never reported by the detector.
    """

    NOSE = 0
    LEFT_EYE = 1
    RIGHT_EYE = 2
    LEFT_EAR = 3
    RIGHT_EAR = 4
    LEFT_SHOULDER = 5
    RIGHT_SHOULDER = 6
    LEFT_ELBOW = 7
    RIGHT_ELBOW = 8
    LEFT_WRIST = 9
    RIGHT_WRIST = 10
    LEFT_HIP = 11
    RIGHT_HIP = 12
    LEFT_KNEE = 13
    RIGHT_KNEE = 14
    LEFT_ANKLE = 15
    RIGHT_ANKLE = 16
    NECK = 17


DETECTED_JOINTS = tuple(joint for joint in Joint if joint is not Joint.NECK)
NUM_JOINTS = len(Joint)


@dataclass(frozen=True)
class RecognizedPoint:
    """A single joint position.

    Coordinates are normalized to [0, 1] with the origin at the lower-left
    corner of the image, so y grows upward.
    """

    x: float
    y: float
    confidence: float


class JointObservation(Mapping):
    """Immutable mapping of joints detected in one frame.

    Only joints that cleared the confidence threshold are present; missing
    joints are absent rather than zero-filled. An empty observation means no
    subject was detected in the frame.
    """

    __slots__ = ("_points",)

    def __init__(self, points: Optional[Mapping[Joint, RecognizedPoint]] = None) -> None:
        self._points = MappingProxyType(dict(points or {}))

    @classmethod
    def from_points(
        cls,
        points: Mapping[Joint, RecognizedPoint],
        threshold: float = config.JOINT_CONFIDENCE_THRESHOLD,
    ) -> "JointObservation":
        """Builds an observation keeping only joints with confidence above threshold.

        Args:
            points: raw detector points keyed by joint.
            threshold: minimum confidence (exclusive).

        Returns:
            filtered JointObservation.
        """
        return cls({
            joint: point
            for joint, point in points.items()
            if joint is not Joint.NECK and point.confidence > threshold
        })

    @classmethod
    def empty(cls) -> "JointObservation":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self._points

    def __getitem__(self, joint: Joint) -> RecognizedPoint:
        return self._points[joint]

    def __iter__(self) -> Iterator[Joint]:
        return iter(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __repr__(self) -> str:
        names = ", ".join(joint.name.lower() for joint in self._points)
        return f"JointObservation({names})"


def observation_from_keypoints(
    keypoints_xyn: np.ndarray,
    keypoints_conf: np.ndarray,
    threshold: float = config.JOINT_CONFIDENCE_THRESHOLD,
) -> JointObservation:
    """Converts one person's detector keypoints into a JointObservation.

    Args:
        keypoints_xyn: (17, 2) array of keypoints normalized to the image size,
            origin at the top-left corner.
        keypoints_conf: (17,) array of keypoint confidences.
        threshold: minimum confidence (exclusive) for a joint to be kept.

    Returns:
        JointObservation in lower-left origin coordinates.
    """
    keypoints_xyn = np.asarray(keypoints_xyn, dtype=float)
    keypoints_conf = np.asarray(keypoints_conf, dtype=float)
    points = {}
    for joint in DETECTED_JOINTS:
        x, y = keypoints_xyn[joint]
        points[joint] = RecognizedPoint(
            x=float(x), y=float(1.0 - y), confidence=float(keypoints_conf[joint])
        )
    return JointObservation.from_points(points, threshold)


@dataclass(frozen=True)
class StateLabel:
    """A published behavioral state.

    confidence and rationale are only filled in by classifiers that provide
    them (heuristic head tilt, model probabilities).
    """

    label: str
    confidence: Optional[float] = None
    rationale: Optional[str] = None
    source: str = "controller"

    def __str__(self) -> str:
        if self.confidence is None:
            return self.label
        return f"{self.label} ({self.confidence:.0f}%)"


WAITING = StateLabel(config.WAITING_LABEL)
NO_SUBJECT = StateLabel(config.NO_SUBJECT_LABEL)

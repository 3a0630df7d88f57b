"""Shared contract for state classifiers."""

import abc

import numpy as np

from pose_state_classifier.core.joints import StateLabel


class SequenceClassifier(abc.ABC):
    """Maps a feature tensor of shape (time, channel, joint) to a state label."""

    name = "classifier"

    @abc.abstractmethod
    def classify(self, tensor: np.ndarray) -> StateLabel:
        """Classifies one window.

        Args:
            tensor: float32 feature tensor built from the current window.

        Returns:
            StateLabel for the window.
        """

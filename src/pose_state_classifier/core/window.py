"""Fixed-capacity sliding window of recent joint observations."""

from collections import deque
from typing import Tuple

from pose_state_classifier.core import config
from pose_state_classifier.core.joints import JointObservation


class PoseWindowBuffer:
    """Sliding window with push-evict semantics.

    Once at capacity, every push evicts the oldest observation so the window
    shifts by one frame and stays ready.
    """

    def __init__(self, capacity: int = config.WINDOW_SIZE) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._observations: deque = deque()

    @property
    def capacity(self) -> int:
        return self._capacity

    def push(self, observation: JointObservation) -> None:
        """Appends an observation, evicting from the head past capacity.

        Args:
            observation: joints detected in the newest frame, possibly empty.
        """
        self._observations.append(observation)
        while len(self._observations) > self._capacity:
            self._observations.popleft()

    def is_ready(self) -> bool:
        return len(self._observations) == self._capacity

    def snapshot(self) -> Tuple[JointObservation, ...]:
        """Returns the current window in chronological order, oldest first."""
        return tuple(self._observations)

    def clear(self) -> None:
        self._observations.clear()

    def __len__(self) -> int:
        return len(self._observations)

"""Per-frame orchestration of buffering, feature building and classification."""

import enum
import logging
import threading
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from pose_state_classifier.classifiers.base import SequenceClassifier
from pose_state_classifier.core.features import build_feature_tensor
from pose_state_classifier.core.joints import (
    NO_SUBJECT,
    WAITING,
    JointObservation,
    StateLabel,
)
from pose_state_classifier.core.window import PoseWindowBuffer

logger = logging.getLogger(__name__)

Window = Tuple[JointObservation, ...]


class ControllerState(enum.Enum):
    IDLE = "idle"
    BUFFERING = "buffering"
    CLASSIFYING = "classifying"


class LabelChannel:
    """Observable holder of the most recently published state label.

    Subscribers are called on the publishing thread and must hand off to
    their own thread if they need one.
    """

    def __init__(self, initial: StateLabel = WAITING) -> None:
        self._value = initial
        self._subscribers: List[Callable[[StateLabel], None]] = []
        self._lock = threading.Lock()

    @property
    def value(self) -> StateLabel:
        with self._lock:
            return self._value

    def subscribe(self, callback: Callable[[StateLabel], None]) -> Callable[[], None]:
        """Registers a callback for future labels.

        Returns:
            function that removes the subscription.
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, label: StateLabel) -> None:
        with self._lock:
            self._value = label
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback(label)

    def reset(self) -> None:
        self.publish(WAITING)


class StateController:
    """Turns a stream of joint observations into published state labels.

    Observations are buffered in arrival order. Once the window is full, every
    new frame triggers a classification of the shifted window.

    Used synchronously through process(), or threaded through start(),
    submit() and stop(). In threaded mode buffering happens on the caller's
    thread and classification on a single worker: at most one window is being
    classified, and a newer window replaces one that is still waiting.

    Args:
        classifier: classifier variant selected for the session.
        window_size: number of frames per window.
        channel: where labels are published. A new channel is created if None.
        builder: maps a window to a feature tensor.
    """

    def __init__(
        self,
        classifier: SequenceClassifier,
        window_size: Optional[int] = None,
        channel: Optional[LabelChannel] = None,
        builder: Callable[[Sequence[JointObservation]], np.ndarray] = build_feature_tensor,
    ) -> None:
        self.classifier = classifier
        if window_size is None:
            self.buffer = PoseWindowBuffer()
        else:
            self.buffer = PoseWindowBuffer(window_size)
        self.channel = channel or LabelChannel()
        self.builder = builder

        self._condition = threading.Condition()
        self._state = ControllerState.IDLE
        self._pending: Optional[Window] = None
        self._accepting = False
        self._worker: Optional[threading.Thread] = None
        self.superseded = 0

    @property
    def state(self) -> ControllerState:
        with self._condition:
            return self._state

    def _set_state(self, state: ControllerState) -> None:
        with self._condition:
            self._state = state

    def process(self, observation: JointObservation) -> Optional[StateLabel]:
        """Runs the full per-frame flow on the calling thread.

        Args:
            observation: joints detected in the newest frame.

        Returns:
            the published label, or None while the window is still filling.
        """
        window = self._buffer_observation(observation)
        if window is None:
            return None
        return self._classify_and_publish(window)

    def start(self) -> None:
        """Starts the classification worker."""
        with self._condition:
            if self._worker is not None:
                return
            self._accepting = True
            self._worker = threading.Thread(
                target=self._run_worker, name="state-classifier", daemon=True
            )
            self._worker.start()
        logger.debug("Classification worker started")

    def submit(self, observation: JointObservation) -> bool:
        """Buffers an observation and queues the window for the worker.

        Never waits on classification.

        Args:
            observation: joints detected in the newest frame.

        Returns:
            False if the controller is not accepting observations.
        """
        with self._condition:
            if not self._accepting:
                return False
        window = self._buffer_observation(observation)
        if window is None:
            return True
        with self._condition:
            if self._pending is not None:
                self.superseded += 1
                logger.debug("Dropping stale window, %d dropped so far", self.superseded)
            self._pending = window
            self._condition.notify()
        return True

    def stop(self) -> None:
        """Stops accepting observations, drains the worker and discards the window.

        The channel goes back to "waiting" until a new window fills.
        """
        with self._condition:
            self._accepting = False
            self._condition.notify_all()
            worker = self._worker
        if worker is not None:
            worker.join()
        with self._condition:
            self._worker = None
            self._pending = None
            self._state = ControllerState.IDLE
        self.buffer.clear()
        self.channel.reset()
        logger.debug("Controller stopped, window discarded")

    def _buffer_observation(self, observation: JointObservation) -> Optional[Window]:
        self.buffer.push(observation)
        if not self.buffer.is_ready():
            self._set_state(ControllerState.BUFFERING)
            return None
        return self.buffer.snapshot()

    def _classify_and_publish(self, window: Window) -> StateLabel:
        self._set_state(ControllerState.CLASSIFYING)
        try:
            if window[-1].is_empty:
                label = NO_SUBJECT
            else:
                label = self.classifier.classify(self.builder(window))
            self.channel.publish(label)
        finally:
            self._set_state(ControllerState.BUFFERING)
        return label

    def _run_worker(self) -> None:
        while True:
            with self._condition:
                while self._pending is None and self._accepting:
                    self._condition.wait()
                if self._pending is None:
                    return
                window, self._pending = self._pending, None
            try:
                self._classify_and_publish(window)
            except Exception:
                logger.exception("Classification failed, window skipped")

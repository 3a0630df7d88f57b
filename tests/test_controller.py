import threading
import unittest
from types import SimpleNamespace

from pose_state_classifier.classifiers.base import SequenceClassifier
from pose_state_classifier.classifiers.heuristic import HeuristicClassifier
from pose_state_classifier.classifiers.model import ModelClassifier
from pose_state_classifier.core.controller import ControllerState, LabelChannel, StateController
from pose_state_classifier.core.joints import Joint, JointObservation, RecognizedPoint, StateLabel


def head_observation(nose_y, shoulder_y=0.6):
    return JointObservation.from_points({
        Joint.NOSE: RecognizedPoint(0.5, nose_y, 0.9),
        Joint.LEFT_SHOULDER: RecognizedPoint(0.4, shoulder_y, 0.9),
        Joint.RIGHT_SHOULDER: RecognizedPoint(0.6, shoulder_y, 0.9),
        Joint.LEFT_WRIST: RecognizedPoint(0.3, 0.2, 0.1),
    })


class RecordingClassifier(SequenceClassifier):
    def __init__(self):
        self.tensors = []

    def classify(self, tensor):
        self.tensors.append(tensor)
        return StateLabel(f"window {len(self.tensors)}")


class BlockingClassifier(SequenceClassifier):
    """Holds the first classification until released."""

    def __init__(self):
        self.started = threading.Event()
        self.release = threading.Event()
        self.windows = []

    def classify(self, tensor):
        self.started.set()
        self.release.wait(timeout=5)
        self.windows.append(float(tensor[-1, 1, Joint.NOSE]))
        return StateLabel("done")


class FailingOnceClassifier(SequenceClassifier):
    def __init__(self):
        self.calls = 0
        self.failed = threading.Event()

    def classify(self, tensor):
        self.calls += 1
        if self.calls == 1:
            self.failed.set()
            raise RuntimeError("classifier crashed")
        return StateLabel("recovered")


class TestStateControllerSync(unittest.TestCase):
    def test_zero_window_size_rejected(self):
        with self.assertRaises(ValueError):
            StateController(RecordingClassifier(), window_size=0)

    def test_waiting_until_window_full(self):
        controller = StateController(RecordingClassifier())
        self.assertEqual(controller.state, ControllerState.IDLE)
        self.assertEqual(controller.channel.value.label, "waiting")
        for _ in range(29):
            self.assertIsNone(controller.process(head_observation(0.8)))
            self.assertEqual(controller.state, ControllerState.BUFFERING)
        self.assertEqual(controller.channel.value.label, "waiting")
        self.assertEqual(controller.process(head_observation(0.8)).label, "window 1")

    def test_classifies_every_frame_once_primed(self):
        classifier = RecordingClassifier()
        controller = StateController(classifier)
        for _ in range(35):
            controller.process(head_observation(0.8))
        self.assertEqual(len(classifier.tensors), 6)
        self.assertTrue(all(t.shape == (30, 3, 18) for t in classifier.tensors))
        self.assertEqual(controller.channel.value.label, "window 6")

    def test_end_to_end_drowsy_with_heuristic(self):
        controller = StateController(HeuristicClassifier())
        for _ in range(30):
            label = controller.process(head_observation(0.45))
        self.assertEqual(label.label, "drowsy")
        self.assertLessEqual(label.confidence, 95)
        self.assertEqual(controller.channel.value, label)

    def test_end_to_end_with_failed_model(self):
        def loader():
            raise OSError("no model")

        controller = StateController(ModelClassifier(loader))
        for _ in range(30):
            label = controller.process(head_observation(0.45))
        self.assertEqual(label.label, "drowsy")

    def test_empty_frame_publishes_no_subject(self):
        classifier = RecordingClassifier()
        controller = StateController(classifier)
        for _ in range(30):
            controller.process(head_observation(0.8))
        label = controller.process(JointObservation.empty())
        self.assertEqual(label.label, "no subject")
        self.assertEqual(len(classifier.tensors), 1)
        self.assertEqual(len(controller.buffer), 30)

    def test_unknown_when_head_not_visible(self):
        controller = StateController(HeuristicClassifier())
        observation = JointObservation.from_points(
            {Joint.LEFT_HIP: RecognizedPoint(0.4, 0.4, 0.9)}
        )
        for _ in range(30):
            label = controller.process(observation)
        self.assertEqual(label.label, "unknown")

    def test_custom_window_size(self):
        classifier = RecordingClassifier()
        controller = StateController(classifier, window_size=5)
        for _ in range(5):
            controller.process(head_observation(0.8))
        self.assertEqual(classifier.tensors[0].shape, (5, 3, 18))

    def test_subscribers_receive_labels(self):
        received = []
        controller = StateController(RecordingClassifier(), window_size=2)
        unsubscribe = controller.channel.subscribe(received.append)
        for _ in range(3):
            controller.process(head_observation(0.8))
        unsubscribe()
        controller.process(head_observation(0.8))
        self.assertEqual([label.label for label in received], ["window 1", "window 2"])


class TestStateControllerThreaded(unittest.TestCase):
    def test_submit_requires_start(self):
        controller = StateController(RecordingClassifier())
        self.assertFalse(controller.submit(head_observation(0.8)))
        self.assertEqual(len(controller.buffer), 0)

    def test_drowsy_after_stop(self):
        controller = StateController(HeuristicClassifier())
        received = []
        controller.channel.subscribe(received.append)
        controller.start()
        for _ in range(30):
            self.assertTrue(controller.submit(head_observation(0.45)))
        controller.stop()
        self.assertEqual([label.label for label in received[-2:]], ["drowsy", "waiting"])
        self.assertEqual(controller.state, ControllerState.IDLE)
        self.assertEqual(len(controller.buffer), 0)
        self.assertFalse(controller.submit(head_observation(0.45)))

    def test_newer_window_supersedes_pending(self):
        classifier = BlockingClassifier()
        controller = StateController(classifier, window_size=1)
        controller.start()
        controller.submit(head_observation(0.1))
        self.assertTrue(classifier.started.wait(timeout=5))
        # first window is in flight; these queue behind it and replace each other
        for nose_y in (0.2, 0.3, 0.4):
            controller.submit(head_observation(nose_y))
        classifier.release.set()
        controller.stop()
        self.assertEqual(len(classifier.windows), 2)
        self.assertAlmostEqual(classifier.windows[0], 0.1, places=6)
        self.assertAlmostEqual(classifier.windows[-1], 0.4, places=6)
        self.assertEqual(controller.superseded, 2)

    def test_state_is_classifying_while_window_in_flight(self):
        classifier = BlockingClassifier()
        controller = StateController(classifier, window_size=1)
        controller.start()
        controller.submit(head_observation(0.1))
        self.assertTrue(classifier.started.wait(timeout=5))
        controller.submit(head_observation(0.2))
        self.assertEqual(controller.state, ControllerState.CLASSIFYING)
        classifier.release.set()
        controller.stop()
        self.assertEqual(controller.state, ControllerState.IDLE)

    def test_restart_publishes_waiting(self):
        controller = StateController(HeuristicClassifier())
        controller.start()
        for _ in range(30):
            controller.submit(head_observation(0.45))
        controller.stop()
        controller.start()
        controller.submit(head_observation(0.45))
        self.assertEqual(controller.channel.value.label, "waiting")
        self.assertEqual(len(controller.buffer), 1)
        controller.stop()

    def test_worker_survives_failing_classifier(self):
        classifier = FailingOnceClassifier()
        controller = StateController(classifier, window_size=1)
        controller.start()
        controller.submit(head_observation(0.8))
        self.assertTrue(classifier.failed.wait(timeout=5))
        controller.submit(head_observation(0.8))
        controller.stop()
        self.assertEqual(classifier.calls, 2)
        self.assertEqual(controller.state, ControllerState.IDLE)

    def test_worker_survives_malformed_model_output(self):
        received = []
        model = SimpleNamespace(predict=lambda tensor: {"label": []})
        controller = StateController(ModelClassifier(lambda: model))
        controller.channel.subscribe(received.append)
        controller.start()
        for _ in range(31):
            controller.submit(head_observation(0.45))
        controller.stop()
        self.assertIn("drowsy", [label.label for label in received])


class TestLabelChannel(unittest.TestCase):
    def test_reset(self):
        channel = LabelChannel()
        channel.publish(StateLabel("alert"))
        channel.reset()
        self.assertEqual(channel.value.label, "waiting")


if __name__ == "__main__":
    unittest.main()

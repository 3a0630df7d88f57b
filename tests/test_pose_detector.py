import unittest
from types import SimpleNamespace

import numpy as np

from pose_state_classifier.core.joints import Joint
from pose_state_classifier.detection.pose_detector import (
    PoseDetector,
    observation_from_result,
    select_subject,
)


class FakeTensor:
    """Mimics the cpu().numpy() chain of a torch tensor."""

    def __init__(self, values):
        self.values = np.asarray(values, dtype=float)

    def cpu(self):
        return self

    def numpy(self):
        return self.values

    def __getitem__(self, idx):
        return FakeTensor(self.values[idx])

    def __len__(self):
        return len(self.values)


def fake_result(box_conf, xyn, conf):
    boxes = FakeTensor(np.zeros((len(box_conf), 4)))
    boxes.conf = FakeTensor(box_conf)
    keypoints = SimpleNamespace(xyn=FakeTensor(xyn), conf=FakeTensor(conf))
    return SimpleNamespace(boxes=boxes, keypoints=keypoints)


class TestObservationFromResult(unittest.TestCase):
    def test_no_person_is_empty(self):
        result = SimpleNamespace(boxes=None, keypoints=None)
        self.assertIsNone(select_subject(result))
        self.assertTrue(observation_from_result(result).is_empty)

    def test_picks_highest_confidence_person(self):
        xyn = np.zeros((2, 17, 2))
        xyn[0, Joint.NOSE] = [0.1, 0.1]
        xyn[1, Joint.NOSE] = [0.7, 0.4]
        conf = np.full((2, 17), 0.9)
        result = fake_result([0.6, 0.95], xyn, conf)

        self.assertEqual(select_subject(result), 1)
        observation = observation_from_result(result)
        self.assertAlmostEqual(observation[Joint.NOSE].x, 0.7)
        self.assertAlmostEqual(observation[Joint.NOSE].y, 0.6)
        self.assertEqual(len(observation), 17)

    def test_low_confidence_keypoints_dropped(self):
        conf = np.full((1, 17), 0.1)
        conf[0, Joint.LEFT_SHOULDER] = 0.5
        result = fake_result([0.9], np.full((1, 17, 2), 0.5), conf)
        self.assertEqual(set(observation_from_result(result)), {Joint.LEFT_SHOULDER})


class TestPoseDetector(unittest.TestCase):
    def test_detect_requires_loaded_model(self):
        with self.assertRaises(RuntimeError):
            PoseDetector().detect(np.zeros((480, 640, 3), dtype=np.uint8))

    def test_detect_uses_first_result(self):
        detector = PoseDetector()
        conf = np.full((1, 17), 0.9)
        result = fake_result([0.9], np.full((1, 17, 2), 0.5), conf)
        detector.model = SimpleNamespace(predict=lambda **kwargs: [result])
        observation = detector.detect(np.zeros((480, 640, 3), dtype=np.uint8))
        self.assertEqual(len(observation), 17)


if __name__ == "__main__":
    unittest.main()

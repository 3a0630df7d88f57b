"""File containing all global parameters, thresholds, and labels for state classification."""

WINDOW_SIZE = 30  # frames (1 second @ 30fps)
NUM_CHANNELS = 3  # x, y, confidence
JOINT_CONFIDENCE_THRESHOLD = 0.3  # joints at or below this are dropped from an observation

HEAD_TILT_THRESHOLD = 0.1  # nose drop below the shoulder line, normalized image units
HEAD_TILT_CONFIDENCE_SCALE = 100
HEAD_TILT_CONFIDENCE_CAP = 95

WAITING_LABEL = "waiting"
NO_SUBJECT_LABEL = "no subject"
UNKNOWN_LABEL = "unknown"
ALERT_LABEL = "alert"
DROWSY_LABEL = "drowsy"

MODEL_LABEL_OUTPUT = "label"
MODEL_PROBABILITY_OUTPUT = "labelProbabilities"

POSE_MODEL = "yolo11n-pose.pt"
POSE_DEVICE = "cpu"
CAMERA_INDEX = 0

LSL_STREAM_NAME = "PoseState"
LSL_STREAM_TYPE = "Markers"
LSL_SOURCE_ID = "pose-state-classifier"

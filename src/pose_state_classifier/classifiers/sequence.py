"""Selection of the classifier variant used for a session."""

import logging
from typing import Optional, Sequence

from pose_state_classifier.classifiers.base import SequenceClassifier
from pose_state_classifier.classifiers.heuristic import HeuristicClassifier
from pose_state_classifier.classifiers.model import ModelClassifier, OnnxSequenceModel

logger = logging.getLogger(__name__)


def build_classifier(
    model_path: Optional[str] = None,
    class_names: Optional[Sequence[str]] = None,
) -> SequenceClassifier:
    """Picks the classifier variant once, at startup.

    The model is loaded eagerly here so a broken model is reported before the
    stream starts. Without a model, or if it fails to load, the head tilt
    heuristic is used for the whole session.

    Args:
        model_path: path to an .onnx sequence classifier, or None.
        class_names: category names for models that emit bare score arrays.

    Returns:
        ModelClassifier or HeuristicClassifier.
    """
    heuristic = HeuristicClassifier()
    if not model_path:
        logger.info("No sequence model configured, using heuristic classifier")
        return heuristic

    classifier = ModelClassifier(
        lambda: OnnxSequenceModel(model_path, class_names), fallback=heuristic
    )
    if classifier.load() is None:
        return heuristic
    return classifier

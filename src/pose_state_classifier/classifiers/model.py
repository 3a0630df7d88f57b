"""Model-backed state classification with fallback to the head tilt heuristic."""

import logging
import threading
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Sequence, Tuple

import numpy as np
import onnxruntime as ort
from scipy.special import softmax

from pose_state_classifier.classifiers.base import SequenceClassifier
from pose_state_classifier.classifiers.heuristic import HeuristicClassifier
from pose_state_classifier.core import config
from pose_state_classifier.core.joints import StateLabel

logger = logging.getLogger(__name__)


class ClassifierError(Exception):
    """Base class for classifier failures."""


class ModelLoadError(ClassifierError):
    """The model collaborator could not be initialized."""


class InferenceError(ClassifierError):
    """A single classification against a loaded model failed."""


class SequenceModel(Protocol):
    def predict(self, tensor: np.ndarray) -> Mapping[str, Any]: ...


class OnnxSequenceModel:
    """Wraps an onnxruntime session as a tensor -> named outputs function.

    Args:
        model_path: path to the .onnx sequence classifier.
        class_names: category names for models that emit a bare score array.
    """

    def __init__(self, model_path: str, class_names: Optional[Sequence[str]] = None) -> None:
        self.model_path = model_path
        self.class_names = list(class_names) if class_names else None
        self.session = ort.InferenceSession(model_path, providers=["CPUExecutionProvider"])
        self.input_name = self.session.get_inputs()[0].name
        self.output_names = [output.name for output in self.session.get_outputs()]

    def predict(self, tensor: np.ndarray) -> Dict[str, Any]:
        values = self.session.run(None, {self.input_name: tensor.astype(np.float32)})
        outputs = dict(zip(self.output_names, values))
        if self.class_names is not None and config.MODEL_PROBABILITY_OUTPUT in outputs:
            outputs[config.MODEL_PROBABILITY_OUTPUT] = scores_to_probabilities(
                outputs[config.MODEL_PROBABILITY_OUTPUT], self.class_names
            )
        return outputs


def scores_to_probabilities(scores: Any, class_names: Sequence[str]) -> Dict[str, float]:
    """Turns a raw score array into a category -> probability mapping.

    Scores that do not already form a distribution are treated as logits.

    Args:
        scores: array with one value per category (a leading batch axis is allowed).
        class_names: category names in output order.

    Returns:
        dictionary of category name to probability.
    """
    values = np.asarray(scores, dtype=np.float64).reshape(-1)
    if len(values) != len(class_names):
        raise InferenceError(
            f"model returned {len(values)} scores for {len(class_names)} classes"
        )
    if np.any(values < 0) or not np.isclose(values.sum(), 1.0):
        values = softmax(values)
    return dict(zip(class_names, values.tolist()))


def interpret_outputs(outputs: Mapping[str, Any]) -> Tuple[str, Optional[float]]:
    """Reads the predicted category from a model's named outputs.

    Args:
        outputs: model outputs keyed by output name.

    Returns:
        label and its confidence in percent, or None when no probabilities are given.

    Raises:
        InferenceError: if the label output is missing or empty.
        TypeError, ValueError: if the probabilities are not numeric.
    """
    if config.MODEL_LABEL_OUTPUT not in outputs:
        raise InferenceError(f"model output has no '{config.MODEL_LABEL_OUTPUT}' key")

    label = outputs[config.MODEL_LABEL_OUTPUT]
    if isinstance(label, (list, tuple, np.ndarray)):
        values = np.asarray(label).reshape(-1)
        if len(values) == 0:
            raise InferenceError(f"model output '{config.MODEL_LABEL_OUTPUT}' is empty")
        label = values[0]
    label = str(label)

    probabilities = outputs.get(config.MODEL_PROBABILITY_OUTPUT)
    # onnx ZipMap outputs arrive as a list with one dictionary per batch item
    if isinstance(probabilities, (list, tuple)) and probabilities:
        probabilities = probabilities[0]
    if isinstance(probabilities, Mapping) and probabilities:
        best = max(probabilities, key=probabilities.get)
        return str(best), float(probabilities[best]) * 100
    return label, None


class ModelClassifier(SequenceClassifier):
    """Classifies windows with a pre-trained sequence model.

    The model is loaded on first use, exactly once. A failed load disables the
    model for the lifetime of the classifier and every call is answered by the
    fallback. A failed inference only falls back for that call.

    Args:
        loader: zero-argument callable returning a loaded model.
        fallback: classifier used when the model is unavailable or fails.
    """

    name = "model"

    def __init__(
        self,
        loader: Callable[[], SequenceModel],
        fallback: Optional[SequenceClassifier] = None,
    ) -> None:
        self._loader = loader
        self.fallback = fallback or HeuristicClassifier()
        self._model: Optional[SequenceModel] = None
        self._load_attempted = False
        self._load_lock = threading.Lock()
        self.load_error: Optional[ModelLoadError] = None

    @property
    def available(self) -> bool:
        """True unless a load was attempted and failed."""
        return self.load_error is None

    def load(self) -> Optional[SequenceModel]:
        """Loads the model once; later calls return the cached result."""
        with self._load_lock:
            if self._load_attempted:
                return self._model
            self._load_attempted = True
            try:
                self._model = self._loader()
            except Exception as err:
                self.load_error = ModelLoadError(str(err))
                logger.error(
                    "Sequence model failed to load, using %s classifier: %s",
                    self.fallback.name,
                    err,
                )
                return None
            logger.info("Sequence model loaded")
            return self._model

    def classify(self, tensor: np.ndarray) -> StateLabel:
        model = self.load()
        if model is None:
            return self.fallback.classify(tensor)

        try:
            label, confidence = self.predict(model, tensor)
        except InferenceError as err:
            logger.warning("Inference failed, falling back for this window: %s", err)
            return self.fallback.classify(tensor)
        return StateLabel(label=label, confidence=confidence, source=self.name)

    @staticmethod
    def predict(model: SequenceModel, tensor: np.ndarray) -> Tuple[str, Optional[float]]:
        try:
            return interpret_outputs(model.predict(tensor))
        except InferenceError:
            raise
        except Exception as err:
            raise InferenceError(f"{type(err).__name__}: {err}") from err

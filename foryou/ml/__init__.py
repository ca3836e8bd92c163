"""Feature extraction and scoring models (light / heavy ranker)."""

from .evaluation import (
    ModelMetrics,
    TrainingExample,
    compute_auc,
    evaluate_model,
    examples_from_interactions,
)
from .features import FEATURE_NAMES, FeatureExtractor
from .heavy_ranker import Activation, DenseLayer, HeavyRanker
from .light_ranker import LightRanker, sigmoid
from .model import ScoringModel, build_scoring_model
from .weights import (
    JsonWeightsLoader,
    LayerWeights,
    ModelWeights,
    ModelWeightsLoader,
    StaticWeightsLoader,
    parse_weights,
    save_weights,
)

__all__ = [
    "FEATURE_NAMES",
    "Activation",
    "DenseLayer",
    "FeatureExtractor",
    "HeavyRanker",
    "JsonWeightsLoader",
    "LayerWeights",
    "LightRanker",
    "ModelMetrics",
    "ModelWeights",
    "ModelWeightsLoader",
    "ScoringModel",
    "StaticWeightsLoader",
    "TrainingExample",
    "build_scoring_model",
    "compute_auc",
    "evaluate_model",
    "examples_from_interactions",
    "parse_weights",
    "save_weights",
    "sigmoid",
]

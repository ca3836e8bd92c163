"""
Heavy ranker: feed-forward network producing an engagement probability.

Each layer computes activation(bias + W @ x). The final layer has a single
output which is passed through a sigmoid. Weights come either from a seeded
uniform initialization (cold start) or from ModelWeights (warm start); the
model is read-only after construction.
"""

from enum import Enum
from typing import List, Mapping, Optional, Sequence

import numpy as np

from ..errors import ModelLoadFailure
from .features import FEATURE_NAMES
from .light_ranker import sigmoid
from .weights import LayerWeights, ModelWeights

INIT_RANGE = 0.1


class Activation(str, Enum):
    RELU = "relu"
    SIGMOID = "sigmoid"
    TANH = "tanh"
    LINEAR = "linear"

    def apply(self, x: np.ndarray) -> np.ndarray:
        if self is Activation.RELU:
            return np.maximum(x, 0.0)
        if self is Activation.SIGMOID:
            # Stable form: exp of non-positive values only.
            out = np.empty_like(x, dtype=float)
            pos = x >= 0
            out[pos] = 1.0 / (1.0 + np.exp(-x[pos]))
            z = np.exp(x[~pos])
            out[~pos] = z / (1.0 + z)
            return out
        if self is Activation.TANH:
            return np.tanh(x)
        return x


class DenseLayer:
    """Fully connected layer: activation(biases + weights @ input)."""

    def __init__(self, weights: np.ndarray, biases: np.ndarray, activation: Activation = Activation.RELU):
        if weights.ndim != 2 or biases.shape != (weights.shape[0],):
            raise ValueError(
                f"incompatible layer shapes weights={weights.shape} biases={biases.shape}"
            )
        self.weights = weights
        self.biases = biases
        self.activation = activation
        self.weights.setflags(write=False)
        self.biases.setflags(write=False)

    @classmethod
    def initialized(
        cls,
        input_size: int,
        output_size: int,
        rng: np.random.Generator,
        activation: Activation = Activation.RELU,
    ) -> "DenseLayer":
        """Uniform weights in [-INIT_RANGE, INIT_RANGE], zero biases."""
        weights = rng.uniform(-INIT_RANGE, INIT_RANGE, size=(output_size, input_size))
        return cls(weights, np.zeros(output_size), activation)

    @property
    def input_size(self) -> int:
        return self.weights.shape[1]

    @property
    def output_size(self) -> int:
        return self.weights.shape[0]

    def forward(self, x: np.ndarray) -> np.ndarray:
        return self.activation.apply(self.biases + self.weights @ x)

    def to_weights(self) -> LayerWeights:
        return LayerWeights(
            weights=self.weights.tolist(),
            biases=self.biases.tolist(),
            activation=self.activation.value,
        )


class HeavyRanker:
    """Multi-layer scoring model over the fixed FEATURE_NAMES vector."""

    def __init__(self, layers: Sequence[DenseLayer], version: str = "1.0"):
        if not layers:
            raise ValueError("HeavyRanker needs at least one layer")
        if layers[-1].output_size != 1:
            raise ValueError("final layer must have exactly one output")
        self._layers: List[DenseLayer] = list(layers)
        self.version = version

    @classmethod
    def initialized(
        cls,
        input_size: int = len(FEATURE_NAMES),
        hidden_sizes: Sequence[int] = (32, 16),
        seed: Optional[int] = 42,
        hidden_activation: Activation = Activation.RELU,
        version: str = "1.0",
    ) -> "HeavyRanker":
        """Cold start: seeded uniform weights. The output layer is linear (sigmoid applied in predict)."""
        rng = np.random.default_rng(seed)
        layers = []
        current = input_size
        for size in hidden_sizes:
            layers.append(DenseLayer.initialized(current, size, rng, Activation(hidden_activation)))
            current = size
        layers.append(DenseLayer.initialized(current, 1, rng, Activation.LINEAR))
        return cls(layers, version=version)

    @classmethod
    def from_weights(cls, weights: ModelWeights, input_size: int = len(FEATURE_NAMES)) -> "HeavyRanker":
        """Warm start from loaded weights; the first layer must accept input_size features."""
        if weights.model_type != "heavy":
            raise ModelLoadFailure(f"expected heavy model weights, got {weights.model_type!r}")
        if weights.layers[0].input_size != input_size:
            raise ModelLoadFailure(
                f"model expects {weights.layers[0].input_size} inputs, feature vector has {input_size}"
            )
        layers = [
            DenseLayer(
                np.array(layer.weights, dtype=float),
                np.array(layer.biases, dtype=float),
                Activation(layer.activation),
            )
            for layer in weights.layers
        ]
        if not all(np.isfinite(l.weights).all() and np.isfinite(l.biases).all() for l in layers):
            raise ModelLoadFailure("model weights contain NaN or infinite values")
        return cls(layers, version=weights.version)

    @property
    def input_size(self) -> int:
        return self._layers[0].input_size

    @property
    def layers(self) -> List[DenseLayer]:
        return list(self._layers)

    def forward(self, x: np.ndarray) -> np.ndarray:
        out = np.asarray(x, dtype=float)
        for layer in self._layers:
            out = layer.forward(out)
        return out

    def predict_vector(self, x: np.ndarray) -> float:
        """Engagement probability for a projected feature vector."""
        return sigmoid(float(self.forward(x)[0]))

    def score(self, features: Mapping[str, float]) -> float:
        """Engagement probability for a (normalized) named feature map."""
        vector = np.array([float(features.get(name, 0.0)) for name in FEATURE_NAMES])
        return self.predict_vector(vector)

    def to_weights(self) -> ModelWeights:
        return ModelWeights(
            model_type="heavy",
            version=self.version,
            layers=[layer.to_weights() for layer in self._layers],
        )

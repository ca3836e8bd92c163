"""
Model weights boundary.

Externally trained weights enter the system through a ModelWeightsLoader.
JsonWeightsLoader reads them from a JSON file:

    {
      "model_type": "heavy",
      "version": "2024-06-01",
      "layers": [
        {"weights": [[...], ...], "biases": [...], "activation": "relu"},
        {"weights": [[...]], "biases": [0.0], "activation": "linear"}
      ]
    }

or, for the light ranker, {"model_type": "light", "light_weights": {...}, "light_bias": 0.0}.
Any read, parse or shape problem is reported as ModelLoadFailure.
"""

import json
from pathlib import Path
from typing import Dict, List, Literal, Protocol, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..errors import ModelLoadFailure


class LayerWeights(BaseModel):
    """Weights (output_size x input_size), biases (output_size) and activation of one layer."""

    model_config = ConfigDict(frozen=True)

    weights: List[List[float]]
    biases: List[float]
    activation: Literal["relu", "sigmoid", "tanh", "linear"] = "relu"

    @model_validator(mode="after")
    def shapes_match(self):
        if not self.weights:
            raise ValueError("layer has no weight rows")
        width = len(self.weights[0])
        if width == 0 or any(len(row) != width for row in self.weights):
            raise ValueError("layer weight rows must be non-empty and equal length")
        if len(self.biases) != len(self.weights):
            raise ValueError(
                f"layer has {len(self.weights)} weight rows but {len(self.biases)} biases"
            )
        return self

    @property
    def input_size(self) -> int:
        return len(self.weights[0])

    @property
    def output_size(self) -> int:
        return len(self.weights)


class ModelWeights(BaseModel):
    """Serialized scoring-model parameters."""

    model_config = ConfigDict(frozen=True)

    model_type: Literal["heavy", "light"] = "heavy"
    version: str = "1.0"
    layers: List[LayerWeights] = Field(default_factory=list)
    light_weights: Dict[str, float] = Field(default_factory=dict)
    light_bias: float = 0.0

    @model_validator(mode="after")
    def layers_chain(self):
        if self.model_type != "heavy":
            return self
        if not self.layers:
            raise ValueError("heavy model requires at least one layer")
        for prev, nxt in zip(self.layers, self.layers[1:]):
            if nxt.input_size != prev.output_size:
                raise ValueError(
                    f"layer input size {nxt.input_size} does not match previous output size {prev.output_size}"
                )
        if self.layers[-1].output_size != 1:
            raise ValueError("final layer must have exactly one output")
        return self


class ModelWeightsLoader(Protocol):
    """Supplies scoring-model weights (warm start)."""

    def load(self) -> ModelWeights:
        """Return validated weights or raise ModelLoadFailure."""
        ...


class JsonWeightsLoader:
    """Loads ModelWeights from a JSON file."""

    def __init__(self, path: Union[Path, str]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> ModelWeights:
        try:
            with open(self._path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ModelLoadFailure(f"Cannot read model weights {self._path}: {e}") from e
        return parse_weights(data, source=str(self._path))


class StaticWeightsLoader:
    """Loader over weights already in memory (tests, in-process training)."""

    def __init__(self, weights: Union[ModelWeights, Dict]):
        self._weights = weights

    def load(self) -> ModelWeights:
        if isinstance(self._weights, ModelWeights):
            return self._weights
        return parse_weights(self._weights, source="<memory>")


def parse_weights(data: Dict, source: str = "<memory>") -> ModelWeights:
    """Validate a weights dict, translating validation errors into ModelLoadFailure."""
    if not isinstance(data, dict):
        raise ModelLoadFailure(f"Model weights from {source} must be a JSON object")
    try:
        return ModelWeights.model_validate(data)
    except ValidationError as e:
        raise ModelLoadFailure(f"Malformed model weights from {source}: {e}") from e


def save_weights(path: Union[Path, str], weights: ModelWeights) -> None:
    """Write weights as JSON (the format JsonWeightsLoader reads)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        f.write(weights.model_dump_json(indent=2))

"""
Light ranker: logistic regression over named features.

Cheap, coarse scorer used when ML ranking is disabled.
"""

import math
from typing import Dict, Mapping, Optional


def sigmoid(x: float) -> float:
    """Numerically stable logistic function."""
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


class LightRanker:
    """
    score = sigmoid(bias + sum(weight[name] * features[name])).

    Features without a weight are ignored; weights without a feature count as 0.
    """

    def __init__(self, weights: Optional[Mapping[str, float]] = None, bias: float = 0.0):
        self._weights: Dict[str, float] = dict(weights or {})
        self._bias = float(bias)

    @property
    def weights(self) -> Dict[str, float]:
        return dict(self._weights)

    @property
    def bias(self) -> float:
        return self._bias

    def logit(self, features: Mapping[str, float]) -> float:
        total = self._bias
        for name, weight in self._weights.items():
            total += weight * float(features.get(name, 0.0))
        return total

    def score(self, features: Mapping[str, float]) -> float:
        return sigmoid(self.logit(features))

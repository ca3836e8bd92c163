"""
Scoring model selection.

Both rankers share one contract: score(normalized feature map) -> [0, 1].
build_scoring_model picks heavy or light from RankingConfig and applies
loaded weights when a loader is supplied, so cold and warm start need no
code change in the stages.
"""

import logging
from typing import Mapping, Optional, Protocol, Union

from ..errors import ModelLoadFailure
from ..models.config import RankingConfig
from .heavy_ranker import Activation, HeavyRanker
from .light_ranker import LightRanker
from .weights import ModelWeights, ModelWeightsLoader

logger = logging.getLogger(__name__)


class ScoringModel(Protocol):
    def score(self, features: Mapping[str, float]) -> float:
        """Engagement probability in [0, 1]."""
        ...


def build_scoring_model(
    config: RankingConfig,
    loader: Optional[ModelWeightsLoader] = None,
) -> Union[HeavyRanker, LightRanker]:
    """
    Heavy ranker when config.enable_ml_ranking, light ranker otherwise.

    With a loader, the loaded weights must match the selected model type;
    any mismatch or malformed payload raises ModelLoadFailure.
    """
    weights: Optional[ModelWeights] = loader.load() if loader is not None else None
    wanted = "heavy" if config.enable_ml_ranking else "light"

    if weights is not None and weights.model_type != wanted:
        raise ModelLoadFailure(
            f"loaded {weights.model_type!r} weights but ranking expects a {wanted!r} model"
        )

    if wanted == "heavy":
        if weights is not None:
            model = HeavyRanker.from_weights(weights)
            logger.info("[model] heavy ranker warm start version=%s layers=%d", model.version, len(model.layers))
            return model
        logger.info(
            "[model] heavy ranker cold start hidden=%s seed=%s",
            config.hidden_sizes, config.model_seed,
        )
        return HeavyRanker.initialized(
            hidden_sizes=config.hidden_sizes,
            seed=config.model_seed,
            hidden_activation=Activation(config.hidden_activation),
            version=config.model_version,
        )

    if weights is not None:
        logger.info("[model] light ranker warm start version=%s", weights.version)
        return LightRanker(weights.light_weights, weights.light_bias)
    return LightRanker(config.light_ranker_weights, config.light_ranker_bias)

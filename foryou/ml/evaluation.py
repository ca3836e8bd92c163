"""
Training / evaluation contract for the scoring models.

Training itself happens outside this package; what lives here is the shape of
the data exchanged with a trainer and the offline metrics used to judge a
candidate set of weights before it is loaded:

- TrainingExample: normalized feature map + binary label
- examples_from_interactions: label posts from a user's interactions
- evaluate_model: accuracy, precision, recall, F1 and ROC AUC

Usage:
    examples = examples_from_interactions(posts, interactions, context, extractor, now)
    metrics = evaluate_model(model, examples)
"""

from datetime import datetime
from typing import Dict, List, Optional, Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict

from ..models.post import Interaction, Post, UserContext
from .features import FeatureExtractor
from .model import ScoringModel

# Interactions at least this strong count as positive engagement.
POSITIVE_WEIGHT = 0.5


class TrainingExample(BaseModel):
    model_config = ConfigDict(frozen=True)

    features: Dict[str, float]
    label: float
    user_id: str
    post_id: str


class ModelMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    accuracy: float
    precision: float
    recall: float
    f1_score: float
    auc: float
    support: int


def examples_from_interactions(
    posts: Sequence[Post],
    interactions: Sequence[Interaction],
    user_context: UserContext,
    extractor: FeatureExtractor,
    now: Optional[datetime] = None,
) -> List[TrainingExample]:
    """
    One example per post: label 1.0 when the context user interacted with it at
    weight >= POSITIVE_WEIGHT, else 0.0. Features are normalized like at serving time.
    """
    positive_ids = {
        i.post_id
        for i in interactions
        if i.user_id == user_context.user_id and i.weight >= POSITIVE_WEIGHT
    }
    examples = []
    for post in posts:
        raw = extractor.extract(post, user_context, now)
        examples.append(
            TrainingExample(
                features=extractor.normalize(raw),
                label=1.0 if post.id in positive_ids else 0.0,
                user_id=user_context.user_id,
                post_id=post.id,
            )
        )
    return examples


def _safe_div(num: float, den: float) -> float:
    return num / den if den > 0 else 0.0


def compute_auc(scores: Sequence[float], labels: Sequence[float]) -> float:
    """
    ROC AUC via the rank-sum (Mann-Whitney) statistic, ties get average ranks.

    Returns 0.5 when only one class is present.
    """
    scores_arr = np.asarray(scores, dtype=float)
    labels_arr = np.asarray(labels, dtype=float) >= 0.5
    n_pos = int(labels_arr.sum())
    n_neg = len(labels_arr) - n_pos
    if n_pos == 0 or n_neg == 0:
        return 0.5

    order = np.argsort(scores_arr, kind="mergesort")
    ranks = np.empty(len(scores_arr), dtype=float)
    sorted_scores = scores_arr[order]
    i = 0
    while i < len(sorted_scores):
        j = i
        while j + 1 < len(sorted_scores) and sorted_scores[j + 1] == sorted_scores[i]:
            j += 1
        ranks[order[i:j + 1]] = (i + j) / 2.0 + 1.0
        i = j + 1

    rank_sum = ranks[labels_arr].sum()
    return float((rank_sum - n_pos * (n_pos + 1) / 2.0) / (n_pos * n_neg))


def evaluate_model(
    model: ScoringModel,
    examples: Sequence[TrainingExample],
    threshold: float = 0.5,
) -> ModelMetrics:
    """
    Score every example and compare against its label.

    Args:
        model: any ScoringModel (light or heavy ranker)
        examples: labeled examples with normalized features
        threshold: probability above which a prediction counts as positive

    Returns:
        ModelMetrics; all ratios are 0.0 when undefined (e.g. no positives).
    """
    if not examples:
        return ModelMetrics(accuracy=0.0, precision=0.0, recall=0.0, f1_score=0.0, auc=0.5, support=0)

    scores = [model.score(ex.features) for ex in examples]
    labels = [ex.label for ex in examples]

    tp = fp = fn = tn = 0
    for score, label in zip(scores, labels):
        predicted = score > threshold
        actual = label >= 0.5
        if predicted and actual:
            tp += 1
        elif predicted:
            fp += 1
        elif actual:
            fn += 1
        else:
            tn += 1

    precision = _safe_div(tp, tp + fp)
    recall = _safe_div(tp, tp + fn)
    return ModelMetrics(
        accuracy=_safe_div(tp + tn, len(examples)),
        precision=precision,
        recall=recall,
        f1_score=_safe_div(2 * precision * recall, precision + recall),
        auc=compute_auc(scores, labels),
        support=len(examples),
    )

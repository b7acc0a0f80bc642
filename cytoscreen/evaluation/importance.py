"""Variable importance rankings."""

import numpy as np
import pandas as pd
from typing import Sequence
from sklearn.metrics import roc_auc_score

from ..training.trainer import TrainedModel


def _scale_0_100(values: np.ndarray) -> np.ndarray:
    low, high = np.nanmin(values), np.nanmax(values)
    if high == low:
        return np.full_like(values, 100.0, dtype=float)
    return (values - low) / (high - low) * 100.0


def _ranked(feature_names: Sequence[str], raw: np.ndarray) -> pd.DataFrame:
    ranking = pd.DataFrame({
        'feature': list(feature_names),
        'raw': raw,
        'importance': _scale_0_100(raw),
    })
    ranking = ranking.sort_values('importance', ascending=False, kind='mergesort').reset_index(drop=True)
    ranking.index = ranking.index + 1
    ranking.index.name = 'rank'
    return ranking


def linear_importance(trained: TrainedModel) -> pd.DataFrame:
    """
    Rank features by the magnitude of a linear model's coefficients.

    Coefficients live in the centered and scaled feature space, so their
    magnitudes are comparable across features.

    Returns:
        DataFrame indexed by rank with feature, raw |coefficient| and
        importance scaled to 0..100

    Raises:
        ValueError: If the model has no linear coefficients
    """
    coefficients = getattr(trained.model, 'coefficients', None)
    if coefficients is None:
        raise ValueError(f"{trained.name} is not a linear model; use filter_importance instead")
    return _ranked(trained.feature_names, np.abs(coefficients()))


def filter_importance(X: pd.DataFrame, y, positive_label: str = 'malignant') -> pd.DataFrame:
    """
    Model-agnostic importance: ROC AUC of each feature on its own.

    An AUC below 0.5 is mirrored, so features that separate the classes in
    either direction rank high. Missing values are ignored per feature.
    """
    y_true = (np.asarray(y, dtype=object) == positive_label).astype(int)
    raw = []
    for column in X.columns:
        values = X[column].to_numpy(dtype=float)
        present = ~np.isnan(values)
        if len(np.unique(y_true[present])) < 2:
            raw.append(np.nan)
            continue
        score = roc_auc_score(y_true[present], values[present])
        raw.append(max(score, 1.0 - score))
    return _ranked(X.columns, np.asarray(raw, dtype=float))

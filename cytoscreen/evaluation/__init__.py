"""Held-out evaluation: predictions, ROC, confusion matrices, resamples, importance."""

from .predictions import extract_predictions, predict_table, SPLITS
from .roc import RocCurve, compute_roc
from .confusion import ConfusionMatrix, confusion_from_predictions
from .resamples import collect_resamples, summarize_resamples, compare_resamples
from .importance import linear_importance, filter_importance

__all__ = [
    'extract_predictions',
    'predict_table',
    'SPLITS',
    'RocCurve',
    'compute_roc',
    'ConfusionMatrix',
    'confusion_from_predictions',
    'collect_resamples',
    'summarize_resamples',
    'compare_resamples',
    'linear_importance',
    'filter_importance',
]

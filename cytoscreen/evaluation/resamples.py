"""Side-by-side summaries of cross-validation resamples."""

import itertools
import numpy as np
import pandas as pd
from typing import Dict
from scipy import stats

from ..training.trainer import TrainedModel


def collect_resamples(models: Dict[str, TrainedModel]) -> pd.DataFrame:
    """Selected-grid-point metric per (repeat, fold), one column per model."""
    if not models:
        raise ValueError("No trained models to collect resamples from")
    return pd.concat([model.resamples() for model in models.values()], axis=1,
                     keys=list(models))


def summarize_resamples(models: Dict[str, TrainedModel]) -> pd.DataFrame:
    """
    Distribution of the selection metric per model.

    Returns:
        One row per model with min, q1, median, mean, q3, max and the number
        of missing cells. Missing cells are ignored by every statistic.
    """
    resamples = collect_resamples(models)
    summary = pd.DataFrame({
        'min': resamples.min(),
        'q1': resamples.quantile(0.25),
        'median': resamples.median(),
        'mean': resamples.mean(),
        'q3': resamples.quantile(0.75),
        'max': resamples.max(),
        'n_missing': resamples.isna().sum(),
    })
    summary.index.name = 'model'
    metrics = {model.metric for model in models.values()}
    summary.attrs['metric'] = metrics.pop() if len(metrics) == 1 else 'mixed'
    return summary


def compare_resamples(models: Dict[str, TrainedModel]) -> pd.DataFrame:
    """
    Pairwise differences of paired resamples.

    Resamples are paired by (repeat, fold), which holds because every family
    of a run is scored on the same folds. Pairs where either side is missing
    are dropped.

    Returns:
        One row per model pair with the mean difference (first - second), the
        paired t statistic and its p-value
    """
    resamples = collect_resamples(models)
    rows = []
    for first, second in itertools.combinations(resamples.columns, 2):
        paired = resamples[[first, second]].dropna()
        diff = paired[first] - paired[second]
        if len(paired) > 1 and diff.std() > 0:
            t_stat, p_value = stats.ttest_rel(paired[first], paired[second])
        else:
            t_stat, p_value = np.nan, np.nan
        rows.append({
            'first': first,
            'second': second,
            'mean_difference': float(diff.mean()) if len(diff) else np.nan,
            't_statistic': float(t_stat),
            'p_value': float(p_value),
            'n_pairs': len(paired),
        })
    return pd.DataFrame(rows, columns=['first', 'second', 'mean_difference',
                                       't_statistic', 'p_value', 'n_pairs'])

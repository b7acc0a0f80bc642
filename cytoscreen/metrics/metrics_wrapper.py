import numpy as np
from typing import Union, List, Dict, Optional
from sklearn.metrics import (
    accuracy_score, recall_score, roc_auc_score, cohen_kappa_score
)

from ..exceptions import DegenerateClassError


class MetricsWrapper:
    """
    Metric registry for two-class evaluation.

    Every metric takes binary truth (1 = positive class) and the positive-class
    probability, so the same call serves model selection during resampling and
    held-out evaluation.
    """

    METRICS = {
        'ROC': lambda y_t, p, thr: roc_auc_score(y_t, p),
        'Sens': lambda y_t, p, thr: recall_score(y_t, (p >= thr).astype(int), pos_label=1, zero_division=0),
        'Spec': lambda y_t, p, thr: recall_score(y_t, (p >= thr).astype(int), pos_label=0, zero_division=0),
        'Accuracy': lambda y_t, p, thr: accuracy_score(y_t, (p >= thr).astype(int)),
        'Kappa': lambda y_t, p, thr: cohen_kappa_score(y_t, (p >= thr).astype(int)),
    }

    # Metrics that cannot be computed unless both classes are present
    NEEDS_BOTH_CLASSES = {'ROC', 'Sens', 'Spec', 'Kappa'}

    @staticmethod
    def available() -> List[str]:
        return list(MetricsWrapper.METRICS)

    @staticmethod
    def get_eval_metrics(metrics_names: Optional[Union[str, List[str]]] = None,
                         y_true=None, y_score=None, prob_thr: float = 0.5) -> Union[Dict, float, None]:
        """
        Compute one or more metrics.

        Args:
            metrics_names: Metric name(s) to compute. If None, computes all metrics.
            y_true: Binary truth, 1 for the positive class
            y_score: Positive-class probability per row
            prob_thr: Probability at or above which a row is called positive

        Returns:
            A float for a single metric name, otherwise a dict of scores

        Raises:
            ValueError: For an unknown metric name
            DegenerateClassError: If a metric needs both classes and y_true holds one
        """
        if y_true is None:
            return None

        is_single_metric = isinstance(metrics_names, str)
        if metrics_names is None:
            names = list(MetricsWrapper.METRICS)
        elif is_single_metric:
            names = [metrics_names]
        else:
            names = list(metrics_names)

        for name in names:
            if name not in MetricsWrapper.METRICS:
                raise ValueError(f"Metric '{name}' not found. Available metrics: {MetricsWrapper.available()}")

        y_true = np.asarray(y_true).astype(int)
        y_score = np.asarray(y_score, dtype=float)
        if y_score.ndim > 1:
            y_score = y_score[:, 1]

        single_class = len(np.unique(y_true)) < 2
        results = {}
        for name in names:
            if single_class and name in MetricsWrapper.NEEDS_BOTH_CLASSES:
                raise DegenerateClassError(
                    f"Metric '{name}' needs both classes; held-out rows hold only class {int(y_true[0])}")
            results[name] = float(MetricsWrapper.METRICS[name](y_true, y_score, prob_thr))

        if is_single_metric:
            return results[metrics_names]
        return results

"""ROC curves and AUC."""

import numpy as np
from dataclasses import dataclass
from sklearn.metrics import roc_curve, auc

from ..exceptions import DegenerateClassError


@dataclass(frozen=True)
class RocCurve:
    """ROC curve points from (0, 0) to (1, 1) and the area under them."""

    fpr: np.ndarray
    tpr: np.ndarray
    thresholds: np.ndarray
    auc: float
    positive_label: str

    def points(self):
        """(false-positive rate, true-positive rate) pairs in curve order."""
        return list(zip(self.fpr.tolist(), self.tpr.tolist()))


def compute_roc(scores, labels, positive_label: str = 'malignant') -> RocCurve:
    """
    Build the ROC curve of positive-class scores against true labels.

    Args:
        scores: Probability of the positive class per row
        labels: True label per row
        positive_label: Which label counts as positive

    Raises:
        DegenerateClassError: If labels hold only one class
    """
    y_true = (np.asarray(labels, dtype=object) == positive_label).astype(int)
    if len(np.unique(y_true)) < 2:
        raise DegenerateClassError("ROC curve needs both classes among the labels")

    fpr, tpr, thresholds = roc_curve(y_true, np.asarray(scores, dtype=float), drop_intermediate=False)
    # roc_curve starts at (0, 0) already; make sure the curve closes at (1, 1)
    if fpr[-1] < 1.0 or tpr[-1] < 1.0:
        fpr = np.append(fpr, 1.0)
        tpr = np.append(tpr, 1.0)
        thresholds = np.append(thresholds, -np.inf)

    return RocCurve(fpr=fpr, tpr=tpr, thresholds=thresholds,
                    auc=float(auc(fpr, tpr)), positive_label=positive_label)

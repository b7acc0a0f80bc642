"""Confusion matrices with the usual two-class summary statistics."""

import numpy as np
import pandas as pd
from dataclasses import dataclass
from typing import Dict, Sequence
from sklearn.metrics import confusion_matrix, cohen_kappa_score


@dataclass(frozen=True)
class ConfusionMatrix:
    """
    Counts per (predicted, observed) cell.

    `table` is indexed by predicted label (rows) and observed label (columns).
    Sensitivity and specificity are relative to `positive_label`.
    """

    table: pd.DataFrame
    positive_label: str
    kappa: float

    @classmethod
    def from_labels(cls, predicted, observed, labels: Sequence[str],
                    positive_label: str = 'malignant') -> 'ConfusionMatrix':
        labels = list(labels)
        if positive_label not in labels:
            raise ValueError(f"Positive label '{positive_label}' is not one of {labels}")

        predicted = np.asarray(predicted, dtype=object)
        observed = np.asarray(observed, dtype=object)
        # sklearn puts truth on rows; transpose to predicted x observed
        counts = confusion_matrix(observed, predicted, labels=labels).T
        table = pd.DataFrame(counts, index=pd.Index(labels, name='predicted'),
                             columns=pd.Index(labels, name='observed'))
        kappa = cohen_kappa_score(observed, predicted, labels=labels) if len(observed) else np.nan
        return cls(table=table, positive_label=positive_label, kappa=float(kappa))

    @property
    def total(self) -> int:
        return int(self.table.to_numpy().sum())

    def _cell(self, predicted_positive: bool, observed_positive: bool) -> int:
        pos = self.positive_label
        rows = [l for l in self.table.index if (l == pos) == predicted_positive]
        cols = [l for l in self.table.columns if (l == pos) == observed_positive]
        return int(self.table.loc[rows, cols].to_numpy().sum())

    @property
    def accuracy(self) -> float:
        return _ratio(int(np.trace(self.table.to_numpy())), self.total)

    @property
    def sensitivity(self) -> float:
        tp, fn = self._cell(True, True), self._cell(False, True)
        return _ratio(tp, tp + fn)

    @property
    def specificity(self) -> float:
        tn, fp = self._cell(False, False), self._cell(True, False)
        return _ratio(tn, tn + fp)

    @property
    def ppv(self) -> float:
        tp, fp = self._cell(True, True), self._cell(True, False)
        return _ratio(tp, tp + fp)

    @property
    def npv(self) -> float:
        tn, fn = self._cell(False, False), self._cell(False, True)
        return _ratio(tn, tn + fn)

    @property
    def balanced_accuracy(self) -> float:
        return (self.sensitivity + self.specificity) / 2

    def summary(self) -> Dict[str, float]:
        return {
            'accuracy': self.accuracy,
            'kappa': self.kappa,
            'sensitivity': self.sensitivity,
            'specificity': self.specificity,
            'ppv': self.ppv,
            'npv': self.npv,
            'balanced_accuracy': self.balanced_accuracy,
        }

    def to_dict(self) -> Dict:
        return {
            'positive_label': self.positive_label,
            'table': {pred: {obs: int(self.table.loc[pred, obs]) for obs in self.table.columns}
                      for pred in self.table.index},
            **self.summary(),
        }

    def __str__(self) -> str:
        lines = [self.table.to_string(), '']
        lines += [f"{name:>18}: {value:.4f}" for name, value in self.summary().items()]
        lines.append(f"{'positive class':>18}: {self.positive_label}")
        return '\n'.join(lines)


def confusion_from_predictions(predictions: pd.DataFrame, model: str, split: str = 'test',
                               labels: Sequence[str] = ('benign', 'malignant'),
                               positive_label: str = 'malignant') -> ConfusionMatrix:
    """Confusion matrix of one model on one split of the merged prediction table."""
    rows = predictions[(predictions['model'] == model) & (predictions['split'] == split)]
    if rows.empty:
        raise ValueError(f"No predictions for model '{model}' on split '{split}'")
    return ConfusionMatrix.from_labels(rows['pred'], rows['obs'], labels, positive_label)


def _ratio(numerator: int, denominator: int) -> float:
    return numerator / denominator if denominator else float('nan')

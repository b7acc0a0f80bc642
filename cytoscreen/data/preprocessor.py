"""
Fold Preprocessor
=================

Missing-value imputation followed by centering and scaling, fitted on one
set of rows and applied unchanged to any other rows.

"""

import numpy as np
import joblib
from pathlib import Path
from sklearn.impute import KNNImputer
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler
from typing import Dict, Sequence, Union, Any
from loguru import logger

from ..exceptions import ConfigurationError

STEPS = ('impute', 'center', 'scale')


class FoldPreprocessor:
    """Imputer + scaler whose statistics come only from the rows it was fitted on."""

    def __init__(self, steps: Sequence[str] = STEPS, impute_neighbors: int = 5):
        """
        Initialize preprocessor.

        Args:
            steps: Any of 'impute', 'center', 'scale'. Order of application is
                always impute, then center/scale.
            impute_neighbors: Neighbours averaged by the nearest-neighbour imputer
        """
        unknown = [s for s in steps if s not in STEPS]
        if unknown:
            raise ConfigurationError(f"Unknown preprocessing steps: {unknown}")

        self.steps = tuple(steps)
        self.impute_neighbors = impute_neighbors
        self.pipeline = self._build()
        self.impute_reference = None
        self.fitted = False

    def _build(self) -> Pipeline:
        stages = []
        if 'impute' in self.steps:
            stages.append(('impute', KNNImputer(n_neighbors=self.impute_neighbors,
                                                keep_empty_features=True)))
        center = 'center' in self.steps
        scale = 'scale' in self.steps
        if center or scale:
            stages.append(('scale', StandardScaler(with_mean=center, with_std=scale)))
        if not stages:
            stages.append(('identity', 'passthrough'))
        return Pipeline(stages)

    def fit(self, X: np.ndarray) -> 'FoldPreprocessor':
        """Learn imputation and scaling statistics from X only."""
        X = np.asarray(X, dtype=float)
        self.pipeline.fit(X)
        # Rows the imputer draws neighbours from
        self.impute_reference = X.copy() if 'impute' in self.steps else None
        self.fitted = True
        return self

    def transform(self, X: np.ndarray) -> np.ndarray:
        """Apply the fitted statistics to X."""
        if not self.fitted:
            raise ValueError("Preprocessor not fitted")
        return self.pipeline.transform(np.asarray(X, dtype=float))

    def fit_transform(self, X_train: np.ndarray, *arrays: np.ndarray) -> Union[np.ndarray, tuple]:
        """
        Fit on training rows and transform all provided arrays.

        Returns:
            Single array if only X_train provided, tuple of arrays otherwise
        """
        self.fit(X_train)
        X_train_out = self.transform(X_train)
        if not arrays:
            return X_train_out
        return tuple([X_train_out] + [self.transform(arr) for arr in arrays])

    def statistics(self) -> Dict[str, Any]:
        """Learned statistics: column means, scales and the imputer's reference rows."""
        if not self.fitted:
            raise ValueError("Preprocessor not fitted")

        stats: Dict[str, Any] = {'steps': self.steps}
        named = self.pipeline.named_steps
        if self.impute_reference is not None:
            stats['impute_reference'] = self.impute_reference.copy()
        if 'scale' in named:
            scaler = named['scale']
            stats['mean'] = None if scaler.mean_ is None else scaler.mean_.copy()
            stats['scale'] = None if scaler.scale_ is None else scaler.scale_.copy()
        return stats

    def save(self, filepath: Union[str, Path]) -> None:
        """Save fitted preprocessor to file."""
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump({
            'pipeline': self.pipeline,
            'steps': self.steps,
            'impute_neighbors': self.impute_neighbors,
            'impute_reference': self.impute_reference,
            'fitted': self.fitted,
        }, filepath)
        logger.info(f"Saved preprocessor {list(self.steps)} to {filepath}")

    @classmethod
    def load(cls, filepath: Union[str, Path]) -> 'FoldPreprocessor':
        """Load fitted preprocessor from file."""
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"Preprocessor file not found: {filepath}")

        data = joblib.load(filepath)
        instance = cls(data['steps'], data['impute_neighbors'])
        instance.pipeline = data['pipeline']
        instance.impute_reference = data.get('impute_reference')
        instance.fitted = data['fitted']
        logger.info(f"Loaded preprocessor {list(instance.steps)} from {filepath}")
        return instance

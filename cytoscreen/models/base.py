"""Base model interface and model families.

This module provides the foundation for every classifier family compared by
the pipeline. Each family implements the same small capability set so the
cross-validated trainer never needs to know which one it is driving.

Key Components:
    - ModelFamily: Enumeration of the supported classifier families
    - BaseModel: Abstract base class for all models
    - safe_int / safe_float: Tolerant conversions for YAML-sourced values
"""

from abc import ABC, abstractmethod
from enum import Enum
import numpy as np
from typing import Any, Dict, Optional
from loguru import logger
from pathlib import Path
import joblib

from ..exceptions import ConfigurationError


def safe_int(value: Any, default: int) -> int:
    """
    Safely convert value to integer.

    Handles strings with scientific notation, floats and None values.
    Returns default if conversion fails.
    """
    if value is None:
        return default
    try:
        return int(float(str(value)))
    except (TypeError, ValueError):
        return default


def safe_float(value: Any, default: float) -> float:
    """
    Safely convert value to float.

    Returns default if conversion fails.
    """
    if value is None:
        return default
    try:
        return float(str(value))
    except (TypeError, ValueError):
        return default


class ModelFamily(str, Enum):
    """Classifier families the pipeline can tune and compare."""

    KNN = 'knn'
    NAIVE_BAYES = 'naive_bayes'
    SVM_LINEAR = 'svm_linear'

    @classmethod
    def parse(cls, name: Any) -> 'ModelFamily':
        """
        Turn a configuration string into a family.

        Raises:
            ConfigurationError: If the name is not a known family
        """
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            raise ConfigurationError(
                f"Unknown model family '{name}'. Available: {[f.value for f in cls]}") from None


class BaseModel(ABC):
    """
    Abstract base class for all classifier families.

    Provides a consistent interface for fitting with a grid point, predicting
    labels and class probabilities, and persistence. A model instance is a
    template: `fit` builds a new estimator from the given parameters every
    time it is called.

    Attributes:
        family: Which ModelFamily this is
        model: The underlying fitted estimator (None until fit)
        params: Grid point used by the last fit
        fitted: Whether the model has been trained
        model_name: Name of the model class
    """

    family: ModelFamily

    def __init__(self, random_state: Optional[int] = None):
        """
        Args:
            random_state: Seed handed to estimators that use randomness
        """
        self.random_state = random_state
        self.model = None
        self.params: Dict[str, Any] = {}
        self.fitted = False
        self.model_name = self.__class__.__name__

    @abstractmethod
    def build_estimator(self, params: Dict[str, Any]):
        """
        Create an unfitted scikit-learn estimator for one grid point.

        Args:
            params: Hyperparameter values for this family
        """

    def fit(self, params: Dict[str, Any], X: np.ndarray, y: np.ndarray) -> 'BaseModel':
        """
        Fit a fresh estimator built from `params` on X, y.

        Args:
            params: Grid point
            X: Training features of shape (n_samples, n_features)
            y: Training labels of shape (n_samples,)

        Returns:
            self, for chaining
        """
        self.model = self.build_estimator(params)
        self.model.fit(X, y)
        self.params = dict(params)
        self.fitted = True
        logger.debug(f"{self.model_name} fitted with {self.params}")
        return self

    def predict(self, X: np.ndarray) -> np.ndarray:
        """Predicted labels of shape (n_samples,)."""
        if not self.fitted:
            raise ValueError("Model not trained")
        return self.model.predict(X)

    def predict_proba(self, X: np.ndarray) -> np.ndarray:
        """Class probabilities of shape (n_samples, n_classes), columns ordered as `classes_`."""
        if not self.fitted:
            raise ValueError("Model not trained")
        return self.model.predict_proba(X)

    @property
    def classes_(self) -> np.ndarray:
        if not self.fitted:
            raise ValueError("Model not trained")
        return self.model.classes_

    def save(self, filepath: str) -> None:
        """
        Save the fitted model to disk with joblib.

        Raises:
            ValueError: If attempting to save an unfitted model
        """
        if not self.fitted:
            raise ValueError("Cannot save unfitted model")

        filepath = Path(filepath).with_suffix('.joblib')
        filepath.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump({
            'model_name': self.model_name,
            'family': self.family.value,
            'params': self.params,
            'random_state': self.random_state,
            'model': self.model,
            'fitted': self.fitted,
        }, filepath)
        logger.info(f"Saved {self.model_name}: {filepath}")

    def load(self, filepath: str) -> None:
        """Load a model saved with `save` into this instance."""
        filepath = Path(filepath).with_suffix('.joblib')
        metadata = joblib.load(filepath)

        if not metadata.get('fitted', False):
            raise ValueError("Cannot load unfitted model")
        if metadata.get('family') != self.family.value:
            raise ValueError(f"File holds a {metadata.get('family')} model, not {self.family.value}")

        self.model = metadata['model']
        self.params = metadata.get('params', {})
        self.random_state = metadata.get('random_state')
        self.fitted = True
        logger.info(f"Loaded {self.model_name}: {filepath}")

    def __repr__(self) -> str:
        return f"{self.model_name}(params={self.params}, fitted={self.fitted})"

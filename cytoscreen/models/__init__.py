"""Models module.

This module provides the classifier families compared by the pipeline:
- k-nearest neighbours
- Naive Bayes with kernel densities
- linear support vector machine
and the hyperparameter grids searched for each of them.
"""

from .base import BaseModel, ModelFamily, safe_int, safe_float
from .classical import KNNModel, NaiveBayesModel, LinearSVMModel, MODEL_CLASSES, create_model
from .kernel_naive_bayes import KernelNaiveBayes
from .grid import build_grid, DEFAULT_GRIDS

__all__ = [
    'BaseModel',
    'ModelFamily',
    'safe_int',
    'safe_float',
    'KNNModel',
    'NaiveBayesModel',
    'LinearSVMModel',
    'MODEL_CLASSES',
    'create_model',
    'KernelNaiveBayes',
    'build_grid',
    'DEFAULT_GRIDS',
]

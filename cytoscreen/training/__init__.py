"""Cross-validated tuning of model families."""

from .resampling import RepeatedFolds, FoldSplit
from .trainer import CrossValidatedTrainer, TrainedModel

__all__ = ['RepeatedFolds', 'FoldSplit', 'CrossValidatedTrainer', 'TrainedModel']

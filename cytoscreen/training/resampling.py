"""Repeated stratified k-fold assignment."""

import numpy as np
from dataclasses import dataclass
from typing import Iterator, List
from sklearn.model_selection import RepeatedStratifiedKFold
from loguru import logger

from ..exceptions import ConfigurationError


@dataclass(frozen=True)
class FoldSplit:
    """One held-out fold of one repeat."""

    repeat: int
    fold: int
    train_index: np.ndarray
    holdout_index: np.ndarray


class RepeatedFolds:
    """
    Fold assignment shared by every model family of a run.

    The splits are drawn once from the random source, so all families are
    scored on identical folds and their resamples can be compared pairwise.
    """

    def __init__(self, n_folds: int = 5, n_repeats: int = 10, seed: int = 42):
        if n_folds < 2:
            raise ConfigurationError(f"n_folds must be at least 2, got {n_folds}")
        if n_repeats < 1:
            raise ConfigurationError(f"n_repeats must be at least 1, got {n_repeats}")
        self.n_folds = n_folds
        self.n_repeats = n_repeats
        self.seed = seed
        self._splits: List[FoldSplit] = []

    @classmethod
    def from_random_source(cls, random_source: np.random.Generator,
                           n_folds: int = 5, n_repeats: int = 10) -> 'RepeatedFolds':
        return cls(n_folds, n_repeats, seed=int(random_source.integers(0, 2**31 - 1)))

    def split(self, y) -> List[FoldSplit]:
        """
        Assign training rows to folds.

        Args:
            y: Training labels

        Returns:
            Splits in repeat-major order: (repeat 0, fold 0), (repeat 0, fold 1), ...
        """
        y = np.asarray(y)
        splitter = RepeatedStratifiedKFold(
            n_splits=self.n_folds, n_repeats=self.n_repeats, random_state=self.seed)

        self._splits = [
            FoldSplit(i // self.n_folds, i % self.n_folds, train_idx, holdout_idx)
            for i, (train_idx, holdout_idx) in enumerate(splitter.split(np.zeros(len(y)), y))
        ]
        logger.info(f"Using Repeated Stratified KFold: {self.n_folds} folds x {self.n_repeats} repeats "
                    f"(seed {self.seed})")
        return self._splits

    def __iter__(self) -> Iterator[FoldSplit]:
        return iter(self._splits)

    def __len__(self) -> int:
        return self.n_folds * self.n_repeats

"""Stratified train/test partition of the specimen table."""

import numpy as np
from dataclasses import dataclass
from sklearn.model_selection import train_test_split
from loguru import logger

from ..exceptions import ConfigurationError, DegenerateClassError


@dataclass(frozen=True)
class Partition:
    """Disjoint, exhaustive split of row positions into training and test."""

    train_index: np.ndarray
    test_index: np.ndarray

    @property
    def n_rows(self) -> int:
        return len(self.train_index) + len(self.test_index)

    @property
    def train_mask(self) -> np.ndarray:
        mask = np.zeros(self.n_rows, dtype=bool)
        mask[self.train_index] = True
        return mask

    @property
    def test_mask(self) -> np.ndarray:
        return ~self.train_mask


def stratified_partition(labels, train_fraction: float,
                         random_source: np.random.Generator) -> Partition:
    """
    Select training rows so each class keeps the same proportion.

    Args:
        labels: Label per row
        train_fraction: Share of rows used for training, in (0, 1)
        random_source: Seeded generator; the split is a pure function of its state

    Returns:
        Partition with sorted positional indices

    Raises:
        ConfigurationError: If train_fraction lies outside (0, 1)
        DegenerateClassError: If fewer than two classes are present, or a class
            ends up missing from one side of the split
    """
    if not 0.0 < train_fraction < 1.0:
        raise ConfigurationError(f"train_fraction must lie in (0, 1), got {train_fraction}")

    y = np.asarray(labels)
    classes, counts = np.unique(y, return_counts=True)
    if len(classes) < 2:
        raise DegenerateClassError(f"Need at least two classes to partition, found {list(classes)}")

    seed = int(random_source.integers(0, 2**31 - 1))
    try:
        train_index, test_index = train_test_split(
            np.arange(len(y)),
            train_size=train_fraction,
            random_state=seed,
            stratify=y,
        )
    except ValueError as e:
        raise DegenerateClassError(f"Cannot stratify labels: {e}") from e

    partition = Partition(np.sort(train_index), np.sort(test_index))

    for cls, total in zip(classes, counts):
        n_train = int(np.sum(y[partition.train_index] == cls))
        n_test = int(total - n_train)
        if n_train == 0 or n_test == 0:
            raise DegenerateClassError(
                f"Class '{cls}' has {n_train} training and {n_test} test rows",
                train_fraction=train_fraction)
        logger.debug(f"Class {cls}: {n_train} train / {n_test} test")

    logger.info(f"Partition: {len(partition.train_index)} train, {len(partition.test_index)} test "
                f"({train_fraction:.0%} training fraction)")
    return partition

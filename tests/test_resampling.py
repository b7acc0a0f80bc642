import numpy as np
import pytest

from cytoscreen.exceptions import ConfigurationError
from cytoscreen.training import RepeatedFolds


@pytest.fixture
def labels():
    return np.array(['benign'] * 60 + ['malignant'] * 30, dtype=object)


def test_split_count_and_order(labels):
    splits = RepeatedFolds(n_folds=5, n_repeats=3, seed=0).split(labels)

    assert len(splits) == 15
    assert [(s.repeat, s.fold) for s in splits[:6]] == [(0, 0), (0, 1), (0, 2), (0, 3), (0, 4), (1, 0)]


def test_each_repeat_covers_every_row_once(labels):
    splits = RepeatedFolds(n_folds=5, n_repeats=2, seed=0).split(labels)

    for repeat in range(2):
        holdouts = np.concatenate([s.holdout_index for s in splits if s.repeat == repeat])
        assert sorted(holdouts) == list(range(len(labels)))


def test_folds_are_stratified(labels):
    for split in RepeatedFolds(n_folds=5, n_repeats=2, seed=0).split(labels):
        held_out = labels[split.holdout_index]
        assert np.sum(held_out == 'malignant') == 6
        assert len(np.intersect1d(split.train_index, split.holdout_index)) == 0


def test_same_seed_same_folds(labels):
    first = RepeatedFolds(5, 2, seed=4).split(labels)
    second = RepeatedFolds(5, 2, seed=4).split(labels)

    for a, b in zip(first, second):
        np.testing.assert_array_equal(a.holdout_index, b.holdout_index)


def test_from_random_source_is_reproducible(labels):
    first = RepeatedFolds.from_random_source(np.random.default_rng(3), 5, 2)
    second = RepeatedFolds.from_random_source(np.random.default_rng(3), 5, 2)
    assert first.seed == second.seed
    assert len(first) == 10


@pytest.mark.parametrize('n_folds, n_repeats', [(1, 10), (5, 0)])
def test_invalid_fold_settings(n_folds, n_repeats):
    with pytest.raises(ConfigurationError):
        RepeatedFolds(n_folds, n_repeats)

"""
Common test fixtures for the benchmark tests.
"""
import sys

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pandas as pd
import pytest
from loguru import logger

from cytoscreen.data import FeatureNormalizer, FEATURE_COLUMNS, LABEL_COLUMN
from cytoscreen.data.loader import RAW_COLUMNS
from cytoscreen.models import ModelFamily, build_grid, create_model
from cytoscreen.training import CrossValidatedTrainer, RepeatedFolds

N_BENIGN = 70
N_MALIGNANT = 40


def make_raw_specimens(n_benign=N_BENIGN, n_malignant=N_MALIGNANT, seed=0):
    """Raw UCI-style table: string cells, '?' in Bare Nuclei, class coded 2/4."""
    rng = np.random.default_rng(seed)
    n = n_benign + n_malignant
    is_malignant = np.r_[np.zeros(n_benign, dtype=bool), np.ones(n_malignant, dtype=bool)]

    rows = {RAW_COLUMNS[0]: [str(1000000 + i) for i in range(n)]}
    for column in RAW_COLUMNS[1:10]:
        low = rng.integers(1, 5, size=n)
        high = rng.integers(4, 11, size=n)
        values = np.where(is_malignant, high, low)
        if column == 'Mitoses':
            values = np.where(rng.random(n) < 0.8, 1, values)
        rows[column] = [str(v) for v in values]
    rows[RAW_COLUMNS[10]] = ['4' if m else '2' for m in is_malignant]

    raw = pd.DataFrame(rows, columns=RAW_COLUMNS)
    for i in (3, 17, 45, 88, 101):
        raw.loc[i, 'Bare Nuclei'] = '?'
    return raw


@pytest.fixture(autouse=True)
def reset_logger():
    """Give every test the default stderr sink back."""
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def raw_specimens():
    return make_raw_specimens()


@pytest.fixture
def raw_file(tmp_path, raw_specimens):
    """Header-less comma separated file, as distributed by UCI."""
    path = tmp_path / 'breast-cancer-wisconsin.data'
    raw_specimens.to_csv(path, header=False, index=False)
    return path


@pytest.fixture
def specimens(raw_specimens):
    return FeatureNormalizer().transform(raw_specimens)


@pytest.fixture
def small_config(raw_file, tmp_path):
    return {
        'data': {
            'source': str(raw_file),
            'train_fraction': 0.8,
            'random_state': 7,
        },
        'training': {
            'n_folds': 3,
            'n_repeats': 2,
            'metric': 'ROC',
            'preprocessing': ['impute', 'center', 'scale'],
            'impute_neighbors': 5,
            'n_jobs': 1,
        },
        'evaluation': {'positive_label': 'malignant'},
        'models': {
            'knn': {'enabled': True, 'grid': {'n_neighbors': [3, 5, 7]}},
            'svm_linear': {'enabled': True, 'grid': {'C': [0.1, 1.0]}},
            'naive_bayes': {'enabled': True, 'grid': {'laplace': [0, 1]}},
        },
        'visualization': {'create_report': False, 'dpi': 50},
        'output': {'output_dir': str(tmp_path / 'results')},
    }


@pytest.fixture(scope='module')
def training_data():
    specimens = FeatureNormalizer().transform(make_raw_specimens())
    X = specimens[FEATURE_COLUMNS]
    y = specimens[LABEL_COLUMN].astype(object).to_numpy()
    return X, y


@pytest.fixture(scope='module')
def trained_models(training_data):
    """Small tuned k-NN and linear SVM sharing the same folds."""
    X, y = training_data
    folds = RepeatedFolds(n_folds=3, n_repeats=2, seed=11)
    models = {}
    for family, grid in [(ModelFamily.KNN, {'n_neighbors': [3, 5]}),
                         (ModelFamily.SVM_LINEAR, {'C': [0.5, 1.0]})]:
        trainer = CrossValidatedTrainer(
            model=create_model(family, random_state=3),
            grid=build_grid(family, grid),
            folds=folds,
        )
        models[family.value] = trainer.train(X, y)
    return models

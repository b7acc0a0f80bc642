import numpy as np
import pytest
from sklearn.calibration import CalibratedClassifierCV

from cytoscreen.data import FoldPreprocessor
from cytoscreen.exceptions import ConfigurationError
from cytoscreen.models import (
    KernelNaiveBayes, KNNModel, LinearSVMModel, ModelFamily, NaiveBayesModel, create_model,
)


@pytest.fixture
def prepared(training_data):
    X, y = training_data
    return FoldPreprocessor().fit_transform(X.to_numpy(dtype=float)), y


@pytest.mark.parametrize('family, params', [
    (ModelFamily.KNN, {'n_neighbors': 5}),
    (ModelFamily.NAIVE_BAYES, {'usekernel': True, 'laplace': 1.0}),
    (ModelFamily.NAIVE_BAYES, {'usekernel': False, 'laplace': 0.0}),
    (ModelFamily.SVM_LINEAR, {'C': 1.0}),
])
def test_probabilities_are_distributions(prepared, family, params):
    X, y = prepared
    model = create_model(family, random_state=0).fit(params, X, y)
    proba = model.predict_proba(X)

    assert proba.shape == (len(X), 2)
    assert list(model.classes_) == ['benign', 'malignant']
    assert ((proba >= 0) & (proba <= 1)).all()
    np.testing.assert_allclose(proba.sum(axis=1), 1.0, atol=1e-6)


def test_models_separate_the_classes(prepared):
    X, y = prepared
    for model, params in [(KNNModel(), {'n_neighbors': 5}),
                          (NaiveBayesModel(), {'laplace': 0.0}),
                          (LinearSVMModel(random_state=0), {'C': 1.0})]:
        accuracy = np.mean(model.fit(params, X, y).predict(X) == y)
        assert accuracy > 0.85, model


def test_create_model_uses_family_table():
    assert isinstance(create_model('knn'), KNNModel)
    assert isinstance(create_model(ModelFamily.NAIVE_BAYES), NaiveBayesModel)
    assert isinstance(create_model('SVM_LINEAR'), LinearSVMModel)
    with pytest.raises(ConfigurationError):
        create_model('lda')


def test_predict_before_fit():
    with pytest.raises(ValueError):
        KNNModel().predict_proba(np.zeros((2, 9)))


def test_svm_coefficients(prepared):
    X, y = prepared
    model = LinearSVMModel(random_state=0).fit({'C': 1.0}, X, y)
    assert model.coefficients().shape == (X.shape[1],)


def test_svm_probabilities_come_from_calibration(prepared):
    X, y = prepared
    model = LinearSVMModel(random_state=0).fit({'C': 2.0}, X, y)

    assert isinstance(model.model, CalibratedClassifierCV)
    svm = model.model.calibrated_classifiers_[0].estimator
    assert svm.C == 2.0
    assert not svm.probability
    assert list(model.model.classes_) == ['benign', 'malignant']


def test_model_save_and_load(tmp_path, prepared):
    X, y = prepared
    model = KNNModel().fit({'n_neighbors': 3}, X, y)
    model.save(tmp_path / 'knn')

    loaded = KNNModel()
    loaded.load(tmp_path / 'knn')

    np.testing.assert_array_equal(loaded.predict_proba(X), model.predict_proba(X))
    with pytest.raises(ValueError):
        LinearSVMModel().load(tmp_path / 'knn')


def test_kernel_naive_bayes_prior_uses_laplace_correction():
    X = np.array([[0.0], [0.1], [0.2], [5.0]])
    y = np.array(['a', 'a', 'a', 'b'])

    plain = KernelNaiveBayes(laplace=0.0).fit(X, y)
    corrected = KernelNaiveBayes(laplace=1.0).fit(X, y)

    np.testing.assert_allclose(np.exp(plain.class_log_prior_), [0.75, 0.25])
    np.testing.assert_allclose(np.exp(corrected.class_log_prior_), [4 / 6, 2 / 6])


def test_kernel_naive_bayes_handles_constant_feature():
    X = np.array([[1.0, 3.0], [1.0, 4.0], [1.0, 8.0], [1.0, 9.0]])
    y = np.array([0, 0, 1, 1])

    proba = KernelNaiveBayes().fit(X, y).predict_proba(np.array([[1.0, 3.5], [1.0, 8.5]]))

    assert np.isfinite(proba).all()
    assert proba[0, 0] > 0.5 and proba[1, 1] > 0.5


def test_kernel_naive_bayes_rejects_negative_laplace():
    with pytest.raises(ValueError):
        KernelNaiveBayes(laplace=-1).fit(np.zeros((2, 1)), [0, 1])

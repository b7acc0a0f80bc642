import numpy as np
import pandas as pd
import pytest

from cytoscreen.evaluation import (
    ConfusionMatrix, collect_resamples, compare_resamples, compute_roc,
    confusion_from_predictions, extract_predictions, filter_importance, linear_importance,
    summarize_resamples,
)
from cytoscreen.exceptions import DegenerateClassError
from cytoscreen.metrics import MetricsWrapper

LABELS = ('benign', 'malignant')


def test_roc_curve_endpoints_and_auc():
    labels = np.array(['benign', 'benign', 'malignant', 'malignant', 'benign', 'malignant'])
    scores = np.array([0.1, 0.4, 0.35, 0.8, 0.2, 0.9])

    curve = compute_roc(scores, labels)

    assert curve.points()[0] == (0.0, 0.0)
    assert curve.points()[-1] == (1.0, 1.0)
    assert np.all(np.diff(curve.fpr) >= 0) and np.all(np.diff(curve.tpr) >= 0)
    assert curve.auc == pytest.approx(8 / 9)


def test_roc_of_perfect_scores():
    curve = compute_roc([0.9, 0.8, 0.2, 0.1], ['malignant', 'malignant', 'benign', 'benign'])
    assert curve.auc == pytest.approx(1.0)


def test_roc_with_other_positive_label():
    labels = ['malignant', 'malignant', 'benign', 'benign']
    curve = compute_roc([0.1, 0.2, 0.8, 0.9], labels, positive_label='benign')
    assert curve.auc == pytest.approx(1.0)


def test_roc_needs_both_classes():
    with pytest.raises(DegenerateClassError):
        compute_roc([0.2, 0.7], ['benign', 'benign'])


def test_confusion_matrix_counts():
    observed = ['malignant'] * 4 + ['benign'] * 6
    predicted = ['malignant', 'malignant', 'malignant', 'benign'] + ['benign'] * 5 + ['malignant']

    cm = ConfusionMatrix.from_labels(predicted, observed, LABELS)

    assert cm.table.loc['malignant', 'malignant'] == 3
    assert cm.table.loc['benign', 'malignant'] == 1
    assert cm.table.loc['malignant', 'benign'] == 1
    assert cm.table.loc['benign', 'benign'] == 5
    assert cm.total == 10
    assert cm.accuracy == pytest.approx(0.8)
    assert cm.sensitivity == pytest.approx(0.75)
    assert cm.specificity == pytest.approx(5 / 6)
    assert cm.ppv == pytest.approx(0.75)
    assert cm.npv == pytest.approx(5 / 6)
    assert -1.0 <= cm.kappa <= 1.0
    assert 'positive_label' in cm.to_dict()


def test_confusion_matrix_rejects_unknown_positive_label():
    with pytest.raises(ValueError):
        ConfusionMatrix.from_labels(['benign'], ['benign'], LABELS, positive_label='cancer')


def test_prediction_table(trained_models, training_data):
    X, y = training_data
    positions = np.arange(len(y))
    ids = np.array([f'id{i}' for i in range(len(y))])

    predictions = extract_predictions(trained_models, {
        'training': (X, y, positions, ids),
        'test': (X[:20], y[:20], positions[:20], ids[:20]),
    })

    assert list(predictions.columns) == ['row_id', 'specimen_id', 'model', 'split', 'pred',
                                         'prob_benign', 'prob_malignant', 'obs']
    assert len(predictions) == 2 * (len(y) + 20)
    np.testing.assert_allclose(predictions[['prob_benign', 'prob_malignant']].sum(axis=1), 1.0, atol=1e-6)
    argmax = np.where(predictions['prob_malignant'] > predictions['prob_benign'], 'malignant', 'benign')
    tied = np.isclose(predictions['prob_malignant'], predictions['prob_benign'])
    assert (predictions['pred'].to_numpy()[~tied] == argmax[~tied]).all()

    cm = confusion_from_predictions(predictions, 'knn', 'test')
    assert cm.total == 20


def test_prediction_table_rejects_unknown_split(trained_models, training_data):
    X, y = training_data
    with pytest.raises(ValueError):
        extract_predictions(trained_models, {'validation': (X, y, np.arange(len(y)))})


def test_resample_summary(trained_models):
    summary = summarize_resamples(trained_models)

    assert list(summary.index) == ['knn', 'svm_linear']
    assert list(summary.columns) == ['min', 'q1', 'median', 'mean', 'q3', 'max', 'n_missing']
    assert (summary['min'] <= summary['median']).all()
    assert (summary['median'] <= summary['max']).all()
    assert summary.attrs['metric'] == 'ROC'


def test_resamples_are_paired(trained_models):
    resamples = collect_resamples(trained_models)
    assert resamples.shape == (6, 2)
    assert resamples.index.names == ['repeat', 'fold']

    comparison = compare_resamples(trained_models)
    assert len(comparison) == 1
    assert comparison.loc[0, 'n_pairs'] == 6
    assert comparison.loc[0, 'mean_difference'] == pytest.approx(
        (resamples['knn'] - resamples['svm_linear']).mean())


def test_linear_importance(trained_models):
    ranking = linear_importance(trained_models['svm_linear'])

    assert len(ranking) == 9
    assert ranking['importance'].max() == pytest.approx(100.0)
    assert ranking['importance'].min() == pytest.approx(0.0)
    assert ranking['importance'].is_monotonic_decreasing
    assert list(ranking.index) == list(range(1, 10))


def test_linear_importance_needs_linear_model(trained_models):
    with pytest.raises(ValueError):
        linear_importance(trained_models['knn'])


def test_filter_importance(training_data):
    X, y = training_data
    ranking = filter_importance(X, y)

    assert set(ranking['feature']) == set(X.columns)
    assert ranking['importance'].between(0, 100).all()
    assert (ranking['raw'] >= 0.5).all()


@pytest.mark.parametrize('name, expected', [
    ('ROC', 1.0),
    ('Sens', 2 / 3),
    ('Spec', 1.0),
    ('Accuracy', 0.8),
])
def test_metric_registry(name, expected):
    y_true = np.array([1, 1, 1, 0, 0])
    y_score = np.array([0.9, 0.7, 0.45, 0.3, 0.1])

    assert MetricsWrapper.get_eval_metrics(name, y_true, y_score) == pytest.approx(expected)


def test_metric_needs_both_classes():
    with pytest.raises(DegenerateClassError):
        MetricsWrapper.get_eval_metrics('ROC', np.array([1, 1]), np.array([0.2, 0.9]))

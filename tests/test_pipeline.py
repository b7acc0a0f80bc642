import json

import numpy as np
import pytest
import yaml

from cytoscreen.cli import main
from cytoscreen.exceptions import ConfigurationError, DegenerateClassError
from cytoscreen.pipeline import BenchmarkPipeline, run_benchmark


def test_run_produces_all_results(small_config):
    result = BenchmarkPipeline(small_config).run()

    assert set(result.models) == {'knn', 'svm_linear', 'naive_bayes'}
    assert not result.failures
    assert result.partition.n_rows == len(result.specimens)

    n_train, n_test = len(result.partition.train_index), len(result.partition.test_index)
    for name in result.models:
        rows = result.predictions[result.predictions['model'] == name]
        assert (rows['split'] == 'training').sum() == n_train
        assert (rows['split'] == 'test').sum() == n_test
        assert result.confusion_matrices[name].total == n_test
        assert 0.5 < result.roc_curves[name].auc <= 1.0
        assert result.models[name].n_fits == len(result.models[name].resample_log) + 1

    assert result.best_model() in result.models
    assert len(result.resample_comparison) == 3
    assert set(result.importance) == set(result.models)


def test_runs_are_reproducible(small_config):
    first = BenchmarkPipeline(small_config).run()
    second = BenchmarkPipeline(small_config).run()

    np.testing.assert_array_equal(first.partition.train_index, second.partition.train_index)
    for name in first.models:
        assert first.models[name].best_params == second.models[name].best_params
        assert first.roc_curves[name].auc == second.roc_curves[name].auc
    assert first.predictions.equals(second.predictions)


def test_different_seed_changes_partition(small_config):
    other = dict(small_config, data=dict(small_config['data'], random_state=8))

    partition_a = BenchmarkPipeline(small_config).run().partition
    partition_b = BenchmarkPipeline(other).run().partition

    assert len(partition_a.train_index) == len(partition_b.train_index)
    assert not np.array_equal(partition_a.train_index, partition_b.train_index)


def test_single_class_data(small_config, raw_specimens):
    raw_specimens['Class'] = '2'

    with pytest.raises(DegenerateClassError):
        BenchmarkPipeline(small_config, specimens=raw_specimens).run()


def test_prediction_rows_are_unique_with_repeated_sample_codes(small_config, raw_specimens):
    raw_specimens.loc[1, 'Sample code number'] = raw_specimens.loc[0, 'Sample code number']

    result = BenchmarkPipeline(small_config, specimens=raw_specimens).run()

    for (_, split), rows in result.predictions.groupby(['model', 'split']):
        assert not rows['row_id'].duplicated().any()
        index = result.partition.train_index if split == 'training' else result.partition.test_index
        assert list(rows['row_id']) == list(index)
        np.testing.assert_array_equal(rows['specimen_id'].to_numpy(),
                                      result.specimens['id'].to_numpy()[index])


def test_bad_grid_override_stops_before_fitting(small_config):
    small_config['models']['svm_linear']['grid'] = {'C': {'start': 1, 'stop': 2}}

    with pytest.raises(ConfigurationError):
        BenchmarkPipeline(small_config)


def test_more_folds_than_minority_rows(small_config):
    small_config['training']['n_folds'] = 40

    with pytest.raises(ConfigurationError):
        BenchmarkPipeline(small_config).run()


def test_run_benchmark_writes_artifacts(small_config, tmp_path):
    small_config['models']['naive_bayes']['enabled'] = False

    run_benchmark(small_config, output_dir=tmp_path / 'out', create_report=True)

    run_dirs = list((tmp_path / 'out').glob('inline_*'))
    assert len(run_dirs) == 1
    run_dir = run_dirs[0]
    for name in ['predictions.csv', 'resamples.csv', 'resample_summary.csv', 'resample_comparison.csv',
                 'importance.csv', 'metrics.json', 'tuning_knn.csv', 'models/knn.joblib',
                 'models/svm_linear.joblib', 'plots/roc_curves.png', 'plots/resamples.png',
                 'plots/confusion_matrix_knn.png', 'plots/tuning_svm_linear.png',
                 'plots/importance_svm_linear.png']:
        assert (run_dir / name).exists(), name

    metrics = json.loads((run_dir / 'metrics.json').read_text())
    assert set(metrics['models']) == {'knn', 'svm_linear'}
    assert metrics['n_train'] + metrics['n_test'] == 110
    assert 'cv_mean_ROC' in metrics['models']['knn']


def test_cli_success(small_config, tmp_path):
    config_path = tmp_path / 'bench.yaml'
    config_path.write_text(yaml.safe_dump(small_config))

    code = main([str(config_path), '--output-dir', str(tmp_path / 'cli'), '--n-jobs', '1'])

    assert code == 0
    assert len(list((tmp_path / 'cli' / 'logs').glob('bench_*.log'))) == 1
    assert len(list((tmp_path / 'cli').glob('bench_*'))) == 1


def test_cli_configuration_error(small_config, tmp_path):
    small_config['training']['n_folds'] = 1
    config_path = tmp_path / 'bad.yaml'
    config_path.write_text(yaml.safe_dump(small_config))

    assert main([str(config_path), '--output-dir', str(tmp_path / 'cli')]) == 2
    assert main([str(tmp_path / 'missing.yaml')]) == 2


def test_cli_data_error(small_config, tmp_path):
    small_config['data']['source'] = str(tmp_path / 'absent.data')
    config_path = tmp_path / 'nodata.yaml'
    config_path.write_text(yaml.safe_dump(small_config))

    assert main([str(config_path), '--output-dir', str(tmp_path / 'cli')]) == 1


def test_cli_bad_grid_override(small_config, tmp_path):
    small_config['models']['svm_linear']['grid'] = {'C': {'start': 1, 'stop': 2}}
    config_path = tmp_path / 'badgrid.yaml'
    config_path.write_text(yaml.safe_dump(small_config))

    assert main([str(config_path), '--output-dir', str(tmp_path / 'cli')]) == 2
    assert not list((tmp_path / 'cli').glob('badgrid_*'))

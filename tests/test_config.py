import copy

import pytest
import yaml

from cytoscreen.exceptions import ConfigurationError
from cytoscreen.pipeline import BenchmarkPipeline
from cytoscreen.utils import Config, Settings


def _with(config, section, key, value):
    config = copy.deepcopy(config)
    config.setdefault(section, {})[key] = value
    return config


def test_settings_from_config(small_config):
    settings = Settings.from_config(Config(small_config))

    assert settings.n_folds == 3
    assert settings.n_repeats == 2
    assert settings.enabled_models == ('knn', 'svm_linear', 'naive_bayes')
    assert settings.grids['knn'] == {'n_neighbors': [3, 5, 7]}
    assert settings.positive_label == 'malignant'


def test_defaults_for_empty_config():
    settings = Settings.from_config(Config({}))

    assert settings.train_fraction == 0.8
    assert settings.n_folds == 5
    assert settings.n_repeats == 10
    assert settings.metric == 'ROC'
    assert settings.enabled_models == ('knn', 'svm_linear')


def test_config_from_yaml(tmp_path, small_config):
    path = tmp_path / 'experiment.yaml'
    path.write_text(yaml.safe_dump(small_config))

    config = Config(path)

    assert config.name == 'experiment'
    assert config.get_training_config()['n_folds'] == 3
    assert config.get_model_config('knn')['enabled'] is True
    with pytest.raises(ConfigurationError):
        config.get_model_config('lda')


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigurationError):
        Config(tmp_path / 'absent.yaml')


@pytest.mark.parametrize('section, key, value', [
    ('data', 'train_fraction', 1.0),
    ('data', 'train_fraction', 0.0),
    ('data', 'random_state', 'abc'),
    ('training', 'n_folds', 1),
    ('training', 'n_repeats', 0),
    ('training', 'metric', 'F1'),
    ('training', 'preprocessing', ['impute', 'pca']),
    ('training', 'impute_neighbors', 0),
    ('training', 'n_jobs', 0),
    ('evaluation', 'positive_label', 'cancer'),
])
def test_invalid_values(small_config, section, key, value):
    with pytest.raises(ConfigurationError):
        Settings.from_config(Config(_with(small_config, section, key, value)))


def test_unknown_model_family(small_config):
    config = copy.deepcopy(small_config)
    config['models']['random_forest'] = {'enabled': True}

    with pytest.raises(ConfigurationError):
        Settings.from_config(Config(config))


def test_bad_grid_override(small_config):
    config = copy.deepcopy(small_config)
    config['models']['svm_linear']['grid'] = {'C': {'start': 1, 'stop': 2}}

    with pytest.raises(ConfigurationError):
        Settings.from_config(Config(config))


def test_bad_grid_of_disabled_family_is_ignored(small_config):
    config = copy.deepcopy(small_config)
    config['models']['naive_bayes'] = {'enabled': False, 'grid': {'bandwidth': [1]}}

    assert 'naive_bayes' not in Settings.from_config(Config(config)).enabled_models


def test_no_enabled_model(small_config):
    config = copy.deepcopy(small_config)
    for model in config['models'].values():
        model['enabled'] = False

    with pytest.raises(ConfigurationError):
        Settings.from_config(Config(config))


def test_pipeline_validates_before_loading(small_config, tmp_path):
    config = _with(small_config, 'training', 'n_folds', 1)
    config['data']['source'] = str(tmp_path / 'does-not-exist.data')

    with pytest.raises(ConfigurationError):
        BenchmarkPipeline(config)

"""Configuration management for the benchmark pipeline."""

import yaml
import copy
from dataclasses import dataclass, field
from typing import Dict, Optional, Any, Union, Tuple
from pathlib import Path

from ..exceptions import ConfigurationError
from ..data.normalizer import CLASS_LABELS
from ..models.base import ModelFamily
from ..models.grid import build_grid


DEFAULT_SOURCE = (
    "https://archive.ics.uci.edu/ml/machine-learning-databases/"
    "breast-cancer-wisconsin/breast-cancer-wisconsin.data"
)

SELECTION_METRICS = ('ROC', 'Sens', 'Spec', 'Accuracy', 'Kappa')
PREPROCESSING_STEPS = ('impute', 'center', 'scale')


class Config:
    """
    YAML configuration loader.

    Keeps the raw mapping untouched and exposes one getter per section.
    Validation of values happens in `Settings.from_config`.
    """

    def __init__(self, config: Union[str, Path, Dict[str, Any]]):
        """Load configuration from a YAML file or wrap an existing mapping."""
        if isinstance(config, dict):
            self.config_path = None
            self.config = copy.deepcopy(config)
        else:
            self.config_path = Path(config)
            if not self.config_path.exists():
                raise ConfigurationError(f"Configuration file not found: {self.config_path}")
            with open(self.config_path, 'r') as f:
                self.config = yaml.safe_load(f) or {}

    @property
    def name(self) -> str:
        """Stem of the configuration file, or 'inline' for dict configs."""
        return self.config_path.stem if self.config_path else 'inline'

    def get_model_config(self, model_name: str) -> Dict[str, Any]:
        """
        Get a deep copy of one model family's configuration.

        Raises:
            ConfigurationError: If the family has no entry in 'models'
        """
        models = self.config.get('models', {})
        if model_name not in models:
            raise ConfigurationError(f"Model '{model_name}' not found")
        return copy.deepcopy(models[model_name] or {})

    def get_data_config(self) -> Dict[str, Any]:
        """Get data configuration."""
        return self.config.get('data', {}) or {}

    def get_training_config(self) -> Dict[str, Any]:
        """Get training configuration."""
        return self.config.get('training', {}) or {}

    def get_evaluation_config(self) -> Dict[str, Any]:
        """Get evaluation configuration."""
        return self.config.get('evaluation', {}) or {}

    def get_visualization_config(self) -> Dict[str, Any]:
        """Get visualization configuration."""
        return self.config.get('visualization', {}) or {}

    def get_output_config(self) -> Dict[str, Any]:
        """Get output configuration."""
        return self.config.get('output', {}) or {}

    def __getitem__(self, key: str) -> Any:
        """Allow dict-like access to config."""
        return self.config[key]

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value with default."""
        return self.config.get(key, default)


@dataclass(frozen=True)
class Settings:
    """Validated, typed view over a `Config`."""

    source: str = DEFAULT_SOURCE
    cache_dir: Optional[str] = None
    train_fraction: float = 0.80
    random_state: int = 42
    n_folds: int = 5
    n_repeats: int = 10
    metric: str = 'ROC'
    preprocessing: Tuple[str, ...] = PREPROCESSING_STEPS
    impute_neighbors: int = 5
    n_jobs: int = 1
    positive_label: str = 'malignant'
    enabled_models: Tuple[str, ...] = ('knn', 'svm_linear')
    grids: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    output_dir: str = 'results'

    @classmethod
    def from_config(cls, config: Config) -> 'Settings':
        """Build settings from a configuration and validate them."""
        data = config.get_data_config()
        training = config.get_training_config()
        evaluation = config.get_evaluation_config()
        output = config.get_output_config()
        models = config.get('models', {}) or {}

        enabled = tuple(name for name, cfg in models.items() if (cfg or {}).get('enabled', False))
        grids = {name: dict((cfg or {}).get('grid') or {}) for name, cfg in models.items()}

        try:
            settings = cls(
                source=str(data.get('source', DEFAULT_SOURCE)),
                cache_dir=data.get('cache_dir'),
                train_fraction=float(data.get('train_fraction', 0.80)),
                random_state=int(data.get('random_state', 42)),
                n_folds=int(training.get('n_folds', 5)),
                n_repeats=int(training.get('n_repeats', 10)),
                metric=str(training.get('metric', 'ROC')),
                preprocessing=tuple(training.get('preprocessing', PREPROCESSING_STEPS)),
                impute_neighbors=int(training.get('impute_neighbors', 5)),
                n_jobs=int(training.get('n_jobs', 1)),
                positive_label=str(evaluation.get('positive_label', 'malignant')),
                enabled_models=enabled if models else cls.enabled_models,
                grids=grids,
                output_dir=str(output.get('output_dir', 'results')),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Malformed configuration value: {e}") from e

        validate_settings(settings)
        return settings


def validate_settings(settings: Settings) -> None:
    """
    Check every configuration value that would make a run meaningless.

    Raises:
        ConfigurationError: On the first invalid value found
    """
    if not 0.0 < settings.train_fraction < 1.0:
        raise ConfigurationError(
            f"train_fraction must lie in (0, 1), got {settings.train_fraction}")
    if settings.n_folds < 2:
        raise ConfigurationError(f"n_folds must be at least 2, got {settings.n_folds}")
    if settings.n_repeats < 1:
        raise ConfigurationError(f"n_repeats must be at least 1, got {settings.n_repeats}")
    if settings.metric not in SELECTION_METRICS:
        raise ConfigurationError(
            f"Unknown selection metric '{settings.metric}'. Available: {list(SELECTION_METRICS)}")
    unknown_steps = [s for s in settings.preprocessing if s not in PREPROCESSING_STEPS]
    if unknown_steps:
        raise ConfigurationError(f"Unknown preprocessing steps: {unknown_steps}")
    if settings.impute_neighbors < 1:
        raise ConfigurationError(
            f"impute_neighbors must be at least 1, got {settings.impute_neighbors}")
    if settings.n_jobs == 0:
        raise ConfigurationError("n_jobs must be a positive worker count or negative (joblib style)")
    if settings.positive_label not in CLASS_LABELS:
        raise ConfigurationError(
            f"positive_label must be one of {list(CLASS_LABELS)}, got '{settings.positive_label}'")
    if not settings.enabled_models:
        raise ConfigurationError("No model family is enabled")
    for name in list(settings.enabled_models) + list(settings.grids):
        ModelFamily.parse(name)
    for name in settings.enabled_models:
        build_grid(name, settings.grids.get(name))

"""
Benchmark Pipeline
==================

Loads the specimen table, partitions it, tunes every enabled model family
under repeated cross-validation and evaluates the tuned models on the
held-out rows.

"""

import json
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union
import numpy as np
import pandas as pd
from loguru import logger

from .data import DataLoader, FeatureNormalizer, Partition, stratified_partition
from .data.normalizer import FEATURE_COLUMNS, ID_COLUMN, LABEL_COLUMN, CLASS_LABELS
from .evaluation import (
    ConfusionMatrix, RocCurve, compare_resamples, compute_roc, confusion_from_predictions,
    extract_predictions, filter_importance, linear_importance, summarize_resamples,
)
from .exceptions import ConfigurationError, CytoscreenError
from .models import ModelFamily, build_grid, create_model
from .training import CrossValidatedTrainer, RepeatedFolds, TrainedModel
from .utils.config import Config, Settings
from .visualization import ReportGenerator


@dataclass
class BenchmarkResult:
    """Everything a benchmark run produces."""

    settings: Settings
    specimens: pd.DataFrame
    partition: Partition
    models: Dict[str, TrainedModel]
    failures: Dict[str, str]
    predictions: pd.DataFrame
    roc_curves: Dict[str, RocCurve]
    confusion_matrices: Dict[str, ConfusionMatrix]
    resample_summary: Optional[pd.DataFrame]
    resample_comparison: Optional[pd.DataFrame]
    importance: Dict[str, pd.DataFrame] = field(default_factory=dict)

    def best_model(self) -> Optional[str]:
        """Model with the highest mean resampled selection metric."""
        if self.resample_summary is None or self.resample_summary.empty:
            return None
        return str(self.resample_summary['mean'].idxmax())

    def metrics(self) -> Dict[str, Dict[str, Any]]:
        """Per-model summary suitable for JSON."""
        out = {}
        for name, trained in self.models.items():
            out[name] = {
                'best_params': {k: _plain(v) for k, v in trained.best_params.items()},
                f'cv_mean_{trained.metric}': _plain(trained.tuning_results.loc[trained.best_index, 'mean']),
                f'cv_sd_{trained.metric}': _plain(trained.tuning_results.loc[trained.best_index, 'sd']),
                'test_auc': self.roc_curves[name].auc if name in self.roc_curves else None,
                'confusion_matrix': self.confusion_matrices[name].to_dict()
                if name in self.confusion_matrices else None,
                'n_fits': trained.n_fits,
                'training_time': round(trained.training_time, 3),
            }
        for name, error in self.failures.items():
            out[name] = {'error': error}
        return out

    def save(self, output_dir: Union[str, Path]) -> Path:
        """
        Write all artifacts below output_dir.

        Returns:
            The output directory
        """
        output_dir = Path(output_dir)
        (output_dir / 'models').mkdir(parents=True, exist_ok=True)

        self.predictions.to_csv(output_dir / 'predictions.csv', index=False)

        if self.models:
            resample_log = pd.concat(
                [trained.resample_log.assign(model=name) for name, trained in self.models.items()],
                ignore_index=True)
            resample_log.to_csv(output_dir / 'resamples.csv', index=False)
            for name, trained in self.models.items():
                trained.tuning_results.to_csv(output_dir / f'tuning_{name}.csv')
                trained.save(output_dir / 'models' / name)

        if self.resample_summary is not None:
            self.resample_summary.to_csv(output_dir / 'resample_summary.csv')
        if self.resample_comparison is not None:
            self.resample_comparison.to_csv(output_dir / 'resample_comparison.csv', index=False)

        if self.importance:
            pd.concat([ranking.assign(model=name) for name, ranking in self.importance.items()]) \
                .to_csv(output_dir / 'importance.csv')

        with open(output_dir / 'metrics.json', 'w') as f:
            json.dump({
                'generated': datetime.now().isoformat(timespec='seconds'),
                'n_train': int(len(self.partition.train_index)),
                'n_test': int(len(self.partition.test_index)),
                'best_model': self.best_model(),
                'models': self.metrics(),
            }, f, indent=2)

        logger.info(f"  All results saved to: {output_dir}")
        return output_dir


def _plain(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    return value


class BenchmarkPipeline:
    """Main orchestrator: load -> normalize -> partition -> tune -> predict -> evaluate."""

    def __init__(self, config: Union[Config, Dict[str, Any], str, Path],
                 specimens: Optional[pd.DataFrame] = None):
        """
        Args:
            config: Config object, plain mapping or YAML path. Validated here,
                before any data is loaded or any model is fitted.
            specimens: Already loaded raw table; skips the DataLoader when given
        """
        self.config = config if isinstance(config, Config) else Config(config)
        self.settings = Settings.from_config(self.config)
        self._raw_specimens = specimens

    def load_specimens(self) -> pd.DataFrame:
        """Load and normalize the specimen table."""
        raw = self._raw_specimens
        if raw is None:
            raw = DataLoader(self.settings.cache_dir).load(self.settings.source)
        return FeatureNormalizer().transform(raw)

    def run(self) -> BenchmarkResult:
        """Execute the complete pipeline."""
        s = self.settings
        logger.info("=" * 80)
        logger.info("BREAST CANCER CLASSIFIER BENCHMARK")
        logger.info("=" * 80)
        logger.info(f"Configuration: {self.config.name}")
        logger.info(f"Random seed: {s.random_state}")
        logger.info(f"Enabled models: {', '.join(s.enabled_models)}")

        # One random source per run drives every randomized step, in a fixed order
        random_source = np.random.default_rng(s.random_state)

        specimens = self.load_specimens()
        labels = specimens[LABEL_COLUMN].astype(object).to_numpy()
        partition = stratified_partition(labels, s.train_fraction, random_source)
        self._log_split(labels, partition)
        self._check_folds(labels[partition.train_index])

        train = specimens.iloc[partition.train_index]
        test = specimens.iloc[partition.test_index]
        X_train, y_train = train[FEATURE_COLUMNS], train[LABEL_COLUMN].astype(object).to_numpy()
        X_test, y_test = test[FEATURE_COLUMNS], test[LABEL_COLUMN].astype(object).to_numpy()

        folds = RepeatedFolds.from_random_source(random_source, s.n_folds, s.n_repeats)
        model_seed = int(random_source.integers(0, 2**31 - 1))

        models, failures = self._train_models(X_train, y_train, folds, model_seed)

        predictions = extract_predictions(models, {
            'training': (X_train, y_train, partition.train_index, train[ID_COLUMN].to_numpy()),
            'test': (X_test, y_test, partition.test_index, test[ID_COLUMN].to_numpy()),
        })

        roc_curves, confusion_matrices = {}, {}
        for name in models:
            test_rows = predictions[(predictions['model'] == name) & (predictions['split'] == 'test')]
            roc_curves[name] = compute_roc(test_rows[f'prob_{s.positive_label}'], test_rows['obs'],
                                           s.positive_label)
            confusion_matrices[name] = confusion_from_predictions(
                predictions, name, 'test', CLASS_LABELS, s.positive_label)
            logger.info(f"  {name}: test AUC {roc_curves[name].auc:.4f}, "
                        f"accuracy {confusion_matrices[name].accuracy:.4f}")

        result = BenchmarkResult(
            settings=s,
            specimens=specimens,
            partition=partition,
            models=models,
            failures=failures,
            predictions=predictions,
            roc_curves=roc_curves,
            confusion_matrices=confusion_matrices,
            resample_summary=summarize_resamples(models) if models else None,
            resample_comparison=compare_resamples(models) if len(models) > 1 else None,
            importance=self._importance(models, X_train, y_train),
        )
        self._print_summary(result)
        return result

    def _train_models(self, X_train: pd.DataFrame, y_train: np.ndarray,
                      folds: RepeatedFolds, model_seed: int):
        """Tune each enabled family; a failing family is recorded and skipped."""
        s = self.settings
        logger.info("\n" + "=" * 60)
        logger.info("MODEL TRAINING")
        logger.info("=" * 60)

        models: Dict[str, TrainedModel] = {}
        failures: Dict[str, str] = {}
        for idx, name in enumerate(s.enabled_models, 1):
            family = ModelFamily.parse(name)
            logger.info(f"\n[{idx}/{len(s.enabled_models)}] Training {family.value}...")
            try:
                trainer = CrossValidatedTrainer(
                    model=create_model(family, random_state=model_seed),
                    grid=build_grid(family, s.grids.get(name)),
                    folds=folds,
                    preprocessing=s.preprocessing,
                    impute_neighbors=s.impute_neighbors,
                    metric=s.metric,
                    positive_label=s.positive_label,
                    n_jobs=s.n_jobs,
                )
                models[family.value] = trainer.train(X_train, y_train, feature_names=list(X_train.columns))
                logger.info(f"  ✓ Complete in {models[family.value].training_time:.1f}s "
                            f"({models[family.value].n_fits} fits)")
            except ConfigurationError:
                raise
            except CytoscreenError as e:
                failures[family.value] = str(e)
                logger.error(f"  ✗ Failed: {e}")
        return models, failures

    def _importance(self, models: Dict[str, TrainedModel], X_train: pd.DataFrame,
                    y_train: np.ndarray) -> Dict[str, pd.DataFrame]:
        importance = {}
        filter_ranking = None
        for name, trained in models.items():
            try:
                importance[name] = linear_importance(trained)
            except ValueError:
                if filter_ranking is None:
                    filter_ranking = filter_importance(X_train, y_train, self.settings.positive_label)
                importance[name] = filter_ranking
        return importance

    def _check_folds(self, train_labels: np.ndarray) -> None:
        """Every fold must be able to hold each class of the training rows."""
        unique, counts = np.unique(train_labels, return_counts=True)
        smallest = int(counts.min())
        if smallest < self.settings.n_folds:
            raise ConfigurationError(
                f"n_folds={self.settings.n_folds} exceeds the {smallest} training rows of class "
                f"'{unique[counts.argmin()]}'")

    def _log_split(self, labels: np.ndarray, partition: Partition) -> None:
        logger.info("\nData splits:")
        for split_name, index in [('Train', partition.train_index), ('Test', partition.test_index)]:
            unique, counts = np.unique(labels[index], return_counts=True)
            logger.info(f"  {split_name}: {len(index)} samples ({len(index) / len(labels) * 100:.1f}%) "
                        f"classes: {dict(zip(unique, counts.tolist()))}")

    def _print_summary(self, result: BenchmarkResult) -> None:
        logger.info("\n" + "=" * 80)
        logger.info("BENCHMARK SUMMARY")
        logger.info("=" * 80)
        logger.info(f"\nModels trained: {len(result.models)}/{len(result.models) + len(result.failures)}")

        if result.resample_summary is not None:
            metric = result.resample_summary.attrs.get('metric', self.settings.metric)
            logger.info(f"\nResampled {metric}:\n{result.resample_summary.round(4).to_string()}")

        for name, trained in result.models.items():
            logger.info(f"\n{name}: best {trained.best_params}, test AUC {result.roc_curves[name].auc:.4f}")
            logger.info(f"\n{result.confusion_matrices[name]}")

        best = result.best_model()
        if best:
            logger.info(f"\nBest model by resampled {self.settings.metric}: {best}")
        if result.failures:
            logger.info(f"\nFailed models: {', '.join(result.failures)}")
        logger.info("\n" + "=" * 80)


def run_benchmark(config: Union[Config, Dict[str, Any], str, Path],
                  output_dir: Optional[Union[str, Path]] = None,
                  create_report: Optional[bool] = None) -> BenchmarkResult:
    """
    Run the pipeline, save artifacts and optionally render reports.

    Args:
        config: Config object, mapping or YAML path
        output_dir: Overrides output.output_dir; a timestamped run directory
            is created beneath it
        create_report: Overrides visualization.create_report
    """
    pipeline = BenchmarkPipeline(config)
    start = time.time()
    result = pipeline.run()

    base_dir = Path(output_dir or pipeline.settings.output_dir)
    run_dir = base_dir / f"{pipeline.config.name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
    result.save(run_dir)

    viz_config = dict(pipeline.config.get_visualization_config())
    if create_report is not None:
        viz_config['create_report'] = create_report
    ReportGenerator(viz_config).generate_all_reports(result, run_dir)

    logger.info(f"Finished in {time.time() - start:.1f}s")
    return result

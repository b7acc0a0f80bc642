"""Grid search under repeated stratified k-fold cross-validation."""

import copy
import time
import numpy as np
import pandas as pd
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
import joblib
from joblib import Parallel, delayed
from loguru import logger

from ..data.preprocessor import FoldPreprocessor, STEPS
from ..exceptions import TrainingError
from ..metrics import MetricsWrapper
from ..models.base import BaseModel, ModelFamily
from .resampling import RepeatedFolds


@dataclass
class TrainedModel:
    """
    Final model of one family plus everything learned while tuning it.

    Attributes:
        family: Model family
        model: Estimator refitted on the whole training set with best_params
        preprocessor: Preprocessing statistics of the whole training set
        best_params: Selected grid point
        resample_log: One row per repeat x fold x grid point: repeat, fold,
            grid_index, the parameters, the metric value (NaN when the cell
            failed) and the error message of failed cells
        tuning_results: Per grid point: parameters, mean, sd and number of
            valid cells of the metric
        metric: Selection metric name
        feature_names: Column names of the training features
        positive_label: Label whose probability is scored
        n_fits: Number of model fits performed, final refit included
    """

    family: ModelFamily
    model: BaseModel
    preprocessor: FoldPreprocessor
    best_params: Dict[str, Any]
    resample_log: pd.DataFrame
    tuning_results: pd.DataFrame
    metric: str
    feature_names: List[str]
    positive_label: str
    n_fits: int
    training_time: float = 0.0
    best_index: int = 0

    @property
    def name(self) -> str:
        return self.family.value

    @property
    def classes_(self) -> np.ndarray:
        return self.model.classes_

    def predict(self, X) -> np.ndarray:
        """Most likely label per row (argmax of `predict_proba`)."""
        proba = self.predict_proba(X)
        return np.asarray(self.classes_, dtype=object)[np.argmax(proba, axis=1)]

    def predict_proba(self, X) -> np.ndarray:
        """Class probabilities per row, columns ordered as `classes_`."""
        return self.model.predict_proba(self.preprocessor.transform(_as_array(X)))

    def resamples(self) -> pd.Series:
        """Metric values of the selected grid point across every repeat x fold."""
        selected = self.resample_log[self.resample_log['grid_index'] == self.best_index]
        index = pd.MultiIndex.from_frame(selected[['repeat', 'fold']])
        return pd.Series(selected[self.metric].to_numpy(), index=index, name=self.name)

    def save(self, filepath: Union[str, Path]) -> None:
        """Persist the whole trained model with joblib."""
        filepath = Path(filepath).with_suffix('.joblib')
        filepath.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump(self, filepath)
        logger.info(f"Saved {self.name}: {filepath}")

    @staticmethod
    def load(filepath: Union[str, Path]) -> 'TrainedModel':
        filepath = Path(filepath).with_suffix('.joblib')
        if not filepath.exists():
            raise FileNotFoundError(f"Model file not found: {filepath}")
        return joblib.load(filepath)


def _as_array(X) -> np.ndarray:
    return X.to_numpy(dtype=float) if isinstance(X, pd.DataFrame) else np.asarray(X, dtype=float)


def _evaluate_cell(model: BaseModel, params: Dict[str, Any], X: np.ndarray, y: np.ndarray,
                   train_index: np.ndarray, holdout_index: np.ndarray,
                   steps: Sequence[str], impute_neighbors: int,
                   metric: str, positive_label: str) -> Tuple[float, Optional[str]]:
    """Fit on the fold's training rows and score its held-out rows. Never raises."""
    try:
        preprocessor = FoldPreprocessor(steps, impute_neighbors)
        X_fit, X_holdout = preprocessor.fit_transform(X[train_index], X[holdout_index])

        estimator = copy.deepcopy(model)
        estimator.fit(params, X_fit, y[train_index])
        proba = estimator.predict_proba(X_holdout)

        positive_column = list(estimator.classes_).index(positive_label)
        value = MetricsWrapper.get_eval_metrics(
            metrics_names=metric,
            y_true=(y[holdout_index] == positive_label).astype(int),
            y_score=proba[:, positive_column],
        )
        return float(value), None
    except Exception as e:
        return np.nan, f"{type(e).__name__}: {e}"


class CrossValidatedTrainer:
    """
    Tunes one model family by grid search over repeated stratified folds.

    For every repeat x fold x grid point a fresh preprocessor and model are
    fitted on the fold's training rows and scored on its held-out rows.
    Failed cells are kept as NaN and left out of the per-grid-point mean.
    The grid point with the highest mean wins (first in grid order on ties)
    and is refitted on the whole training set.
    """

    def __init__(self,
                 model: BaseModel,
                 grid: List[Dict[str, Any]],
                 folds: RepeatedFolds,
                 preprocessing: Sequence[str] = STEPS,
                 impute_neighbors: int = 5,
                 metric: str = 'ROC',
                 positive_label: str = 'malignant',
                 n_jobs: int = 1):
        if not grid:
            raise ValueError("Hyperparameter grid is empty")
        if metric not in MetricsWrapper.METRICS:
            raise ValueError(f"Metric '{metric}' not found. Available metrics: {MetricsWrapper.available()}")

        self.model = model
        self.grid = [dict(point) for point in grid]
        self.folds = folds
        self.preprocessing = tuple(preprocessing)
        self.impute_neighbors = impute_neighbors
        self.metric = metric
        self.positive_label = positive_label
        self.n_jobs = n_jobs

    def train(self, X, y, feature_names: Optional[List[str]] = None) -> TrainedModel:
        """
        Run the search and refit the winner.

        Args:
            X: Training features (DataFrame or array)
            y: Training labels

        Returns:
            TrainedModel

        Raises:
            TrainingError: If every grid point failed on every fold, or the
                final refit failed
        """
        start_time = time.time()
        if feature_names is None:
            feature_names = list(X.columns) if isinstance(X, pd.DataFrame) else \
                [f'feature_{i}' for i in range(np.shape(X)[1])]
        X = _as_array(X)
        y = np.asarray(y, dtype=object)

        splits = self.folds.split(y)
        tasks = [(split, grid_index) for split in splits for grid_index in range(len(self.grid))]
        logger.info(f"Tuning {self.model.model_name}: {len(self.grid)} grid points x "
                    f"{self.folds.n_folds} folds x {self.folds.n_repeats} repeats = {len(tasks)} fits "
                    f"(n_jobs={self.n_jobs})")

        # Results come back in task order regardless of which worker finished first
        outcomes = Parallel(n_jobs=self.n_jobs)(
            delayed(_evaluate_cell)(
                self.model, self.grid[grid_index], X, y,
                split.train_index, split.holdout_index,
                self.preprocessing, self.impute_neighbors,
                self.metric, self.positive_label)
            for split, grid_index in tasks
        )

        resample_log = self._build_log(tasks, outcomes)
        tuning_results = self._aggregate(resample_log)
        best_index = self._select(tuning_results)
        best_params = dict(self.grid[best_index])

        n_failed = int(resample_log[self.metric].isna().sum())
        if n_failed:
            for message in resample_log['error'].dropna().unique()[:5]:
                logger.warning(f"  {self.model.model_name} cell failure: {message}")
            logger.warning(f"  {n_failed}/{len(resample_log)} cells failed and were left out of the means")

        best_row = tuning_results.loc[best_index]
        logger.info(f"  ✓ Selected {best_params} - mean {self.metric}: {best_row['mean']:.4f} "
                    f"(sd {best_row['sd']:.4f}, {int(best_row['n_valid'])} valid cells)")

        preprocessor, final_model = self._refit(best_params, X, y)

        return TrainedModel(
            family=self.model.family,
            model=final_model,
            preprocessor=preprocessor,
            best_params=best_params,
            resample_log=resample_log,
            tuning_results=tuning_results,
            metric=self.metric,
            feature_names=list(feature_names),
            positive_label=self.positive_label,
            n_fits=len(tasks) + 1,
            training_time=time.time() - start_time,
            best_index=best_index,
        )

    def _build_log(self, tasks, outcomes) -> pd.DataFrame:
        rows = []
        for (split, grid_index), (value, error) in zip(tasks, outcomes):
            rows.append({
                'repeat': split.repeat,
                'fold': split.fold,
                'grid_index': grid_index,
                **self.grid[grid_index],
                self.metric: value,
                'error': error,
            })
        return pd.DataFrame(rows)

    def _aggregate(self, resample_log: pd.DataFrame) -> pd.DataFrame:
        """Mean, sd and valid-cell count per grid point. NaN cells shrink the denominator."""
        grouped = resample_log.groupby('grid_index')[self.metric]
        results = pd.DataFrame(self.grid, index=pd.RangeIndex(len(self.grid), name='grid_index'))
        results['mean'] = grouped.mean()
        results['sd'] = grouped.std()
        results['n_valid'] = grouped.count()
        return results

    def _select(self, tuning_results: pd.DataFrame) -> int:
        means = tuning_results['mean']
        if means.isna().all():
            raise TrainingError(
                f"Every grid point of {self.model.model_name} failed on every fold",
                family=self.model.family.value)
        best = means.max()
        return int(means.index[means == best][0])

    def _refit(self, params: Dict[str, Any], X: np.ndarray, y: np.ndarray) -> Tuple[FoldPreprocessor, BaseModel]:
        try:
            preprocessor = FoldPreprocessor(self.preprocessing, self.impute_neighbors)
            X_all = preprocessor.fit_transform(X)
            final_model = copy.deepcopy(self.model).fit(params, X_all, y)
        except Exception as e:
            raise TrainingError(f"Final refit of {self.model.model_name} with {params} failed: {e}",
                                family=self.model.family.value) from e
        return preprocessor, final_model

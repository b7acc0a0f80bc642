"""
Report Generator
================

Renders the plots of a finished benchmark run.

"""

from pathlib import Path
from typing import Any, Dict, Optional
from loguru import logger

from ..evaluation import collect_resamples
from .plotter import Plotter

DEFAULT_PLOTS = ['roc_curve', 'confusion_matrix', 'resamples', 'tuning_profile', 'feature_importance']

# Columns of the tuning table that are not hyperparameters
_TUNING_COLUMNS = {'mean', 'sd', 'n_valid'}


class ReportGenerator:
    """Generate the configured visualizations of a benchmark run."""

    def __init__(self, viz_config: Optional[Dict[str, Any]] = None):
        """
        Args:
            viz_config: The 'visualization' section: create_report, plots,
                plot_format and dpi
        """
        self.viz_config = viz_config or {}
        self.plot_format = self.viz_config.get('plot_format', 'png')
        self.plotter = Plotter(dpi=int(self.viz_config.get('dpi', 300)))

    def generate_all_reports(self, result, output_dir: Path) -> int:
        """
        Generate all configured plots below output_dir/plots.

        Returns:
            Number of files written
        """
        if not self.viz_config.get('create_report', False):
            return 0

        logger.info("\n" + "=" * 60)
        logger.info("GENERATING VISUALIZATIONS")
        logger.info("=" * 60)

        if not result.models:
            logger.warning("No successful models to plot")
            return 0

        plots_dir = Path(output_dir) / 'plots'
        plots_dir.mkdir(parents=True, exist_ok=True)
        plots_to_generate = self.viz_config.get('plots', DEFAULT_PLOTS)

        plot_count = 0
        if 'roc_curve' in plots_to_generate and result.roc_curves:
            self.plotter.plot_roc_curves(result.roc_curves, save_path=self._path(plots_dir, 'roc_curves'))
            plot_count += 1

        if 'confusion_matrix' in plots_to_generate:
            for name, cm in result.confusion_matrices.items():
                self.plotter.plot_confusion_matrix(
                    cm, title=f'Confusion Matrix - {name} (test set)',
                    save_path=self._path(plots_dir, f'confusion_matrix_{name}'))
                plot_count += 1

        if 'resamples' in plots_to_generate:
            metric = next(iter(result.models.values())).metric
            self.plotter.plot_resamples(collect_resamples(result.models), metric=metric,
                                        save_path=self._path(plots_dir, 'resamples'))
            plot_count += 1

        if 'tuning_profile' in plots_to_generate:
            plot_count += self.plot_tuning_profiles(result.models, plots_dir)

        if 'feature_importance' in plots_to_generate:
            for name, ranking in result.importance.items():
                self.plotter.plot_feature_importance(
                    ranking, title=f'Variable Importance - {name}',
                    save_path=self._path(plots_dir, f'importance_{name}'))
                plot_count += 1

        logger.info(f"  ✓ Generated {plot_count} plots in {plots_dir}")
        return plot_count

    def plot_tuning_profiles(self, models: Dict[str, Any], plots_dir: Path) -> int:
        """One profile per model, against the hyperparameter that varies most."""
        count = 0
        for name, trained in models.items():
            results = trained.tuning_results
            params = [c for c in results.columns if c not in _TUNING_COLUMNS]
            varying = [p for p in params if results[p].nunique() > 1]
            if not varying:
                logger.debug(f"{name}: single grid point, no tuning profile")
                continue
            param = max(varying, key=lambda p: results[p].nunique())
            if len(varying) > 1:
                # Keep the other parameters at their selected values
                for other in varying:
                    if other != param:
                        results = results[results[other] == trained.best_params[other]]

            self.plotter.plot_tuning_profile(
                results, param, metric=trained.metric,
                best_value=float(trained.best_params[param]),
                title=f'Tuning Profile - {name}',
                save_path=self._path(plots_dir, f'tuning_{name}'))
            count += 1
        return count

    def _path(self, plots_dir: Path, stem: str) -> Path:
        return plots_dir / f'{stem}.{self.plot_format}'

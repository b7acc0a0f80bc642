"""
Visualization Utilities
=======================

Core plotting functionality for the benchmark reports.

"""

import matplotlib.pyplot as plt
import seaborn as sns
import numpy as np
import pandas as pd
from typing import Dict, List, Optional, Union
from pathlib import Path

from ..evaluation.roc import RocCurve
from ..evaluation.confusion import ConfusionMatrix


class Plotter:
    """Handles core plotting functionality."""

    def __init__(self, dpi: int = 300):
        """Initialize plotter with default settings."""
        try:
            plt.style.use('seaborn-v0_8-darkgrid')
        except OSError:
            plt.style.use('default')

        self.dpi = dpi

        plt.rcParams['figure.figsize'] = (10, 6)
        plt.rcParams['font.size'] = 10
        plt.rcParams['axes.labelsize'] = 12
        plt.rcParams['axes.titlesize'] = 14
        plt.rcParams['legend.fontsize'] = 10

        self.colors = {
            'primary': '#1f77b4',
            'secondary': '#ff7f0e',
            'success': '#2ca02c',
            'danger': '#d62728',
            'dark': '#333333'
        }

    def save_and_close(self, save_path: Optional[Union[str, Path]] = None) -> None:
        """Save figure and close it."""
        if save_path:
            plt.savefig(save_path, dpi=self.dpi, bbox_inches='tight', facecolor='white')
        plt.close()

    def plot_roc_curves(self,
                        curves: Dict[str, RocCurve],
                        title: str = 'ROC Curves (Test Set)',
                        save_path: Optional[Union[str, Path]] = None) -> None:
        """Overlay ROC curves of several models."""
        plt.figure(figsize=(8, 8))
        for name, curve in curves.items():
            plt.plot(curve.fpr, curve.tpr, linewidth=2, label=f'{name} (AUC = {curve.auc:.3f})')

        plt.plot([0, 1], [0, 1], 'k--', label='Random Classifier')
        plt.xlim([0.0, 1.0])
        plt.ylim([0.0, 1.05])
        plt.xlabel('False Positive Rate')
        plt.ylabel('True Positive Rate')
        plt.title(title, fontsize=16, fontweight='bold')
        plt.legend(loc='lower right')
        plt.grid(True, alpha=0.3)
        plt.tight_layout()

        self.save_and_close(save_path)

    def plot_confusion_matrix(self,
                              cm: ConfusionMatrix,
                              title: str = 'Confusion Matrix',
                              save_path: Optional[Union[str, Path]] = None) -> None:
        """Plot confusion matrix heatmap, predicted on rows and observed on columns."""
        counts = cm.table.to_numpy()
        plt.figure(figsize=(7, 6))

        # Share of each observed class
        col_totals = counts.sum(axis=0, keepdims=True)
        shares = np.divide(counts, col_totals, out=np.zeros_like(counts, dtype=float),
                           where=col_totals > 0)

        annotations = np.empty_like(counts).astype(object)
        for i in range(counts.shape[0]):
            for j in range(counts.shape[1]):
                annotations[i, j] = f'{counts[i, j]}\n({shares[i, j]:.1%})'

        sns.heatmap(counts, annot=annotations, fmt='', cmap='Blues',
                    xticklabels=list(cm.table.columns), yticklabels=list(cm.table.index),
                    cbar_kws={'label': 'Count'}, square=True)

        plt.title(f'{title}\naccuracy {cm.accuracy:.3f}, sensitivity {cm.sensitivity:.3f}, '
                  f'specificity {cm.specificity:.3f}', fontsize=13, fontweight='bold', pad=20)
        plt.ylabel('Predicted', fontsize=12)
        plt.xlabel('Observed', fontsize=12)
        plt.tight_layout()

        self.save_and_close(save_path)

    def plot_resamples(self,
                       resamples: pd.DataFrame,
                       metric: str = 'ROC',
                       title: str = 'Cross-Validation Resamples',
                       save_path: Optional[Union[str, Path]] = None) -> None:
        """Box plot of the selection metric per model across repeat x fold cells."""
        long = resamples.melt(var_name='model', value_name=metric).dropna()

        plt.figure(figsize=(10, 6))
        sns.boxplot(data=long, x=metric, y='model', color=self.colors['primary'], width=0.5)
        sns.stripplot(data=long, x=metric, y='model', color=self.colors['dark'], size=3, alpha=0.5)
        plt.title(title, fontsize=16, fontweight='bold', pad=20)
        plt.grid(True, alpha=0.3, axis='x')
        plt.tight_layout()

        self.save_and_close(save_path)

    def plot_tuning_profile(self,
                            tuning_results: pd.DataFrame,
                            param: str,
                            metric: str = 'ROC',
                            best_value: Optional[float] = None,
                            title: str = 'Tuning Profile',
                            save_path: Optional[Union[str, Path]] = None) -> None:
        """Mean metric (with one standard deviation band) against one hyperparameter."""
        data = tuning_results.sort_values(param)

        plt.figure(figsize=(10, 6))
        plt.plot(data[param], data['mean'], 'b-', marker='o', linewidth=2, markersize=5,
                 label=f'Mean {metric}')
        plt.fill_between(data[param], data['mean'] - data['sd'], data['mean'] + data['sd'],
                         alpha=0.2, color='gray')
        if best_value is not None:
            plt.axvline(best_value, color=self.colors['danger'], linestyle='--',
                        label=f'Selected {param} = {best_value:g}')

        plt.xlabel(param, fontsize=12, fontweight='bold')
        plt.ylabel(f'{metric} (repeated CV)', fontsize=12, fontweight='bold')
        plt.title(title, fontsize=16, fontweight='bold', pad=20)
        plt.legend(loc='best', frameon=True)
        plt.grid(True, alpha=0.3)
        plt.tight_layout()

        self.save_and_close(save_path)

    def plot_feature_importance(self,
                                ranking: pd.DataFrame,
                                title: str = 'Variable Importance',
                                save_path: Optional[Union[str, Path]] = None) -> None:
        """Horizontal bars of a 0..100 importance ranking, most important on top."""
        ranking = ranking.dropna(subset=['importance'])
        features: List[str] = list(ranking['feature'])[::-1]
        values = ranking['importance'].to_numpy()[::-1]

        plt.figure(figsize=(10, max(4, len(features) * 0.5)))
        y_pos = np.arange(len(features))
        plt.barh(y_pos, values, color=self.colors['primary'], edgecolor='black', linewidth=0.5)

        plt.yticks(y_pos, features)
        plt.xlabel('Importance (0-100)', fontsize=12, fontweight='bold')
        plt.xlim(0, 110)
        plt.title(title, fontsize=16, fontweight='bold', pad=20)
        plt.grid(True, alpha=0.3, axis='x')
        plt.gca().set_axisbelow(True)

        for i, value in enumerate(values):
            plt.text(value + 1, i, f'{value:.1f}', va='center', fontsize=9)

        plt.tight_layout()
        self.save_and_close(save_path)

"""Breast cancer cytology classifier benchmark."""

from .data import DataLoader, FeatureNormalizer, FoldPreprocessor, stratified_partition
from .models import ModelFamily, create_model, build_grid
from .training import CrossValidatedTrainer, RepeatedFolds, TrainedModel
from .utils import Config, Settings
from .visualization import ReportGenerator, Plotter
from .metrics import MetricsWrapper
from .pipeline import BenchmarkPipeline, BenchmarkResult, run_benchmark

__version__ = '0.1.0'

__all__ = [
    'DataLoader',
    'FeatureNormalizer',
    'FoldPreprocessor',
    'stratified_partition',
    'ModelFamily',
    'create_model',
    'build_grid',
    'CrossValidatedTrainer',
    'RepeatedFolds',
    'TrainedModel',
    'Config',
    'Settings',
    'ReportGenerator',
    'Plotter',
    'MetricsWrapper',
    'BenchmarkPipeline',
    'BenchmarkResult',
    'run_benchmark',
]

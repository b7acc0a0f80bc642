"""Metric registry used for model selection and evaluation."""

from .metrics_wrapper import MetricsWrapper

__all__ = ['MetricsWrapper']

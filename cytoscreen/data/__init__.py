"""Data handling module."""

from .loader import DataLoader, RAW_COLUMNS
from .normalizer import FeatureNormalizer, FEATURE_COLUMNS, CLASS_LABELS, ID_COLUMN, LABEL_COLUMN
from .partitioner import Partition, stratified_partition
from .preprocessor import FoldPreprocessor

__all__ = [
    "DataLoader",
    "RAW_COLUMNS",
    "FeatureNormalizer",
    "FEATURE_COLUMNS",
    "CLASS_LABELS",
    "ID_COLUMN",
    "LABEL_COLUMN",
    "Partition",
    "stratified_partition",
    "FoldPreprocessor",
]

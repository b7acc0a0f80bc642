"""Prediction extraction across trained models and data splits."""

import numpy as np
import pandas as pd
from typing import Dict, Optional, Tuple
from loguru import logger

from ..training.trainer import TrainedModel

SPLITS = ('training', 'test')


def predict_table(trained: TrainedModel, X: pd.DataFrame, y, row_ids, split: str,
                  specimen_ids: Optional[object] = None) -> pd.DataFrame:
    """
    Predictions of one model on one table.

    Args:
        row_ids: Position of each row in the specimen table; unique per row
        specimen_ids: Sample code numbers, which may repeat across rows

    Returns:
        DataFrame with row_id, specimen_id, model, split, pred,
        prob_<label> per class and obs
    """
    if split not in SPLITS:
        raise ValueError(f"Unknown split '{split}'. Expected one of {SPLITS}")

    proba = trained.predict_proba(X)
    classes = list(trained.classes_)
    pred = np.asarray(classes, dtype=object)[np.argmax(proba, axis=1)]
    logger.debug(f"{trained.name} on {split}: max row-sum deviation "
                 f"{np.max(np.abs(proba.sum(axis=1) - 1.0)) if len(proba) else 0.0:.2e}")

    table = pd.DataFrame({
        'row_id': np.asarray(row_ids),
        'specimen_id': np.asarray(specimen_ids, dtype=object) if specimen_ids is not None else None,
        'model': trained.name,
        'split': split,
        'pred': pred,
    })
    for column, label in enumerate(classes):
        table[f'prob_{label}'] = proba[:, column]
    table['obs'] = np.asarray(y, dtype=object)
    return table


def extract_predictions(models: Dict[str, TrainedModel],
                        splits: Dict[str, Tuple]) -> pd.DataFrame:
    """
    Merged prediction table for every model over every split.

    Args:
        models: Trained models keyed by name
        splits: Split tag ('training' / 'test') -> (features, labels, row
            positions[, specimen ids])

    Returns:
        Rows ordered by model, then split, then original row order
    """
    tables = []
    for name, trained in models.items():
        for split, (X, y, row_ids, *specimen_ids) in splits.items():
            tables.append(predict_table(trained, X, y, row_ids, split,
                                        specimen_ids[0] if specimen_ids else None))
            logger.debug(f"Extracted {len(X)} {split} predictions for {name}")
    if not tables:
        return pd.DataFrame(columns=['row_id', 'specimen_id', 'model', 'split', 'pred', 'obs'])
    return pd.concat(tables, ignore_index=True)

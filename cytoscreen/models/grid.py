"""Hyperparameter grids per model family."""

import numpy as np
from typing import Any, Dict, List, Optional
from sklearn.model_selection import ParameterGrid

from .base import ModelFamily
from ..exceptions import ConfigurationError

# Values per parameter. Ranges are {start, stop, num} linear spaces (inclusive).
DEFAULT_GRIDS: Dict[ModelFamily, Dict[str, Any]] = {
    ModelFamily.KNN: {
        'n_neighbors': list(range(1, 21)),
    },
    ModelFamily.NAIVE_BAYES: {
        'usekernel': [True],
        'laplace': {'start': 0, 'stop': 100, 'num': 11},
    },
    ModelFamily.SVM_LINEAR: {
        'C': {'start': 1, 'stop': 10, 'num': 11},
    },
}

INTEGER_PARAMS = {'n_neighbors'}


def build_grid(family, overrides: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    """
    Enumerate the grid points searched for a family.

    Args:
        family: ModelFamily or its configuration name
        overrides: Per-parameter replacement values, either a list or a
            {start, stop, num} range

    Returns:
        Ordered list of parameter dicts; the same input always gives the
        same list in the same order
    """
    family = ModelFamily.parse(family)
    param_values = dict(DEFAULT_GRIDS[family])
    for name, values in (overrides or {}).items():
        if name not in param_values:
            raise ConfigurationError(
                f"'{name}' is not a tunable parameter of {family.value}. Available: {list(param_values)}")
        param_values[name] = values

    expanded = {name: _expand(name, values) for name, values in param_values.items()}
    return [dict(point) for point in ParameterGrid(expanded)]


def _expand(name: str, values: Any) -> List[Any]:
    if isinstance(values, dict):
        try:
            start, stop, num = values['start'], values['stop'], int(values['num'])
        except KeyError as e:
            raise ConfigurationError(f"Range for '{name}' needs start, stop and num; missing {e}") from e
        if num < 1:
            raise ConfigurationError(f"Range for '{name}' needs num >= 1, got {num}")
        points = np.linspace(float(start), float(stop), num)
    elif isinstance(values, (list, tuple)):
        if not values:
            raise ConfigurationError(f"Empty value list for '{name}'")
        points = list(values)
    else:
        points = [values]

    if name in INTEGER_PARAMS:
        return [int(round(float(v))) for v in points]
    return [v if isinstance(v, bool) else float(v) for v in points]

"""Column renaming and ordinal-code conversion for the specimen table."""

import pandas as pd
from typing import Dict, List
from loguru import logger

from ..exceptions import DataValidationError


ID_COLUMN = 'id'
LABEL_COLUMN = 'class'

FEATURE_COLUMNS = [
    'clump_thickness',
    'cell_size_uniformity',
    'cell_shape_uniformity',
    'marginal_adhesion',
    'epithelial_cell_size',
    'bare_nuclei',
    'bland_chromatin',
    'normal_nucleoli',
    'mitoses',
]

CLASS_LABELS = ('benign', 'malignant')

# Known spellings per normalized name: UCI documentation, R mlbench, normalized
COLUMN_ALIASES: Dict[str, List[str]] = {
    'id': ['Sample code number', 'Id', 'ID', 'id'],
    'clump_thickness': ['Clump Thickness', 'Cl.thickness', 'clump_thickness'],
    'cell_size_uniformity': ['Uniformity of Cell Size', 'Cell.size', 'cell_size_uniformity'],
    'cell_shape_uniformity': ['Uniformity of Cell Shape', 'Cell.shape', 'cell_shape_uniformity'],
    'marginal_adhesion': ['Marginal Adhesion', 'Marg.adhesion', 'marginal_adhesion'],
    'epithelial_cell_size': ['Single Epithelial Cell Size', 'Epith.c.size', 'epithelial_cell_size'],
    'bare_nuclei': ['Bare Nuclei', 'Bare.nuclei', 'bare_nuclei'],
    'bland_chromatin': ['Bland Chromatin', 'Bl.cromatin', 'bland_chromatin'],
    'normal_nucleoli': ['Normal Nucleoli', 'Normal.nucleoli', 'normal_nucleoli'],
    'mitoses': ['Mitoses', 'mitoses'],
    'class': ['Class', 'class'],
}

CLASS_CODES = {'2': 'benign', '4': 'malignant', '2.0': 'benign', '4.0': 'malignant'}
MISSING_MARKERS = {'?', '', 'na', 'nan'}


class FeatureNormalizer:
    """Renames columns and turns ordinal codes into numbers."""

    def __init__(self):
        self._lookup = {alias.lower(): name
                        for name, aliases in COLUMN_ALIASES.items()
                        for alias in aliases}

    def transform(self, raw: pd.DataFrame) -> pd.DataFrame:
        """
        Produce the clean specimen table.

        Missing markers stay missing (NaN). Measurement values that cannot be
        parsed as numbers are also set to NaN and reported, so imputation can
        deal with them later.

        Args:
            raw: Table as returned by DataLoader.load

        Returns:
            New DataFrame with columns id, the 9 features and class

        Raises:
            DataValidationError: If a column cannot be mapped or a class label
                is neither benign nor malignant
        """
        df = raw.copy()
        df.columns = self._rename(list(df.columns))

        out = pd.DataFrame(index=df.index)
        out[ID_COLUMN] = df[ID_COLUMN].astype(str).str.strip()

        for column in FEATURE_COLUMNS:
            out[column] = self._to_numeric(df[column], column)

        out[LABEL_COLUMN] = self._to_label(df[LABEL_COLUMN])
        out = out.reset_index(drop=True)

        n_missing = int(out[FEATURE_COLUMNS].isna().sum().sum())
        logger.info(f"Normalized specimen table: {len(out)} rows, {n_missing} missing measurement values")
        return out

    def _rename(self, columns: List[str]) -> List[str]:
        renamed = []
        for column in columns:
            key = str(column).strip().lower()
            if key not in self._lookup:
                raise DataValidationError(f"Unrecognized column '{column}'")
            renamed.append(self._lookup[key])

        missing = set(COLUMN_ALIASES) - set(renamed)
        if missing:
            raise DataValidationError(f"Missing columns: {sorted(missing)}")
        return renamed

    @staticmethod
    def _to_numeric(values: pd.Series, column: str) -> pd.Series:
        # Go through object so categoricals convert by their labels, not their codes
        text = values.astype(object).map(lambda v: '' if pd.isna(v) else str(v).strip())
        is_marker = text.str.lower().isin(MISSING_MARKERS)
        numeric = pd.to_numeric(text.where(~is_marker), errors='coerce').astype(float)

        malformed = numeric.isna() & ~is_marker
        if malformed.any():
            logger.warning(f"{int(malformed.sum())} unparseable values in '{column}' treated as missing")
        return numeric

    @staticmethod
    def _to_label(values: pd.Series) -> pd.Categorical:
        text = values.astype(object).map(lambda v: '' if pd.isna(v) else str(v).strip().lower())
        text = text.replace(CLASS_CODES)
        unknown = sorted(set(text) - set(CLASS_LABELS))
        if unknown:
            raise DataValidationError(
                f"Class labels must be one of {list(CLASS_LABELS)}, found {unknown}")
        return pd.Categorical(text.to_numpy(dtype=object), categories=list(CLASS_LABELS))

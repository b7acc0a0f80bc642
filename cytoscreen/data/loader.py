"""Data loading for the breast-cancer specimen table."""

import pandas as pd
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse
from loguru import logger

from ..exceptions import DataValidationError


# Column order of the raw UCI file, which ships without a header
RAW_COLUMNS = [
    'Sample code number',
    'Clump Thickness',
    'Uniformity of Cell Size',
    'Uniformity of Cell Shape',
    'Marginal Adhesion',
    'Single Epithelial Cell Size',
    'Bare Nuclei',
    'Bland Chromatin',
    'Normal Nucleoli',
    'Mitoses',
    'Class',
]

N_COLUMNS = len(RAW_COLUMNS)
MISSING_MARKERS = ['?', '', 'NA', 'NaN']


class DataLoader:
    """Reads the specimen table from a local file or a URL."""

    def __init__(self, cache_dir: Optional[Union[str, Path]] = None):
        """
        Args:
            cache_dir: Where downloaded tables are kept. Later loads of the
                same URL read the cached copy instead of the network.
        """
        self.cache_dir = Path(cache_dir) if cache_dir else None

    def load(self, source: Union[str, Path]) -> pd.DataFrame:
        """
        Load the raw specimen table.

        Accepts the header-less UCI format or a headed CSV with 11 columns.
        Values are returned as read (missing markers become NaN); renaming and
        type conversion are left to the FeatureNormalizer.

        Raises:
            FileNotFoundError: If a local source does not exist
            DataValidationError: If the table does not have 11 columns
        """
        path = self._resolve(source)
        df = self._read(path)

        if df.shape[1] != N_COLUMNS:
            raise DataValidationError(
                f"Expected {N_COLUMNS} columns in specimen table, found {df.shape[1]}",
                source=str(source))
        if df.empty:
            raise DataValidationError("Specimen table is empty", source=str(source))

        logger.info(f"Loaded specimen table: {df.shape[0]} rows, {df.shape[1]} columns from {path}")
        class_counts = df.iloc[:, -1].value_counts(dropna=False).to_dict()
        logger.info(f"Class column counts: {class_counts}")
        return df

    def _resolve(self, source: Union[str, Path]) -> Union[str, Path]:
        """Return a readable location, downloading into the cache when configured."""
        source_str = str(source)
        if not _is_url(source_str):
            path = Path(source_str)
            if not path.exists():
                raise FileNotFoundError(f"File not found: {path}")
            return path

        if self.cache_dir is None:
            return source_str

        cached = self.cache_dir / Path(urlparse(source_str).path).name
        if cached.exists():
            logger.info(f"Using cached copy {cached}")
            return cached

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        raw = pd.read_csv(source_str, header=None, dtype=str, keep_default_na=False)
        raw.to_csv(cached, header=False, index=False)
        logger.info(f"Downloaded {source_str} to {cached}")
        return cached

    def _read(self, path: Union[str, Path]) -> pd.DataFrame:
        """Read either format, deciding on the first line."""
        df = pd.read_csv(path, header=None, dtype=str, na_values=MISSING_MARKERS,
                         keep_default_na=False, skipinitialspace=True)
        if df.empty:
            return df

        first_row = df.iloc[0].fillna('')
        has_header = not any(value.strip().lstrip('-').isdigit() for value in first_row.iloc[:1])
        if has_header:
            header = [str(v).strip() for v in first_row]
            df = df.iloc[1:].reset_index(drop=True)
            df.columns = header
            # Some exports (R write.csv) carry a leading unnamed row-number column
            if df.shape[1] == N_COLUMNS + 1 and header[0] in ('', 'Unnamed: 0'):
                df = df.iloc[:, 1:]
        elif df.shape[1] == N_COLUMNS:
            df.columns = RAW_COLUMNS

        return df


def _is_url(source: str) -> bool:
    return urlparse(source).scheme in ('http', 'https', 'ftp')

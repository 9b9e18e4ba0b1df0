"""
Data loading and table export for survey datasets.

This module reads item-level survey data from delimited text, Excel and JSON
files, with separator and encoding detection for text files, and writes
formatted correlation tables back to CSV.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Union
import pandas as pd
import chardet


class DataLoader:
    """
    Loader for item-level survey data files.

    Supports:
    - CSV/TSV/TXT files with separator and encoding detection
    - Excel files (.xlsx, .xls)
    - JSON arrays of response records, or {"responses": [...]} documents
    """

    def __init__(self, encoding: str = 'auto', chunk_size: Optional[int] = None):
        """
        Initialize the DataLoader.

        Parameters
        ----------
        encoding : str, default 'auto'
            Text encoding for file reading. 'auto' enables detection.
        chunk_size : int, optional
            Size of chunks for reading large files. None loads entire file.
        """
        self.encoding = encoding
        self.chunk_size = chunk_size
        self.logger = logging.getLogger(__name__)

        self._handlers = {
            '.csv': self._load_csv,
            '.tsv': self._load_csv,
            '.txt': self._load_csv,
            '.xlsx': self._load_excel,
            '.xls': self._load_excel,
            '.json': self._load_json,
        }

    def load_data(self, file_path: Union[str, Path], **kwargs) -> pd.DataFrame:
        """
        Load survey data from file with automatic format detection.

        Parameters
        ----------
        file_path : str or Path
            Path to the data file
        **kwargs
            Additional arguments passed to the pandas reader

        Returns
        -------
        pd.DataFrame
            Survey data, one row per respondent
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"Data file not found: {file_path}")

        extension = file_path.suffix.lower()
        if extension not in self._handlers:
            raise ValueError(f"Unsupported file format: {extension}")

        self.logger.info(f"Loading data from {file_path} (format: {extension})")
        data = self._handlers[extension](file_path, **kwargs)
        self.logger.info(f"Loaded {len(data)} records with {len(data.columns)} variables")

        return data

    def export_table(self,
                     table: pd.DataFrame,
                     file_path: Union[str, Path],
                     **kwargs) -> Path:
        """
        Write a formatted table to CSV with the row labels as first column.

        Parameters
        ----------
        table : pd.DataFrame
            Table returned by one of the correlation table builders
        file_path : str or Path
            Destination file
        **kwargs
            Additional arguments passed to ``DataFrame.to_csv``

        Returns
        -------
        Path
            The written file
        """
        file_path = Path(file_path)
        kwargs.setdefault('encoding', 'utf-8')
        table.to_csv(file_path, index=True, **kwargs)
        self.logger.info(f"Table with {len(table)} rows written to {file_path}")
        return file_path

    def _load_csv(self, file_path: Path, **kwargs) -> pd.DataFrame:
        """Load CSV/TSV files with encoding detection."""
        sep = kwargs.pop('sep', None)
        if sep is None:
            if file_path.suffix.lower() == '.tsv':
                sep = '\t'
            else:
                sep = self._detect_separator(file_path)

        encoding = self.encoding
        if encoding == 'auto':
            encoding = self._detect_encoding(file_path)

        try:
            data = self._read_csv(file_path, sep, encoding, **kwargs)
        except UnicodeDecodeError:
            for fallback_encoding in ['utf-8', 'latin-1', 'cp1252']:
                try:
                    data = self._read_csv(file_path, sep, fallback_encoding, **kwargs)
                    self.logger.warning(f"Used fallback encoding: {fallback_encoding}")
                    break
                except UnicodeDecodeError:
                    continue
            else:
                raise ValueError("Could not decode file with any supported encoding")

        return data

    def _read_csv(self, file_path: Path, sep: str, encoding: str, **kwargs) -> pd.DataFrame:
        data = pd.read_csv(
            file_path,
            sep=sep,
            encoding=encoding,
            chunksize=self.chunk_size,
            **kwargs
        )
        if self.chunk_size is not None:
            data = pd.concat(data, ignore_index=True)
        return data

    def _load_excel(self, file_path: Path, **kwargs) -> pd.DataFrame:
        """Load the first (or requested) sheet of an Excel workbook."""
        sheet_name = kwargs.pop('sheet_name', 0)
        return pd.read_excel(file_path, sheet_name=sheet_name, **kwargs)

    def _load_json(self, file_path: Path, **kwargs) -> pd.DataFrame:
        """Load JSON survey responses."""
        with open(file_path, 'r', encoding='utf-8') as f:
            json_data = json.load(f)

        if isinstance(json_data, dict) and 'responses' in json_data:
            return pd.DataFrame(json_data['responses'])
        elif isinstance(json_data, list):
            return pd.DataFrame(json_data)
        else:
            raise ValueError("Unsupported JSON structure")

    def _detect_separator(self, file_path: Path) -> str:
        """Detect CSV separator by examining first few lines."""
        with open(file_path, 'r', encoding='utf-8', errors='ignore') as f:
            sample = f.read(1024)

        separators = [',', ';', '\t', '|']
        counts = {sep: sample.count(sep) for sep in separators}

        return max(counts.items(), key=lambda x: x[1])[0]

    def _detect_encoding(self, file_path: Path) -> str:
        """Detect file encoding with chardet."""
        with open(file_path, 'rb') as f:
            raw_data = f.read(10000)
        result = chardet.detect(raw_data)
        return result['encoding'] or 'utf-8'

"""
Named Matrix implementation for pcalab.

This module provides a data structure for observation x feature matrices
with named rows and columns, such as iris measurements or MNIST pixels.
"""

import logging
import numpy as np
import pandas as pd
from typing import List, Optional, Union, Any, Tuple

logger = logging.getLogger(__name__)


class NamedMatrix:
    """
    A numeric matrix with named rows (observations) and columns (features).

    Uses a pandas DataFrame as the underlying storage. Row and column
    names must be unique.
    """

    def __init__(self,
                 matrix: Optional[Union[np.ndarray, pd.DataFrame]] = None,
                 rownames: Optional[List[Any]] = None,
                 colnames: Optional[List[Any]] = None):
        """
        Initialize a NamedMatrix.

        Args:
            matrix: Matrix data (numpy array or pandas DataFrame)
            rownames: List of row names (defaults to 0..n-1)
            colnames: List of column names (defaults to 0..p-1)
        """
        if matrix is None:
            self._matrix = pd.DataFrame(
                index=[] if rownames is None else list(rownames),
                columns=[] if colnames is None else list(colnames),
                dtype=float
            )
        elif isinstance(matrix, pd.DataFrame):
            self._matrix = matrix.astype(float)
            if rownames is not None:
                self._matrix.index = list(rownames)
            if colnames is not None:
                self._matrix.columns = list(colnames)
        else:
            values = np.asarray(matrix, dtype=float)
            if values.ndim == 1:
                values = values.reshape(-1, 1)
            if values.ndim != 2:
                raise ValueError(f"Expected 2D data, got {values.ndim} dimensions")
            rows = list(rownames) if rownames is not None else list(range(values.shape[0]))
            cols = list(colnames) if colnames is not None else list(range(values.shape[1]))
            if len(rows) != values.shape[0] or len(cols) != values.shape[1]:
                raise ValueError(
                    f"Names ({len(rows)} rows, {len(cols)} cols) do not match "
                    f"data shape {values.shape}"
                )
            self._matrix = pd.DataFrame(values, index=rows, columns=cols)

        if not self._matrix.index.is_unique:
            raise ValueError("Row names must be unique")
        if not self._matrix.columns.is_unique:
            raise ValueError("Column names must be unique")

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame,
                       columns: Optional[List[Any]] = None) -> 'NamedMatrix':
        """
        Build a NamedMatrix from (a numeric subset of) a DataFrame.

        Args:
            df: Source DataFrame
            columns: Columns to keep; defaults to all numeric columns

        Returns:
            A new NamedMatrix
        """
        if columns is None:
            columns = list(df.select_dtypes(include=[np.number]).columns)
        missing = [c for c in columns if c not in df.columns]
        if missing:
            raise KeyError(f"Columns not found: {missing}")
        return cls(df[columns])

    @property
    def matrix(self) -> pd.DataFrame:
        """Get the underlying DataFrame."""
        return self._matrix

    @property
    def values(self) -> np.ndarray:
        """Get the matrix as a numpy array."""
        return self._matrix.values

    @property
    def shape(self) -> Tuple[int, int]:
        return self._matrix.shape

    def rownames(self) -> List[Any]:
        """Get the list of row names."""
        return list(self._matrix.index)

    def colnames(self) -> List[Any]:
        """Get the list of column names."""
        return list(self._matrix.columns)

    def _wrap(self, df: pd.DataFrame) -> 'NamedMatrix':
        result = NamedMatrix.__new__(NamedMatrix)
        result._matrix = df
        return result

    def rowname_subset(self, rownames: List[Any]) -> 'NamedMatrix':
        """
        Create a subset of the matrix with only the specified rows.

        Names not present in the matrix are ignored.

        Args:
            rownames: List of row names to include

        Returns:
            A new NamedMatrix with only the specified rows
        """
        valid_rows = [row for row in rownames if row in self._matrix.index]
        return self._wrap(self._matrix.loc[valid_rows].copy())

    def colname_subset(self, colnames: List[Any]) -> 'NamedMatrix':
        """
        Create a subset of the matrix with only the specified columns.

        Names not present in the matrix are ignored.

        Args:
            colnames: List of column names to include

        Returns:
            A new NamedMatrix with only the specified columns
        """
        valid_cols = [col for col in colnames if col in self._matrix.columns]
        return self._wrap(self._matrix[valid_cols].copy())

    def get_row_by_name(self, row_name: Any) -> np.ndarray:
        """
        Get a row of the matrix by name.

        Args:
            row_name: The name of the row

        Returns:
            The row as a numpy array
        """
        if row_name not in self._matrix.index:
            raise KeyError(f"Row name '{row_name}' not found")
        return self._matrix.loc[row_name].values

    def get_col_by_name(self, col_name: Any) -> np.ndarray:
        """
        Get a column of the matrix by name.

        Args:
            col_name: The name of the column

        Returns:
            The column as a numpy array
        """
        if col_name not in self._matrix.columns:
            raise KeyError(f"Column name '{col_name}' not found")
        return self._matrix[col_name].values

    def col_means(self) -> np.ndarray:
        """Column means."""
        return self._matrix.mean(axis=0).values

    def col_sds(self) -> np.ndarray:
        """Column standard deviations (n - 1 denominator)."""
        return self._matrix.std(axis=0, ddof=1).values

    def center(self, means: Optional[np.ndarray] = None) -> 'NamedMatrix':
        """
        Subtract column means from every row.

        Args:
            means: Means to subtract; defaults to this matrix's column means.
                   Pass training means to center test data consistently.

        Returns:
            A new, centered NamedMatrix
        """
        if means is None:
            means = self.col_means()
        means = np.asarray(means, dtype=float)
        if means.shape != (self.shape[1],):
            raise ValueError(f"Expected {self.shape[1]} means, got shape {means.shape}")
        return self._wrap(self._matrix - means)

    def near_zero_variance(self,
                           freq_cut: float = 95 / 5,
                           unique_cut: float = 10) -> List[Any]:
        """
        Find columns with (near) zero variance.

        A column is flagged when it is constant, or when the most common
        value is more than freq_cut times as frequent as the second most
        common one and at most unique_cut percent of its values are distinct.

        Args:
            freq_cut: Cutoff for the ratio of the two most common values
            unique_cut: Cutoff for the percentage of distinct values

        Returns:
            Names of the flagged columns
        """
        n_rows = self.shape[0]
        flagged = []
        for col in self._matrix.columns:
            counts = self._matrix[col].value_counts(dropna=True)
            if len(counts) <= 1:
                flagged.append(col)
                continue
            freq_ratio = counts.iloc[0] / counts.iloc[1]
            percent_unique = 100.0 * len(counts) / n_rows
            if freq_ratio > freq_cut and percent_unique <= unique_cut:
                flagged.append(col)
        return flagged

    def drop_near_zero_variance(self,
                                freq_cut: float = 95 / 5,
                                unique_cut: float = 10) -> 'NamedMatrix':
        """
        Remove the columns flagged by near_zero_variance.

        Returns:
            A new NamedMatrix without the flagged columns
        """
        flagged = set(self.near_zero_variance(freq_cut, unique_cut))
        logger.debug(f"Dropping {len(flagged)} near zero variance columns")
        keep = [col for col in self.colnames() if col not in flagged]
        return self.colname_subset(keep)

    def __repr__(self) -> str:
        return f"NamedMatrix(rows={self.shape[0]}, cols={self.shape[1]})"

    def __str__(self) -> str:
        return (f"NamedMatrix with {self.shape[0]} rows and "
                f"{self.shape[1]} columns\n{self._matrix}")


def create_named_matrix(matrix_data: Optional[Union[np.ndarray, List[List[Any]]]] = None,
                        rownames: Optional[List[Any]] = None,
                        colnames: Optional[List[Any]] = None) -> NamedMatrix:
    """
    Create a NamedMatrix from data.

    Args:
        matrix_data: Matrix data (numpy array or nested lists)
        rownames: List of row names
        colnames: List of column names

    Returns:
        A new NamedMatrix
    """
    if matrix_data is not None and not isinstance(matrix_data, np.ndarray):
        matrix_data = np.array(matrix_data, dtype=float)
    return NamedMatrix(matrix_data, rownames, colnames)

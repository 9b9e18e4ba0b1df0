"""Display formatting of correlation tables."""

from .matrix_formatter import MatrixFormatter, check_labels

__all__ = [
    'MatrixFormatter',
    'check_labels'
]

"""Edit classification, line counting and file filtering."""

from .classifier import ChangeClassifier, ClassifierState
from .file_filter import FileTrackingFilter, normalize_path
from .line_counter import count_non_empty_lines, document_total_lines

__all__ = [
    "ChangeClassifier",
    "ClassifierState",
    "FileTrackingFilter",
    "count_non_empty_lines",
    "document_total_lines",
    "normalize_path",
]

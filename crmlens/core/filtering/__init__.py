from crmlens.core.filtering.row_filter import RecordFilter

__all__ = ["RecordFilter"]

"""
app/readers package marker.
"""

from app.readers.workbook_reader import WorkbookTable, read_workbook, to_cell

__all__ = ["WorkbookTable", "read_workbook", "to_cell"]

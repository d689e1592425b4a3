"""
Domain layer: record model, naming scheme, state machine and errors.

Pure logic - no workbook or file access.
"""

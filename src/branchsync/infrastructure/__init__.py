"""
Infrastructure layer: workbook access, template cloning, archives,
configuration files, uploads and logging.
"""

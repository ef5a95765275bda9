"""
Bulk Text Renderer
==================
Stamps text from a CSV file onto a PDF, PNG, or JPEG template, producing
one output file per CSV entry.

Architecture:
    - CSV Reader: Parses name / prefix / postfix rows
    - Naming: Builds safe, unique output filenames
    - Font Service: Resolves built-in and system fonts for each format
    - Renderers: PDF (PyMuPDF) and PNG / JPEG (Pillow)
    - Batch Executor: Sequential or thread-pool execution with progress

Version: 1.0.0
"""

__version__ = "1.0.0"

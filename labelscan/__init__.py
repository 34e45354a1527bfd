"""
Sample label scanner

Reads geological sample labels (well, company, depth range, box code)
from photos through interchangeable vision providers, with a local
regex parser for raw OCR text, and appends the result to Google Sheets.
"""

__version__ = "0.1.0"

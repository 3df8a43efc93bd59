# formulagen/__init__.py
"""
Sheets Formula Generator

A FastAPI application that turns a plain-English description of a
spreadsheet computation into a Google Sheets formula plus a step-by-step
explanation, using the Gemini text API.
"""

__version__ = "1.0.0"

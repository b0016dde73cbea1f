"""BookTrack - Shared Utilities

This package contains helpers shared by the API and the CLI client:
- Field and ISBN validation rules (validators.py)
- CLI output formatting (ui_helpers.py)
"""

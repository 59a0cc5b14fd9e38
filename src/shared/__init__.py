"""Shared, implementation-agnostic types.

Submodules:
    error_codes: Error-Codes und Kategorien
    exceptions: Exception-Hierarchie mit Dict-Transport zwischen Prozessen
"""

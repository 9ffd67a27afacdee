"""Core (UI-agnostic) contract dashboard logic.

This package contains:
- date normalization for raw spreadsheet cells
- currency parsing/formatting
- data loading (XLSX -> pandas)
- filter normalization, table sorting and paging
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""

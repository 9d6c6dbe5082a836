"""Core (UI-agnostic) error dashboard logic.

This package contains:
- feed parsing (published CSV -> typed activity records)
- week bucketing and filter normalization
- weekly aggregate series (JSON-serializable payloads)
- fetch-with-fallback loading backed by local snapshots
- chart helpers (Altair -> Vega-Lite spec dict)
"""

"""Core (UI-agnostic) sales dashboard logic.

This package contains:
- data loading (CSV -> pandas, with a sample-data fallback)
- filter state and the exact-match filter
- group and summary metrics
- chart series and renderers (Altair -> Vega-Lite spec dict)
- the session controller that the Streamlit page drives
"""

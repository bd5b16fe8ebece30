"""State layer.

This package is the single source of truth for which activities are
currently active locally, and for how long.
"""

"""Fetch orchestration layer.

This package decides which regions to query for the active viewport or
searched place, merges and caches the results, and publishes a single
:class:`~pysensormap.fetch.state.FetchState` for the UI.
"""

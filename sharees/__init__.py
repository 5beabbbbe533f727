"""Debounced typeahead search for share recipients."""

__version__ = "0.1.0"

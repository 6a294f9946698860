"""Command-line interface for harlog."""

"""Command-line entrypoints for wisecompanion."""

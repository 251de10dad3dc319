"""Read-only reports over the docs/ markdown tree, and the candle CLI."""

"""Span and trace records, timestamp parsing, payload loading."""

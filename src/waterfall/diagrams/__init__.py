"""Presentation helpers and the plain-text waterfall."""

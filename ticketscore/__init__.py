"""Weighted quality scores for support tickets: repositories, scorers and request handlers."""

__version__ = "0.1.0"
"""Comparative load testing for backend services."""

__version__ = "0.1.0"

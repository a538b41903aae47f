"""Voice consent retention service."""

__version__ = "0.1.0"

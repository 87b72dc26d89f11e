"""Validator uptime and upgrade points over a block range."""

__version__ = "0.1.0"

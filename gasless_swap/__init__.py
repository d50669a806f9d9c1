"""Gasless token swaps through a relay, authorized by a smart account."""

__version__ = "0.1.0"

"""Checked value encoding, linearizability checking, key/value model and messages, and MapReduce tools."""

__version__ = "0.1.0"
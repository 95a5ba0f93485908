"""Electora: election management API with Condorcet, Plurality, Approval and Borda tallying."""

__version__ = "0.1.0"

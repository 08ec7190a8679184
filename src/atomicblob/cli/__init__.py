"""Command line interface for atomicblob."""

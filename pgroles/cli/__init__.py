"""Command line interface of pgroles."""

"""Command line interface for BusyBee."""

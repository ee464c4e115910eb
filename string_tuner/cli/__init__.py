"""Command line interface for String Tuner."""

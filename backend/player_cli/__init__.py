"""Command line interface for the Vidluna Player API."""

"""
Resolver backend package for Vidluna.

This package bundles the scraping-proxy stream resolver and the TMDB
metadata fetcher used by the player API.
"""

__all__ = ["models", "stream_resolver", "metadata_fetcher"]

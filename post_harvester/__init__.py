"""Forum post harvester: poll listings, keep new posts, serve them over HTTP."""

__version__ = "0.1.0"

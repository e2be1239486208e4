"""AWS Free Tier Reaper - dependency-ordered cleanup of course project resources."""

__version__ = "0.3.0"

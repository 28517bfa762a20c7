"""Reply bot backend: admin console API and the Inline Logic Engine."""

__version__ = "0.1.0"

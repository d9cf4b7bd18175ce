"""AI trading-signal generator: staged completion pipeline with validation gate."""

__version__ = "0.1.0"

"""Portfolio tracker backend: asset price cache and portfolio valuation."""

__version__ = "1.0.0"

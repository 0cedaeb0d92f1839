"""Check code rules against valid and invalid examples and snapshot baselines."""

__version__ = "0.1.0"
"""Core building blocks for azure.yaml project tooling."""

__version__ = "0.1.0"
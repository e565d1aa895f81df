"""Talos — terminal client for a self-hosted Talos secret store."""

__version__ = "0.1.0"

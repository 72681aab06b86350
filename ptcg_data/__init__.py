"""PTCG Data - card, set and reference data ingestion plus query API."""

__version__ = "0.1.0"

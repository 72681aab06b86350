"""
Ingestion pipeline: local and remote source loaders, the record normalizer,
and the migration orchestrator that writes them to the store.
"""

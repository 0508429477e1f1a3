"""Ingestion package: seekable video sources and the scene sampler."""

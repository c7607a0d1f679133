"""Flowport HTTP API."""

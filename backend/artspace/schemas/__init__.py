"""Pydantic request/response schemas for the Artspace booking API."""

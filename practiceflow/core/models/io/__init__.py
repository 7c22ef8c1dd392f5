"""
I/O models for API requests and responses.

Pydantic schemas defining the contract between the API and its clients,
grouped by domain.
"""

"""Pydantic schemas for the delivery API and engine results."""

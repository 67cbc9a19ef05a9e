"""Pydantic models for expenses and derived analytics."""

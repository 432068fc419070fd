"""Persistence on SQLModel."""

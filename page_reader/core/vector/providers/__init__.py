"""Concrete embedding providers."""

"""Domain layer: definition, error taxonomy, and key lifecycle.

This layer depends only on stdlib and pydantic.
It must never import from core, plugins, or config.
"""

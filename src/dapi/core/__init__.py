"""Call pipeline: facade entries, decoration engine, and hook registry.

Core may import from domain. It must never import from plugins or config.
"""

"""Reusable patterns shared by the verticals.

- rules_engine: fixed, ordered rule chains over a shared document
- domain_config: frozen dataclass service configuration
"""

"""
Boundary layer for external system integrations.

Handles all interactions with external systems (database, blob storage, identity provider).
Provides adapters and clients for infrastructure dependencies.
"""

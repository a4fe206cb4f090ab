"""
Identity provider boundary modules.

Exports: Principal, StackAuthClient
"""

from .stack_auth_client import Principal, StackAuthClient

__all__ = ["Principal", "StackAuthClient"]

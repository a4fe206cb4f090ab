"""
AWS boundary modules.

Exports: S3MaterialStore
"""

from .s3_client import S3MaterialStore

__all__ = ["S3MaterialStore"]

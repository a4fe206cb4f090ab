"""
Application layer.

Use case orchestration over the boundary collaborators. Services enforce
authorization through the access control guard and record audit events.
"""

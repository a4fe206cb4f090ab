"""
Audit log ORM model.

Append-only record of completed mutating actions. Rows are never
updated or deleted by application code.

Dependencies: sqlalchemy, lms_backend.boundary.db.base
System role: Audit trail persistence
"""

from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from lms_backend.boundary.db.base import Base, CreatedAtMixin, UUIDMixin


class AuditLogModel(Base, UUIDMixin, CreatedAtMixin):
    """
    Audit log ORM model.

    ``user_id`` carries no foreign key so that system actions (NULL) and
    events about users that are later removed remain readable.

    Attributes:
        user_id: Acting user, NULL for system actions
        action: Dot-namespaced verb, e.g. "course.created"
        resource_type: Kind of entity acted upon
        resource_id: Identifier of the entity acted upon
        event_metadata: Free-form JSON payload (column "metadata")
    """

    __tablename__ = "audit_logs"

    user_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    action: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    resource_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    resource_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # "metadata" is reserved on declarative classes
    event_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
        default=None,
    )

from datetime import date
from typing import Optional

from sqlalchemy import Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from immicrm.common.base_models import CreatedAtMixin, IntIdBase

DOCUMENT_STATUS_PENDING = "Pending"


class Document(IntIdBase, CreatedAtMixin):
    """A required or received document for a case. Metadata only, no file body."""

    __tablename__ = "documents"

    case_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True
    )
    document_type: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default=DOCUMENT_STATUS_PENDING)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    received_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    uploaded_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

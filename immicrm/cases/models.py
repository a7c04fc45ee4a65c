import enum
from datetime import date
from typing import Optional

from sqlalchemy import Boolean, Date, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from immicrm.common.base_models import CreatedAtMixin, IntIdBase, TimestampMixin

CASE_STATUS_CLOSED = "Closed"


class Priority(str, enum.Enum):
    low = "Low"
    medium = "Medium"
    high = "High"


class Case(IntIdBase, TimestampMixin):
    __tablename__ = "cases"

    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    case_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    case_type: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    priority: Mapped[Priority] = mapped_column(
        Enum(Priority, values_callable=lambda e: [m.value for m in e]), nullable=False, default=Priority.medium
    )
    deadline: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    filing_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    assigned_to: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class CaseNote(IntIdBase, CreatedAtMixin):
    __tablename__ = "case_notes"

    case_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    note_type: Mapped[str] = mapped_column(String(50), nullable=False, default="General")
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_internal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

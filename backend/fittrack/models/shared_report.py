"""Public share links for a week's report, and comments left by viewers."""

from datetime import date, datetime
from sqlalchemy import Boolean, Date, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from fittrack.db.base import Base


class SharedReport(Base):
    __tablename__ = "shared_reports"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    share_token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    week_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow
    )

    user: Mapped["User"] = relationship("User", back_populates="shared_reports")
    comments: Mapped[list["ReportComment"]] = relationship(
        "ReportComment",
        back_populates="shared_report",
        cascade="all, delete-orphan",
        order_by="ReportComment.created_at",
    )


class ReportComment(Base):
    __tablename__ = "report_comments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    shared_report_id: Mapped[int] = mapped_column(
        ForeignKey("shared_reports.id", ondelete="CASCADE"), nullable=False, index=True
    )
    commenter_name: Mapped[str] = mapped_column(String(255), nullable=False)
    comment_text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)

    shared_report: Mapped["SharedReport"] = relationship("SharedReport", back_populates="comments")

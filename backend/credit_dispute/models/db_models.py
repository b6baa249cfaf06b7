"""
Credit Dispute Engine - SQLAlchemy ORM Models
Persistent storage for analyzed reports, generated letters and the letter template corpus
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, Text, JSON, ForeignKey, Boolean
from sqlalchemy.orm import relationship
from ..database import Base


class ReportDB(Base):
    """An analyzed upload. The serialized ReportModel lives in report_json."""
    __tablename__ = "reports"

    id = Column(String(36), primary_key=True)  # UUID, same as ReportModel.report_id
    filename = Column(String(255), nullable=True)
    primary_bureau = Column(String(50), nullable=True)
    is_sample_data = Column(Boolean, default=False)

    report_json = Column(JSON, nullable=False)
    issue_count = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)

    letters = relationship("LetterDB", back_populates="report", cascade="all, delete-orphan")


class LetterDB(Base):
    """Persisted generated letters."""
    __tablename__ = "letters"

    id = Column(String(36), primary_key=True)  # UUID, same as Letter.letter_id
    report_id = Column(String(36), ForeignKey("reports.id", ondelete="CASCADE"), nullable=True, index=True)

    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    bureau = Column(String(100), nullable=False)
    error_type = Column(String(50), default="general")
    status = Column(String(20), default="draft")
    resolution = Column(String(20), default="structural")
    template_name = Column(String(255), nullable=True)

    account_name = Column(String(255), nullable=True)
    account_number = Column(String(100), nullable=True)
    issue_ids = Column(JSON)  # List of Issue.issue_id values covered by this letter

    created_at = Column(DateTime, default=datetime.utcnow)

    report = relationship("ReportDB", back_populates="letters")


class LetterTemplateDB(Base):
    """Template corpus entry: (name, inferred type, body text)."""
    __tablename__ = "letter_templates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True, index=True)
    template_type = Column(String(50), nullable=True)  # Inferred from name when empty
    body_text = Column(Text, nullable=False)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

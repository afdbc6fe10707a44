# models.py
# Blueprints for the database tables: owners, presentations, their tokenized
# versions, per-session engagement records and the per-presentation rollup.

import uuid

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, JSON, Float, Uuid
from sqlalchemy import UniqueConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .core.database import Base


class User(Base):
    """
    Blueprint for the 'users' table.
    Owners of presentations. Created by the bootstrap step, never implicitly.
    """
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String)
    company = Column(String)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    presentations = relationship("Presentation", back_populates="owner")


class Template(Base):
    """
    Blueprint for the 'templates' table.
    Stored content skeletons that presentations are generated from.
    """
    __tablename__ = "templates"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    description = Column(Text)
    thumbnail = Column(String)
    structure = Column(JSON, nullable=False)  # content tree with {{placeholders}}
    default_data = Column(JSON, default=dict)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Presentation(Base):
    """
    Blueprint for the 'presentations' table.
    Deleting a presentation removes its versions (and their sessions) and its rollup.
    """
    __tablename__ = "presentations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    title = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    template_id = Column(String, nullable=False)
    content = Column(JSON, nullable=False)  # sections -> blocks
    settings = Column(JSON, default=dict)  # theme / protection / seo / tracking
    owner_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="presentations")
    versions = relationship(
        "PresentationVersion",
        back_populates="presentation",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PresentationVersion.created_at.desc()",
    )
    analytics = relationship(
        "PresentationAnalytics",
        back_populates="presentation",
        cascade="all, delete-orphan",
        passive_deletes=True,
        uselist=False,
    )


class PresentationVersion(Base):
    """
    Blueprint for the 'presentation_versions' table.
    A tokenized, personalised instance of a presentation sent to one recipient.
    Tokens are generated once at creation and never rotated.
    """
    __tablename__ = "presentation_versions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    presentation_id = Column(Uuid, ForeignKey("presentations.id", ondelete="CASCADE"), nullable=False, index=True)
    version_slug = Column(String, unique=True, index=True, nullable=False)
    view_token = Column(String, unique=True, nullable=False)
    edit_token = Column(String, unique=True, nullable=False)

    recipient_name = Column(String)
    recipient_email = Column(String)
    variables = Column(JSON, default=dict)
    password_hash = Column(String)  # bcrypt, optional
    expires_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    presentation = relationship("Presentation", back_populates="versions")
    sessions = relationship(
        "ViewSession",
        back_populates="version",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ViewSession(Base):
    """
    Blueprint for the 'view_sessions' table.
    One engagement record per (version, browser session).
    """
    __tablename__ = "view_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    version_id = Column(Uuid, ForeignKey("presentation_versions.id", ondelete="CASCADE"), nullable=False, index=True)
    session_id = Column(String, nullable=False, index=True)  # client generated

    # Engagement metrics
    time_spent = Column(Float, nullable=False, default=0.0)  # seconds, cumulative as reported
    scroll_depth = Column(Float, nullable=False, default=0.0)  # 0-100, last write wins
    sections_viewed = Column(JSON, nullable=False, default=list)  # distinct section ids
    clicks = Column(JSON, nullable=False, default=list)  # [{"elementId": ..., "timestamp": ...}]

    # Client metadata
    ip_address = Column(String(45))
    user_agent = Column(String)
    device = Column(String)
    browser = Column(String)
    country = Column(String(100), index=True)
    city = Column(String(100))

    # Timestamps
    first_seen = Column(DateTime(timezone=True), nullable=False, index=True)
    last_ping = Column(DateTime(timezone=True), nullable=False)

    # Bumped on every engagement write; writes are conditional on the value read
    revision = Column(Integer, nullable=False, default=0)

    version = relationship("PresentationVersion", back_populates="sessions")

    __table_args__ = (
        UniqueConstraint("version_id", "session_id", name="uq_view_session_version_session"),
        Index("idx_view_session_version_first_seen", "version_id", "first_seen"),
    )


class PresentationAnalytics(Base):
    """
    Blueprint for the 'presentation_analytics' table.
    Derived rollup, one row per presentation. Counters are only ever changed
    with SQL-side increments.
    """
    __tablename__ = "presentation_analytics"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    presentation_id = Column(Uuid, ForeignKey("presentations.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    total_views = Column(Integer, nullable=False, default=0)
    unique_viewers = Column(Integer, nullable=False, default=0)
    avg_time_spent = Column(Float, nullable=False, default=0.0)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    presentation = relationship("Presentation", back_populates="analytics")

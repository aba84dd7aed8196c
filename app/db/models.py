# app/db/models.py
"""
SQLAlchemy models for the Files Gateway.

The gateway keeps no file data of its own: only the API clients allowed to
call it, an audit trail of mutations and a log of unexpected errors.
"""
from datetime import datetime
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, String, Text
from sqlalchemy.types import Uuid

from app.db.session import Base


class Client(Base):
    __tablename__ = "clients"
    id = Column(String, primary_key=True)
    # sha256 of the API key; the key itself is only shown once, at issue time
    api_key_hash = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class AuditLog(Base):
    __tablename__ = "audit_logs"
    id = Column(Uuid, primary_key=True, default=uuid4)
    client_id = Column(String, nullable=True, index=True)
    provider_id = Column(String, nullable=True)
    action = Column(String, nullable=False)
    actor = Column(String, nullable=True)
    request_id = Column(String, nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class ErrorLog(Base):
    __tablename__ = "error_logs"
    id = Column(Uuid, primary_key=True, default=uuid4)
    request_id = Column(String, nullable=True)
    client_id = Column(String, nullable=True, index=True)
    provider_id = Column(String, nullable=True)
    component = Column(String, nullable=True)
    function = Column(String, nullable=True)
    severity = Column(String, nullable=False, default="ERROR")
    message = Column(Text, nullable=False)
    details = Column(JSON, nullable=True)
    stacktrace = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

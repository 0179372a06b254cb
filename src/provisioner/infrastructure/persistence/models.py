"""SQLAlchemy ORM models."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, func, Index, String, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class ProvisioningRunORM(Base):
    __tablename__ = "provisioning_runs"

    id = Column(String(36), primary_key=True)
    rpc_endpoint = Column(String(512), nullable=False)
    stage = Column(String(50), nullable=False, index=True)
    smart_account_address = Column(String(66), nullable=True)
    token_address = Column(String(66), nullable=True)
    dao_address = Column(String(66), nullable=True)
    voting_plugin_address = Column(String(66), nullable=True)
    failed_stage = Column(String(50), nullable=True)
    error_type = Column(String(255), nullable=True, default="")
    error_message = Column(Text, nullable=True, default="")
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_provisioning_runs_created_at", "created_at"),
    )


class ProvisioningResultORM(Base):
    """Single-document result slot; a write replaces the row."""

    __tablename__ = "provisioning_results"

    slot = Column(String(100), primary_key=True)
    dao_address = Column(String(66), nullable=False)
    token_voting_plugin_address = Column(String(66), nullable=False)
    erc20_token_address = Column(String(66), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

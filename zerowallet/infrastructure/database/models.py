"""SQLAlchemy ORM models for projects, gas tanks, whitelists and logins."""

from datetime import datetime
from typing import List

from sqlalchemy import (
    JSON,
    BigInteger,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# SQLite only autoincrements INTEGER primary keys
BigIntId = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    pass


class ProjectModel(Base):
    """Persisted project record."""

    __tablename__ = "projects"
    __table_args__ = (
        UniqueConstraint("owner_address", "name", name="uq_projects_owner_name"),
    )

    project_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    project_api_key: Mapped[str] = mapped_column(
        String(256),
        nullable=False,
        unique=True,
    )
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    owner_address: Mapped[str] = mapped_column(String(70), nullable=False, index=True)
    allowed_origins: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    gas_tanks: Mapped[List["GasTankModel"]] = relationship(
        "GasTankModel",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class GasTankModel(Base):
    """Persisted gas tank record."""

    __tablename__ = "gas_tanks"
    __table_args__ = (
        UniqueConstraint("project_id", "chain_id", name="uq_gas_tanks_project_chain"),
    )

    gas_tank_id: Mapped[int] = mapped_column(
        BigIntId,
        primary_key=True,
        autoincrement=True,
    )
    api_key: Mapped[str] = mapped_column(String(256), nullable=False)
    project_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("projects.project_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    chain_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    provider_url: Mapped[str] = mapped_column(String(256), nullable=False)
    funding_key: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    project: Mapped["ProjectModel"] = relationship(
        "ProjectModel",
        back_populates="gas_tanks",
    )
    whitelist: Mapped[List["ContractWhitelistModel"]] = relationship(
        "ContractWhitelistModel",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ContractWhitelistModel.id",
    )


class ContractWhitelistModel(Base):
    """Persisted whitelisted contract address of a gas tank."""

    __tablename__ = "contracts_whitelist"
    __table_args__ = (
        UniqueConstraint("gas_tank_id", "address", name="uq_whitelist_tank_address"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    address: Mapped[str] = mapped_column(String(70), nullable=False, index=True)
    gas_tank_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("gas_tanks.gas_tank_id", ondelete="CASCADE"),
        nullable=False,
    )


class GaslessLoginModel(Base):
    """Persisted login (nonce) record of a wallet on a gas tank."""

    __tablename__ = "gasless_login"
    __table_args__ = (
        UniqueConstraint("gas_tank_id", "address", name="uq_login_tank_address"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    address: Mapped[str] = mapped_column(String(70), nullable=False, index=True)
    nonce: Mapped[str] = mapped_column(String(256), nullable=False)
    # Epoch seconds
    expiration: Mapped[int] = mapped_column(BigInteger, nullable=False)
    gas_tank_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("gas_tanks.gas_tank_id", ondelete="CASCADE"),
        nullable=False,
    )

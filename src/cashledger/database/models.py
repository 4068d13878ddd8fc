"""SQLAlchemy models for the cashledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Numeric,
    Boolean,
    CheckConstraint,
    Index,
    UniqueConstraint,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

# Home currency amounts; COP has no fractional subunits in practice but the
# scale leaves room for imported data that carries cents.
Money = Numeric(14, 2)

SQLITE_BEGIN_OPTION = "sqlite_begin"
# Seconds a SQLite writer waits for the lock before the store reports it as busy
SQLITE_BUSY_TIMEOUT = 30


def _now() -> datetime:
    return datetime.now(UTC)


class Account(Base):
    """Financial account model (cash drawer, bank account, digital wallet)."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    kind = Column(String, nullable=False, default="cash")
    balance = Column(Money, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=True)

    __table_args__ = (
        CheckConstraint("kind IN ('cash', 'bank', 'digital')", name="ck_account_kind"),
    )

    # Relationships
    movements = relationship(
        "Movement", back_populates="account", foreign_keys="Movement.account_id"
    )


class Movement(Base):
    """Movement model: one balance change on one account."""

    __tablename__ = "movements"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    direction = Column(String, nullable=False)
    amount = Column(Money, nullable=False)
    previous_balance = Column(Money, nullable=False, default=0)
    new_balance = Column(Money, nullable=False, default=0)
    concept = Column(String, nullable=False)
    reference_type = Column(String, nullable=True)
    reference_id = Column(String, nullable=True)
    transfer_to_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    # NULL pairs never collide, so only linked movements are constrained.
    # IDs of reversed movements are never handed out again.
    __table_args__ = (
        UniqueConstraint("reference_type", "reference_id", name="uq_movement_reference"),
        CheckConstraint("amount > 0", name="ck_movement_amount_positive"),
        CheckConstraint("direction IN ('in', 'out')", name="ck_movement_direction"),
        Index("ix_movements_account_id", "account_id"),
        {"sqlite_autoincrement": True},
    )

    # Relationships
    account = relationship("Account", back_populates="movements", foreign_keys=[account_id])


class Sale(Base):
    """Sale record owned by the sales module."""

    __tablename__ = "sales"

    id = Column(Integer, primary_key=True)
    invoice_number = Column(String, nullable=False)
    total = Column(Money, nullable=False)
    payment_method = Column(String, nullable=False)
    payment_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    is_credit = Column(Boolean, nullable=True, default=False)
    status = Column(String, nullable=False, default="paid")
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


class PaymentRecord(Base):
    """Payment against an account receivable or payable."""

    __tablename__ = "payment_records"

    id = Column(Integer, primary_key=True)
    type = Column(String, nullable=False)
    amount = Column(Money, nullable=False)
    payment_method = Column(String, nullable=False)
    payment_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    notes = Column(String, nullable=True)
    registered_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


class Expense(Base):
    """Expense record owned by the expenses module."""

    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True)
    amount = Column(Money, nullable=False)
    payment_method = Column(String, nullable=False)
    payment_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    concept = Column(String, nullable=False)
    registered_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


class AccountPayable(Base):
    """Account payable; only its link to an expense matters to the ledger."""

    __tablename__ = "accounts_payable"

    id = Column(Integer, primary_key=True)
    expense_id = Column(Integer, ForeignKey("expenses.id"), nullable=True)
    amount = Column(Money, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)


class PartnerWithdrawal(Base):
    """Partner withdrawal record."""

    __tablename__ = "partner_withdrawals"

    id = Column(Integer, primary_key=True)
    partner_name = Column(String, nullable=False)
    amount = Column(Money, nullable=False)
    method = Column(String, nullable=False)
    notes = Column(String, nullable=True)
    approved_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


def _emit_sqlite_begin(engine: Engine) -> None:
    """Take over BEGIN from pysqlite so a transaction can ask for the write lock up front.

    A connection opened with the ``sqlite_begin`` execution option set to
    ``"IMMEDIATE"`` starts with ``BEGIN IMMEDIATE``; others use a plain
    deferred ``BEGIN``.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        mode = conn.get_execution_options().get(SQLITE_BEGIN_OPTION)
        conn.exec_driver_sql(f"BEGIN {mode}" if mode else "BEGIN")


def create_db_engine(database_url: str) -> Engine:
    """Create an engine and make sure every table exists."""
    is_sqlite = make_url(database_url).get_backend_name() == "sqlite"
    connect_args = {"timeout": SQLITE_BUSY_TIMEOUT} if is_sqlite else {}
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    if is_sqlite:
        _emit_sqlite_begin(engine)
    Base.metadata.create_all(engine)
    return engine


def create_write_engine(engine: Engine) -> Engine:
    """Return a view of ``engine`` whose transactions serialize against other writers.

    On SQLite, where ``SELECT ... FOR UPDATE`` is not available, this is what
    keeps two postings from reading the same balance.
    """
    return engine.execution_options(**{SQLITE_BEGIN_OPTION: "IMMEDIATE"})


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory bound to ``engine``."""
    return sessionmaker(bind=engine)

"""
Database module for whitelist and user activity storage.

Uses SQLAlchemy for async database operations with SQLite by default.
"""

from datetime import datetime
from typing import List, Optional

import structlog
from sqlalchemy import Column, DateTime, Integer, String, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from relayer.config import RelayerConfig, get_config
from relayer.errors import WhitelistError
from relayer.state.webhook import EVENT_WHITELIST_ADD, EVENT_WHITELIST_REMOVE, WebhookNotifier
from relayer.state.whitelist import WhitelistInterface
from relayer.tx.encoding import is_address

logger = structlog.get_logger(__name__)

Base = declarative_base()

MIN_LABEL_LENGTH = 3


class WhitelistRecord(Base):
    """Database model for fee-exempt wallets."""

    __tablename__ = "whitelist"

    wallet_address = Column(String(62), primary_key=True)
    label = Column(String(200), nullable=False)
    whitelist_start = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "wallet_address": self.wallet_address,
            "label": self.label,
            "whitelist_start": self.whitelist_start.isoformat() if self.whitelist_start else None,
        }


class UserActivityRecord(Base):
    """Database model for served wallets; one row per request."""

    __tablename__ = "user_activity"

    id = Column(Integer, primary_key=True, autoincrement=True)
    wallet_address = Column(String(62), nullable=False, index=True)
    authorized_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "wallet_address": self.wallet_address,
            "authorized_at": self.authorized_at.isoformat() if self.authorized_at else None,
        }


class Database(WhitelistInterface):
    """
    Async database interface for the whitelist and user activity log.

    Whitelist changes are announced through the optional webhook notifier
    once committed.
    """

    def __init__(
        self,
        config: Optional[RelayerConfig] = None,
        notifier: Optional[WebhookNotifier] = None,
    ):
        """
        Initialize database connection.

        Args:
            config: Relayer configuration
            notifier: Webhook notifier for whitelist changes
        """
        self.config = config or get_config()
        self.notifier = notifier
        self._engine = None
        self._session_factory = None

    async def connect(self) -> None:
        """Initialize database connection and create tables."""
        self._engine = create_async_engine(
            self.config.database_url,
            echo=False,
        )

        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("database_connected", url=self.config.database_url.split("///")[0])

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("database_disconnected")

    def _get_session(self) -> AsyncSession:
        """Get a new database session."""
        if not self._session_factory:
            raise RuntimeError("Database not connected")
        return self._session_factory()

    # Whitelist operations

    async def add_to_whitelist(
        self,
        wallet_address: str,
        label: str,
        whitelist_start: Optional[datetime] = None,
    ) -> WhitelistRecord:
        """
        Add a wallet to the whitelist.

        Raises:
            WhitelistError: If the entry is invalid or already present
        """
        if not is_address(wallet_address):
            raise WhitelistError(f"Invalid wallet address: {wallet_address!r}", address=wallet_address)
        if not label or len(label) < MIN_LABEL_LENGTH:
            raise WhitelistError(
                f"Label must be at least {MIN_LABEL_LENGTH} characters",
                address=wallet_address,
            )

        async with self._get_session() as session:
            if await session.get(WhitelistRecord, wallet_address):
                raise WhitelistError(
                    f"Wallet {wallet_address} is already whitelisted",
                    address=wallet_address,
                )

            record = WhitelistRecord(
                wallet_address=wallet_address,
                label=label,
                whitelist_start=whitelist_start,
            )
            session.add(record)
            await session.commit()

        logger.info("whitelist_added", address=wallet_address, label=label)
        if self.notifier:
            await self.notifier.send(EVENT_WHITELIST_ADD, record.to_dict())
        return record

    async def remove_from_whitelist(self, wallet_address: str) -> None:
        """
        Remove a wallet from the whitelist.

        Raises:
            WhitelistError: If the wallet is not whitelisted
        """
        async with self._get_session() as session:
            record = await session.get(WhitelistRecord, wallet_address)
            if not record:
                raise WhitelistError(
                    f"Wallet {wallet_address} is not in the whitelist",
                    address=wallet_address,
                )
            await session.delete(record)
            await session.commit()

        logger.info("whitelist_removed", address=wallet_address)
        if self.notifier:
            await self.notifier.send(EVENT_WHITELIST_REMOVE, {"wallet_address": wallet_address})

    async def load_whitelist(self) -> List[WhitelistRecord]:
        """Load all whitelist entries, oldest first."""
        async with self._get_session() as session:
            result = await session.execute(
                select(WhitelistRecord).order_by(WhitelistRecord.created_at)
            )
            return list(result.scalars().all())

    async def is_whitelisted(self, address: str) -> bool:
        async with self._get_session() as session:
            return await session.get(WhitelistRecord, address) is not None

    # User activity operations

    async def record_activity(self, address: str) -> None:
        async with self._get_session() as session:
            session.add(UserActivityRecord(wallet_address=address))
            await session.commit()
        logger.debug("user_activity_recorded", address=address)

    async def load_user_activity(self, address: Optional[str] = None) -> List[UserActivityRecord]:
        """Load activity entries, optionally for one wallet, oldest first."""
        async with self._get_session() as session:
            query = select(UserActivityRecord)
            if address:
                query = query.where(UserActivityRecord.wallet_address == address)
            result = await session.execute(query.order_by(UserActivityRecord.id))
            return list(result.scalars().all())


async def init_database(
    config: Optional[RelayerConfig] = None,
    notifier: Optional[WebhookNotifier] = None,
) -> Database:
    """
    Initialize and connect to the database.

    Args:
        config: Relayer configuration
        notifier: Webhook notifier for whitelist changes

    Returns:
        Connected Database instance
    """
    db = Database(config, notifier=notifier)
    await db.connect()
    return db

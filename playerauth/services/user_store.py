"""
User record store.

One record per email. ``insert`` checks for an existing email before
writing and raises ``DuplicateUserError`` when one is found. ``replace`` is
a delete followed by an insert; the two steps are not atomic, so a reader
running between them sees no record for that email.
"""
import abc

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from playerauth.errors import DuplicateUserError
from playerauth.logging_config import get_logger
from playerauth.models.user import UserAccount
from playerauth.routes.metrics import track_store_conflict
from playerauth.schemas import IdentityHash, UserRecord

log = get_logger(component="user_store")


class UserStore(abc.ABC):
    """Keyed persistence for user records."""

    @abc.abstractmethod
    async def find_by_email(self, email: str) -> UserRecord | None:
        """Return the record for this email, or None."""

    @abc.abstractmethod
    async def find_by_identity_hash(self, identity_hash: IdentityHash) -> UserRecord | None:
        """Return the record holding this identity hash, or None."""

    @abc.abstractmethod
    async def list_all(self) -> list[UserRecord]:
        """Return every stored record."""

    @abc.abstractmethod
    async def _insert(self, record: UserRecord) -> None:
        ...

    @abc.abstractmethod
    async def _delete(self, email: str) -> int:
        ...

    async def insert(self, record: UserRecord) -> None:
        """
        Store a new record.

        Raises:
            DuplicateUserError: a record for ``record.profile.email`` exists
        """
        email = record.profile.email
        if await self.find_by_email(email) is not None:
            track_store_conflict()
            log.info("user_insert_rejected", email=email, reason="duplicate_email")
            raise DuplicateUserError(email)

        await self._insert(record)
        log.info("user_inserted", email=email)

    async def delete(self, email: str) -> int:
        """
        Delete the record for this email.

        Returns:
            Number of removed records (0 or 1)
        """
        removed = await self._delete(email)
        if removed:
            log.info("user_deleted", email=email)
        else:
            log.info("user_delete_missed", email=email)
        return removed

    async def replace(self, record: UserRecord) -> None:
        """Delete any record for this email, then insert ``record``."""
        await self.delete(record.profile.email)
        await self.insert(record)


class InMemoryUserStore(UserStore):
    """
    Process-local store backed by a list and an email index.

    Records are copied on the way in and out so callers cannot mutate
    stored progress state.
    """

    def __init__(self, records: list[UserRecord] | None = None):
        self._records: list[UserRecord] = []
        self._by_email: dict[str, int] = {}
        for record in records or []:
            self._append(record)

    def __len__(self):
        return len(self._records)

    def _append(self, record: UserRecord) -> None:
        self._by_email[record.profile.email] = len(self._records)
        self._records.append(record.model_copy(deep=True))

    async def find_by_email(self, email: str) -> UserRecord | None:
        index = self._by_email.get(email)
        if index is None:
            return None
        return self._records[index].model_copy(deep=True)

    async def find_by_identity_hash(self, identity_hash: IdentityHash) -> UserRecord | None:
        for record in self._records:
            if record.identity_hash == identity_hash:
                return record.model_copy(deep=True)
        return None

    async def list_all(self) -> list[UserRecord]:
        return [record.model_copy(deep=True) for record in self._records]

    async def _insert(self, record: UserRecord) -> None:
        self._append(record)

    async def _delete(self, email: str) -> int:
        index = self._by_email.pop(email, None)
        if index is None:
            return 0
        del self._records[index]
        self._by_email = {r.profile.email: i for i, r in enumerate(self._records)}
        return 1


class SqlUserStore(UserStore):
    """Store backed by the ``user_accounts`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_email(self, email: str) -> UserRecord | None:
        stmt = select(UserAccount).where(UserAccount.email == email)
        result = await self.db.execute(stmt)
        account = result.scalar_one_or_none()
        return account.to_record() if account else None

    async def find_by_identity_hash(self, identity_hash: IdentityHash) -> UserRecord | None:
        stmt = select(UserAccount).where(UserAccount.identity_hash == identity_hash).limit(1)
        result = await self.db.execute(stmt)
        account = result.scalars().first()
        return account.to_record() if account else None

    async def list_all(self) -> list[UserRecord]:
        stmt = select(UserAccount).order_by(UserAccount.created_at, UserAccount.email)
        result = await self.db.execute(stmt)
        return [account.to_record() for account in result.scalars().all()]

    async def _insert(self, record: UserRecord) -> None:
        self.db.add(UserAccount.from_record(record))
        try:
            await self.db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent insert for the same email
            await self.db.rollback()
            track_store_conflict()
            raise DuplicateUserError(record.profile.email) from e

    async def _delete(self, email: str) -> int:
        stmt = delete(UserAccount).where(UserAccount.email == email)
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount or 0

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime

from peewee import (
    AutoField,
    BooleanField,
    CharField,
    DateTimeField,
    DoesNotExist,
    IntegrityError,
    Model,
    SqliteDatabase,
    TextField,
)
from structlog import get_logger
from werkzeug.security import check_password_hash, generate_password_hash

from src import config
from src.consumer import Consumer, ConsumerBuilder, SignatureMethod
from src.errors import ConsumerAlreadyExists, ConsumerNotFound

logger = get_logger(__name__)


# Register datetime adapter and converter for SQLite
# This ensures datetime objects are properly serialized/deserialized
def _adapt_datetime(dt: datetime) -> str:
    """Convert datetime to ISO format string for SQLite storage."""
    return dt.isoformat()


def _convert_datetime(val: bytes | str) -> datetime:
    """Convert ISO format string back to datetime."""
    if isinstance(val, bytes):
        val = val.decode("utf-8")
    if "+" in val or val.endswith("Z"):
        if val.endswith("Z"):
            val = val[:-1] + "+00:00"
        return datetime.fromisoformat(val)
    return datetime.fromisoformat(val).replace(tzinfo=UTC)


sqlite3.register_adapter(datetime, _adapt_datetime)
sqlite3.register_converter("datetime", _convert_datetime)
sqlite3.register_converter("DATETIME", _convert_datetime)
sqlite3.register_converter("timestamp", _convert_datetime)
sqlite3.register_converter("TIMESTAMP", _convert_datetime)

db = SqliteDatabase(
    config.DATABASE_PATH,
    pragmas={
        "journal_mode": "wal",
        "foreign_keys": 1,
    },
    detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
)


class BaseModel(Model):
    id: int
    DoesNotExist: type[DoesNotExist]
    created_at: datetime

    id = AutoField(primary_key=True)
    created_at = DateTimeField(default=lambda: datetime.now(tz=UTC))

    class Meta:
        database = db


class User(BaseModel):
    username: str
    password_hash: str
    is_admin: bool

    username = CharField(unique=True)
    password_hash = CharField()
    is_admin = BooleanField(default=False)

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)


class ConsumerRecord(BaseModel):
    key: str
    name: str
    secret: str | None
    callback: str | None
    signature_method: str

    key = CharField(unique=True)
    name = CharField()
    secret = CharField(null=True)
    callback = TextField(null=True)
    signature_method = CharField(default=SignatureMethod.HMAC_SHA1.value)

    class Meta:
        table_name = "consumer"

    def to_consumer(self) -> Consumer:
        return (
            ConsumerBuilder(self.key)
            .name(self.name)
            .secret(self.secret)
            .callback(self.callback)
            .signature_method(SignatureMethod(self.signature_method))
            .build()
        )


class ConsumerStore:
    """Consumer persistence keyed by consumer key.

    ``add`` is an insert-if-absent: the unique key column decides races
    between concurrent registrations of the same key.
    """

    def lookup(self, key: str) -> Consumer | None:
        try:
            return ConsumerRecord.get(ConsumerRecord.key == key).to_consumer()
        except ConsumerRecord.DoesNotExist:
            return None

    def all(self) -> list[Consumer]:
        query = ConsumerRecord.select().order_by(ConsumerRecord.created_at, ConsumerRecord.id)
        return [record.to_consumer() for record in query]

    def count(self) -> int:
        return ConsumerRecord.select().count()

    def add(self, consumer: Consumer) -> None:
        if not isinstance(consumer, Consumer):
            raise TypeError(f"Only validated consumers can be stored, got {consumer!r}")
        try:
            with db.atomic():
                ConsumerRecord.create(
                    key=consumer.key,
                    name=consumer.name,
                    secret=consumer.secret,
                    callback=consumer.callback,
                    signature_method=consumer.signature_method.value,
                )
        except IntegrityError as e:
            raise ConsumerAlreadyExists(consumer.key) from e
        logger.info("consumer_added", key=consumer.key)

    def update(self, consumer: Consumer) -> None:
        if not isinstance(consumer, Consumer):
            raise TypeError(f"Only validated consumers can be stored, got {consumer!r}")
        updated = (
            ConsumerRecord.update(
                name=consumer.name,
                secret=consumer.secret,
                callback=consumer.callback,
                signature_method=consumer.signature_method.value,
            )
            .where(ConsumerRecord.key == consumer.key)
            .execute()
        )
        if not updated:
            raise ConsumerNotFound(consumer.key)
        logger.info("consumer_updated", key=consumer.key)

    def delete(self, key: str) -> None:
        deleted = ConsumerRecord.delete().where(ConsumerRecord.key == key).execute()
        if not deleted:
            raise ConsumerNotFound(key)
        logger.info("consumer_deleted", key=key)


def init_db() -> None:
    db.connect(reuse_if_open=True)
    db.create_tables([User, ConsumerRecord])


def create_test_data() -> None:
    """Create the administrator and a demo consumer for development."""
    init_db()

    try:
        User.get(User.username == config.ADMIN_USERNAME)
    except User.DoesNotExist:
        user = User(username=config.ADMIN_USERNAME, is_admin=True)
        user.set_password(config.ADMIN_PASSWORD)
        user.save()

    if not config.TEST_CONSUMER_KEY:
        return
    store = ConsumerStore()
    if store.lookup(config.TEST_CONSUMER_KEY) is None:
        store.add(
            ConsumerBuilder(config.TEST_CONSUMER_KEY)
            .name(config.TEST_CONSUMER_NAME)
            .secret(config.TEST_CONSUMER_SECRET)
            .callback(config.TEST_CONSUMER_CALLBACK or None)
            .signature_method(SignatureMethod.HMAC_SHA1)
            .build()
        )

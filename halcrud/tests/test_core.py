import pytest
from bson import ObjectId


class FakeAdmin:
    def __init__(self, fail: bool):
        self.fail = fail

    async def command(self, name):
        if self.fail:
            raise ConnectionError("no server")
        return {"ok": 1}


class FakeDatabase:
    def __init__(self, name):
        self.name = name

    def __getitem__(self, name):
        return (self.name, name)


class FakeMotorClient:
    instances = []

    def __init__(self, url, fail=False, **options):
        self.url = url
        self.options = options
        self.admin = FakeAdmin(fail)
        self.closed = False
        FakeMotorClient.instances.append(self)

    def close(self):
        self.closed = True

    def __getitem__(self, name):
        return FakeDatabase(name)


@pytest.fixture
def db(monkeypatch):
    from ..core import db

    FakeMotorClient.instances = []
    monkeypatch.setattr(db, "AsyncIOMotorClient", FakeMotorClient)
    monkeypatch.setattr(db, "_client", None)
    return db


def test_settings_defaults(monkeypatch):
    from ..core import settings

    for name in ("MONGODB_URL", "MONGODB_DATABASE", "PORT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    assert settings.mongodb_url() == "mongodb://localhost:27017"
    assert settings.mongodb_database() == "halcrud"
    assert settings.server_port() == 8000
    assert settings.log_level() == "INFO"


def test_settings_from_environment(monkeypatch):
    from ..core import settings

    monkeypatch.setenv("MONGODB_URL", " mongodb://db:27017 ")
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MIN", "not-a-number")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    assert settings.mongodb_url() == "mongodb://db:27017"
    assert settings.server_port() == 9000
    assert settings.access_token_expire_minutes() == 15
    assert settings.log_level() == "DEBUG"


def test_client_requires_init(db):
    with pytest.raises(db.DatabaseError):
        db.client()


async def test_init_and_close(db, monkeypatch):
    monkeypatch.setenv("MONGODB_DATABASE", "people_db")
    monkeypatch.delenv("MONGODB_TIMEOUT_MS", raising=False)

    client = await db.init_client("mongodb://example:27017")
    again = await db.init_client()

    assert client is again
    assert len(FakeMotorClient.instances) == 1
    assert client.options["serverSelectionTimeoutMS"] == 5000
    assert db.database().name == "people_db"
    assert db.collection("people") == ("people_db", "people")
    assert db.collection("people", database_name="other") == ("other", "people")

    await db.close_client()
    assert client.closed
    with pytest.raises(db.DatabaseError):
        db.client()


async def test_failed_ping_closes_client(db):
    with pytest.raises(ConnectionError):
        await db.init_client("mongodb://example:27017", fail=True)

    assert FakeMotorClient.instances[0].closed
    with pytest.raises(db.DatabaseError):
        db.client()


def test_server_lifespan_opens_and_closes_client(db):
    from fastapi.testclient import TestClient

    from ..server import ApiServer

    server = ApiServer(auth=False)
    with TestClient(server.app) as client:
        assert client.get("/health").status_code == 200
        assert db.client() is FakeMotorClient.instances[0]

    assert FakeMotorClient.instances[0].closed


@pytest.mark.parametrize(
    "value, expected_type",
    [
        ("65a1b2c3d4e5f60718293a4b", ObjectId),
        ("not-an-id", str),
        ("", str),
    ],
)
def test_to_identity(value, expected_type):
    from ..crud.identity import render_id, to_identity

    identity = to_identity(value)
    assert isinstance(identity, expected_type)
    assert render_id(identity) == value


def test_uuid_helpers():
    from ..core.ids import is_uuid, new_uuid

    assert is_uuid(new_uuid())
    assert not is_uuid("nope")

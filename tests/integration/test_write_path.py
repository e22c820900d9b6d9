"""Integration tests for the encrypted write and read paths."""

import pytest

from solchap.events.catalog import DetailType, EventSource
from solchap.events.notifier import Notification
from solchap.handlers.utils.errors import AlreadyExistsError, EncryptionFailedError, ResourceNotFoundError
from solchap.logic.read_path import RecordReader
from solchap.logic.write_path import RecordWriter
from solchap.models.record import Record
from tests.fakes import ENCRYPTION_FUNCTION, FakeLambdaClient


@pytest.fixture
def clients(make_env, make_clients):
    return make_clients(make_env())


@pytest.fixture
def writer(clients) -> RecordWriter:
    return RecordWriter(clients.store(), clients.gateway(), clients.notifier(EventSource.CARDS))


def _build(sealed, ts):
    return Record(f"THING#{sealed['id']}", "META", {"name": sealed["name"], "createdAt": ts})


def _announce(sealed, item):
    return Notification("CREATE", DetailType.CARD_CREATED, {"id": sealed["id"], "createdAt": item["createdAt"]})


class TestRecordWriter:
    def test_create_encrypts_stores_and_notifies(self, writer, aws, cipher):
        result = writer.create({"id": "t1", "name": "Thing"}, _build, _announce)

        [item] = aws.items()
        assert item["PK"] == f"THING#{cipher.encrypt('t1')}"
        assert item["name"] == cipher.encrypt("Thing")
        assert result.fan_out.failures == []

        [message] = aws.queue_messages()
        assert message == {"action": "CREATE", "id": cipher.encrypt("t1"), "createdAt": result.timestamp}
        assert len(aws.events.entries) == 1

    def test_encryption_failure_writes_nothing(self, make_env, make_clients, aws, lambda_context):
        clients = make_clients(make_env(), FakeLambdaClient(lambda_context, fail_on=ENCRYPTION_FUNCTION))
        writer = RecordWriter(clients.store(), clients.gateway(), clients.notifier(EventSource.CARDS))

        with pytest.raises(EncryptionFailedError):
            writer.create({"id": "t1", "name": "Thing"}, _build, _announce)

        assert aws.items() == []
        assert aws.queue_messages() == []
        assert aws.events.entries == []

    def test_conflict_is_already_exists_and_not_announced(self, writer, aws):
        writer.create({"id": "t1", "name": "Thing"}, _build, _announce, if_absent=True)

        with pytest.raises(AlreadyExistsError, match="Thing exists"):
            writer.create({"id": "t1", "name": "Other"}, _build, _announce, if_absent=True,
                          conflict_message="Thing exists")

        assert len(aws.events.entries) == 1

    def test_update_only_touches_present_fields(self, writer, aws, cipher):
        writer.create({"id": "t1", "name": "Thing"}, _build)
        key = {"PK": f"THING#{cipher.encrypt('t1')}", "SK": "META"}

        result = writer.update(key, {"name": None, "notes": "hello"}, plain={"status": "DONE"})

        assert result.item["name"] == cipher.encrypt("Thing")
        assert result.item["notes"] == cipher.encrypt("hello")
        assert result.item["status"] == "DONE"
        assert "updatedAt" in result.item

    def test_update_missing_item_is_not_found(self, writer, aws):
        with pytest.raises(ResourceNotFoundError):
            writer.update({"PK": "THING#none", "SK": "META"}, {"name": "x"}, resource_type="Thing")
        assert aws.items() == []


class TestRecordReader:
    def test_open_all_skips_undecryptable_records(self, clients, cipher):
        reader = RecordReader(clients.gateway())
        items = [
            {"PK": "a", "name": cipher.encrypt("one")},
            {"PK": "b", "name": "not-a-ciphertext"},
            {"PK": "c", "name": cipher.encrypt("three")},
        ]

        opened = reader.open_all(items, ("name",))

        assert [item["name"] for item in opened] == ["one", "three"]

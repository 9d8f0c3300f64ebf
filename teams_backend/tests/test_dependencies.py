import unittest
from unittest.mock import patch

from pymongo.errors import ServerSelectionTimeoutError

from teams_backend.config import Settings
from teams_backend.db import InMemoryDocumentStore, MongoDocumentStore
from teams_backend.dependencies import connect_backends
from teams_backend.errors import StoreError
from teams_backend.storage import GridFsMediaStore, InMemoryMediaStore


class ConnectBackendsTests(unittest.TestCase):
    def test_default_settings_target_local_mongo(self):
        settings = Settings(_env_file=None, use_in_memory_backends=False)
        self.assertTrue(Settings.model_fields["mongo_url"].default.startswith("mongodb://"))
        with patch.object(MongoDocumentStore, "ping") as ping:
            backends = connect_backends(settings)
        self.addCleanup(backends.close)
        ping.assert_called_once()
        self.assertIsInstance(backends.documents, MongoDocumentStore)
        self.assertIsInstance(backends.media, GridFsMediaStore)
        self.assertEqual(backends.media.bucket_name, settings.media_bucket)

    def test_unreachable_mongo_exits_process(self):
        settings = Settings(_env_file=None, use_in_memory_backends=False)
        failure = StoreError(
            "connecting to the document store", ServerSelectionTimeoutError("no servers")
        )
        with patch.object(MongoDocumentStore, "ping", side_effect=failure):
            with self.assertLogs("teams_backend.dependencies", level="ERROR"):
                with self.assertRaises(SystemExit) as ctx:
                    connect_backends(settings)
        self.assertEqual(ctx.exception.code, 1)

    def test_in_memory_only_when_requested(self):
        backends = connect_backends(
            Settings(_env_file=None, use_in_memory_backends=True, media_chunk_size=16)
        )
        self.assertIsInstance(backends.documents, InMemoryDocumentStore)
        self.assertIsInstance(backends.media, InMemoryMediaStore)
        self.assertEqual(backends.media.chunk_size, 16)


if __name__ == "__main__":
    unittest.main()

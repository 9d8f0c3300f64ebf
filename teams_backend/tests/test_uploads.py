import io
import unittest

from starlette.datastructures import Headers, UploadFile

from teams_backend.storage import InMemoryMediaStore
from teams_backend.uploads import generate_filename, store_upload


class GenerateFilenameTests(unittest.TestCase):
    def test_prefixes_epoch_millis_and_token(self):
        filename = generate_filename("photo.jpg", now=1700000000.123)
        millis, token, name = filename.split("_", 2)
        self.assertEqual(millis, "1700000000123")
        self.assertEqual(len(token), 8)
        self.assertEqual(name, "photo.jpg")

    def test_same_name_same_millisecond_differs(self):
        names = {generate_filename("a.png", now=1.0) for _ in range(50)}
        self.assertEqual(len(names), 50)

    def test_strips_client_paths(self):
        self.assertTrue(generate_filename("C:\\Users\\me\\me.png").endswith("_me.png"))
        self.assertTrue(generate_filename("../../etc/passwd").endswith("_passwd"))

    def test_empty_name(self):
        self.assertTrue(generate_filename("").endswith("_upload"))
        self.assertTrue(generate_filename(None).endswith("_upload"))


class StoreUploadTests(unittest.TestCase):
    def test_store_upload_writes_content_and_metadata(self):
        media = InMemoryMediaStore(chunk_size=4)
        upload = UploadFile(
            file=io.BytesIO(b"0123456789"),
            filename="team.png",
            headers=Headers({"content-type": "image/png"}),
        )
        filename = store_upload(media, upload, bucket="photos")

        stored = media.stat(filename)
        self.assertEqual(stored.content_type, "image/png")
        self.assertEqual(stored.length, 10)
        self.assertEqual(
            stored.metadata,
            {"mimetype": "image/png", "originalname": "team.png", "bucket": "photos"},
        )
        self.assertEqual(b"".join(media.iter_chunks(filename)), b"0123456789")


if __name__ == "__main__":
    unittest.main()

import re
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

from botocore.exceptions import ClientError, ReadTimeoutError

from tubely.common.errors import OperationTimedOut, SigningFailed, UploadFailed
from tubely.common.schemas import Orientation
from tubely.common.storage_helper import ObjectStore, new_storage_key

KEY_PATTERN = re.compile(r"^(landscape|portrait|other)/[A-Za-z0-9_-]{43}$")


def client_error(code, status, operation="PutObject"):
    return ClientError(
        {"Error": {"Code": code, "Message": code}, "ResponseMetadata": {"HTTPStatusCode": status}},
        operation,
    )


class TestStorageKey(unittest.TestCase):
    def test_key_format(self):
        for orientation in Orientation:
            key = new_storage_key(orientation)
            self.assertRegex(key, KEY_PATTERN)
            self.assertTrue(key.startswith(orientation.value + "/"))
            self.assertNotIn(".", key)

    def test_keys_are_unique(self):
        keys = {new_storage_key(Orientation.LANDSCAPE) for _ in range(200)}
        self.assertEqual(len(keys), 200)


class TestObjectStore(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock()
        self.store = ObjectStore(self.client)
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.source = Path(tmp.name) / "upload.mp4.processing"
        self.source.write_bytes(b"faststart-bytes")

    def test_upload_sets_content_type(self):
        uploaded = {}

        def put_object(**kwargs):
            uploaded.update(kwargs, Body=kwargs["Body"].read())

        self.client.put_object.side_effect = put_object
        self.store.upload_file(self.source, "tubely", "landscape/abc", "video/mp4")

        self.assertEqual(uploaded["Bucket"], "tubely")
        self.assertEqual(uploaded["Key"], "landscape/abc")
        self.assertEqual(uploaded["ContentType"], "video/mp4")
        self.assertEqual(uploaded["Body"], b"faststart-bytes")

    def test_upload_client_error(self):
        self.client.put_object.side_effect = client_error("AccessDenied", 403)
        with self.assertRaises(UploadFailed):
            self.store.upload_file(self.source, "tubely", "landscape/abc", "video/mp4")

    def test_upload_timeout(self):
        self.client.put_object.side_effect = ReadTimeoutError(endpoint_url="https://s3.amazonaws.com")
        with self.assertRaises(OperationTimedOut):
            self.store.upload_file(self.source, "tubely", "landscape/abc", "video/mp4")

    def test_upload_missing_source(self):
        with self.assertRaises(UploadFailed):
            self.store.upload_file(self.source.with_name("gone"), "tubely", "landscape/abc", "video/mp4")
        self.client.put_object.assert_not_called()

    def test_presign_get(self):
        self.client.generate_presigned_url.return_value = "https://signed"
        self.assertEqual(self.store.presign_get("tubely", "other/abc", 900), "https://signed")
        self.client.generate_presigned_url.assert_called_once_with(
            ClientMethod="get_object",
            Params={"Bucket": "tubely", "Key": "other/abc"},
            ExpiresIn=900,
        )

    def test_presign_failure(self):
        self.client.generate_presigned_url.side_effect = client_error("InvalidAccessKeyId", 403)
        with self.assertRaises(SigningFailed):
            self.store.presign_get("tubely", "other/abc", 900)

    def test_presign_without_bucket(self):
        with self.assertRaises(SigningFailed):
            self.store.presign_get("", "landscape/abc", 900)
        self.client.generate_presigned_url.assert_not_called()

    def test_object_exists(self):
        self.assertTrue(self.store.object_exists("tubely", "metadata/videos/a.json"))
        self.client.head_object.side_effect = client_error("404", 404, "HeadObject")
        self.assertFalse(self.store.object_exists("tubely", "metadata/videos/a.json"))

    def test_object_exists_propagates_other_errors(self):
        self.client.head_object.side_effect = client_error("403", 403, "HeadObject")
        with self.assertRaises(ClientError):
            self.store.object_exists("tubely", "metadata/videos/a.json")

    def test_list_keys(self):
        paginator = MagicMock()
        paginator.paginate.return_value = [
            {"Contents": [{"Key": "metadata/videos/a.json"}, {"Key": "metadata/videos/b.json"}]},
            {},
        ]
        self.client.get_paginator.return_value = paginator
        keys = list(self.store.list_keys("tubely", "metadata/videos/"))
        self.assertEqual(keys, ["metadata/videos/a.json", "metadata/videos/b.json"])


if __name__ == "__main__":
    unittest.main()

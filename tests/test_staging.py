import io
import unittest

from tubely.common.errors import StagingFailed, UploadTooLarge
from tubely.common.staging import stage_upload, upload_workspace


class BrokenStream(io.RawIOBase):
    def read(self, size=-1):
        raise OSError("connection reset by peer")


class TestStaging(unittest.TestCase):
    def test_staged_file_is_complete_and_rewound(self):
        payload = b"\x00\x00\x00\x18ftypmp42" + b"x" * 5000
        with upload_workspace() as workdir:
            with stage_upload(io.BytesIO(payload), workdir, max_bytes=1 << 20) as staged:
                self.assertEqual(staged.tell(), 0)
                self.assertEqual(staged.read(), payload)
                self.assertTrue(staged.name.startswith(str(workdir)))

    def test_workspace_removed_on_success(self):
        with upload_workspace() as workdir:
            stage_upload(io.BytesIO(b"abc"), workdir, max_bytes=10).close()
            self.assertTrue(workdir.exists())
        self.assertFalse(workdir.exists())

    def test_workspace_removed_when_body_too_large(self):
        with self.assertRaises(UploadTooLarge):
            with upload_workspace() as workdir:
                stage_upload(io.BytesIO(b"a" * 11), workdir, max_bytes=10)
        self.assertFalse(workdir.exists())

    def test_body_at_the_limit_is_accepted(self):
        with upload_workspace() as workdir:
            with stage_upload(io.BytesIO(b"a" * 10), workdir, max_bytes=10) as staged:
                self.assertEqual(len(staged.read()), 10)

    def test_read_failure_is_staging_failure(self):
        with self.assertRaises(StagingFailed) as ctx:
            with upload_workspace() as workdir:
                stage_upload(BrokenStream(), workdir, max_bytes=10)
        self.assertIsInstance(ctx.exception.__cause__, OSError)
        self.assertFalse(workdir.exists())


if __name__ == "__main__":
    unittest.main()

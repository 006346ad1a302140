import json
import unittest
import uuid
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from tubely.functions.get_video import handler as get_video_handler
from tubely.functions.upload_video import handler as upload_video_handler


def event(body=b"", **headers):
    return SimpleNamespace(body=body, headers=headers)


class TestUploadVideoHandler(unittest.TestCase):
    @patch("tubely.functions.upload_video.handler.get_service")
    def test_builds_request_from_headers(self, mock_get_service):
        service = MagicMock()
        service.handle.return_value = (200, {"id": "x"})
        mock_get_service.return_value = service
        video_id, user_id = uuid.uuid4(), uuid.uuid4()

        result = upload_video_handler.handle(
            event(b"mp4-bytes", **{"x-video-id": str(video_id), "X-User-ID": str(user_id), "content-type": "video/mp4"}),
            {},
        )

        self.assertEqual(result["statusCode"], 200)
        self.assertEqual(json.loads(result["body"]), {"id": "x"})
        request = service.handle.call_args.args[0]
        self.assertEqual(request.video_id, video_id)
        self.assertEqual(request.user_id, user_id)
        self.assertEqual(request.content_type, "video/mp4")
        self.assertEqual(request.stream.read(), b"mp4-bytes")

    @patch("tubely.functions.upload_video.handler.get_service")
    def test_invalid_id(self, mock_get_service):
        result = upload_video_handler.handle(event(b"", **{"X-Video-ID": "nope", "X-User-ID": str(uuid.uuid4())}), {})
        self.assertEqual(result["statusCode"], 400)
        self.assertEqual(json.loads(result["body"])["message"], "Invalid ID")
        mock_get_service.assert_not_called()


class TestGetVideoHandler(unittest.TestCase):
    @patch("tubely.functions.get_video.handler.get_service")
    def test_get_by_id(self, mock_get_service):
        service = MagicMock()
        service.handle.return_value = (200, {"video_url": "https://signed"})
        mock_get_service.return_value = service
        video_id = uuid.uuid4()

        result = get_video_handler.handle(event(**{"X-Video-ID": str(video_id)}), {})

        self.assertEqual(result["statusCode"], 200)
        service.handle.assert_called_once_with(video_id, None)

    @patch("tubely.functions.get_video.handler.get_service")
    def test_invalid_id(self, mock_get_service):
        result = get_video_handler.handle(event(**{"X-User-ID": "123"}), {})
        self.assertEqual(result["statusCode"], 400)
        mock_get_service.assert_not_called()


if __name__ == "__main__":
    unittest.main()

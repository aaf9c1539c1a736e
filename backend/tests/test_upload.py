import os
import unittest
from unittest import mock

import httpx
from fastapi.testclient import TestClient

from backend.app.main import app, get_http_client, get_publisher


class FakePublisher:
    def __init__(self, response=None, error: Exception | None = None):
        self.response = response if response is not None else {}
        self.error = error
        self.requests = []

    async def upload(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response


class TestUploadFlow(unittest.TestCase):
    def setUp(self):
        self.fetched = []
        self.publisher = FakePublisher()

        def handler(request: httpx.Request) -> httpx.Response:
            self.fetched.append(str(request.url))
            if request.url.path == "/missing.mp4":
                return httpx.Response(404)
            return httpx.Response(200, content=b"remote-video", headers={"content-type": "video/quicktime"})

        app.dependency_overrides[get_http_client] = lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler))
        app.dependency_overrides[get_publisher] = lambda: self.publisher
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides = {}

    def submit(self, files=None, **fields):
        data = {
            "videoSourceType": "file",
            "category": "tech",
            "language": "English",
            "monetization": "enabled",
            "schedule": "",
        }
        data.update(fields)
        return self.client.post("/api/upload", data=data, files=files)

    def test_file_upload_publishes_immediately(self):
        response = self.submit(files={"videoFile": ("a.mp4", b"0123456789", "video/mp4")})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertIsNone(body["scheduledAt"])
        self.assertEqual(body["status"], "public")
        self.assertIsNone(body["videoId"])
        self.assertTrue(body["title"])
        self.assertTrue(body["description"])
        for key in ["tags", "hashtags", "keywordPhrases"]:
            with self.subTest(key=key):
                self.assertIsInstance(body[key], list)
        self.assertEqual(body["category"], "tech")
        self.assertEqual(body["monetization"], "enabled")

        request = self.publisher.requests[0]
        self.assertEqual(request.payload, b"0123456789")
        self.assertEqual(request.file_name, "a.mp4")
        self.assertEqual(request.privacy_status, "public")
        self.assertIsNone(request.publish_at)
        self.assertEqual(self.fetched, [])

    def test_scheduled_upload_is_private_until_publish_time(self):
        response = self.submit(
            files={"videoFile": ("a.mp4", b"0123456789", "video/mp4")}, schedule="2026-11-01T10:30"
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["scheduledAt"], "2026-11-01T10:30:00.000Z")
        self.assertEqual(response.json()["status"], "private")
        self.assertEqual(self.publisher.requests[0].publish_at, "2026-11-01T10:30:00.000Z")

    def test_remote_status_and_id_take_precedence(self):
        self.publisher.response = {"id": "yt123", "status": {"privacyStatus": "unlisted"}}

        response = self.submit(files={"videoFile": ("a.mp4", b"0123456789", "video/mp4")})

        self.assertEqual(response.json()["status"], "unlisted")
        self.assertEqual(response.json()["videoId"], "yt123")

    def test_link_upload_fetches_remote_video(self):
        response = self.submit(videoSourceType="link", videoLink="https://media.example.com/sunset")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.fetched, ["https://media.example.com/sunset"])
        self.assertEqual(self.publisher.requests[0].file_name, "sunset.mov")
        self.assertEqual(self.publisher.requests[0].payload, b"remote-video")

    def test_link_fetch_failure_skips_publish(self):
        response = self.submit(videoSourceType="link", videoLink="https://media.example.com/missing.mp4")

        self.assertEqual(response.status_code, 502)
        self.assertIn("Failed to download video from link", response.json()["error"])
        self.assertEqual(self.publisher.requests, [])

    def test_missing_file_is_reported(self):
        response = self.submit()

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Video file is required."})
        self.assertEqual(self.publisher.requests, [])

    def test_missing_link_is_reported(self):
        response = self.submit(videoSourceType="link")

        self.assertEqual(response.status_code, 500)
        self.assertIn("Video link is required", response.json()["error"])

    def test_invalid_language_returns_issues(self):
        response = self.submit(files={"videoFile": ("a.mp4", b"0123456789", "video/mp4")}, language="E")

        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body["error"], "Invalid form input.")
        self.assertIn(["language"], [issue["path"] for issue in body["issues"]])
        self.assertEqual(self.publisher.requests, [])

    def test_size_limit_is_checked_after_transfer(self):
        with mock.patch.dict(os.environ, {"MAX_VIDEO_BYTES": "10"}):
            at_limit = self.submit(files={"videoFile": ("a.mp4", b"0" * 10, "video/mp4")})
            over_limit = self.submit(files={"videoFile": ("a.mp4", b"0" * 11, "video/mp4")})

        self.assertEqual(at_limit.status_code, 200)
        self.assertEqual(over_limit.status_code, 413)
        self.assertIn("upload limit", over_limit.json()["error"])
        self.assertEqual(len(self.publisher.requests), 1)

    def test_publish_rejection_is_reported(self):
        request = httpx.Request("PUT", "https://upload.example.com/resume")
        self.publisher.error = httpx.HTTPStatusError(
            "forbidden", request=request, response=httpx.Response(403, request=request)
        )

        response = self.submit(files={"videoFile": ("a.mp4", b"0123456789", "video/mp4")})

        self.assertEqual(response.status_code, 502)
        self.assertIn("403", response.json()["error"])

    def test_unexpected_failure_hides_details(self):
        self.publisher.error = ValueError("secret internal detail")

        response = self.submit(files={"videoFile": ("a.mp4", b"0123456789", "video/mp4")})

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Video upload failed."})


if __name__ == "__main__":
    unittest.main()

import base64
import unittest
from unittest.mock import MagicMock, patch

import requests

from postdesk.assets import (
    GitHubAssetStore,
    InMemoryAssetStore,
    git_blob_sha,
    normalize_base64,
)
from postdesk.errors import (
    AssetWriteFailed,
    NotFound,
    UpstreamFailure,
    ValidationError,
)

CONTENT = base64.b64encode(b"hello").decode()


def _response(status: int, payload=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.ok = status < 400
    response.reason = "Error" if status >= 400 else "OK"
    if payload is None:
        response.json.side_effect = ValueError("no body")
    else:
        response.json.return_value = payload
    return response


class GitHubAssetStoreTests(unittest.TestCase):
    def setUp(self):
        self.store = GitHubAssetStore(token="t0k3n", owner="sam", repo="media")
        patcher = patch.object(self.store._session, "request")
        self.request = patcher.start()
        self.addCleanup(patcher.stop)

    def test_auth_header_is_set(self):
        self.assertEqual(self.store._session.headers["Authorization"], "Bearer t0k3n")

    def test_put_new_file_creates_without_sha(self):
        self.request.side_effect = [_response(404), _response(201, {"content": {}})]

        outcome = self.store.put("videos/a-clip.mp4", CONTENT)

        self.assertTrue(outcome.ok)
        self.assertEqual(
            outcome.value,
            "https://raw.githubusercontent.com/sam/media/main/videos/a-clip.mp4",
        )
        method, url = self.request.call_args_list[1].args
        body = self.request.call_args_list[1].kwargs["json"]
        self.assertEqual(method, "PUT")
        self.assertEqual(
            url, "https://api.github.com/repos/sam/media/contents/videos/a-clip.mp4"
        )
        self.assertEqual(body["message"], "Upload videos/a-clip.mp4")
        self.assertEqual(body["content"], CONTENT)
        self.assertNotIn("sha", body)

    def test_put_existing_file_sends_sha(self):
        self.request.side_effect = [
            _response(
                200, {"name": "a-clip.mp4", "path": "videos/a-clip.mp4", "sha": "abc"}
            ),
            _response(200, {"content": {}}),
        ]

        outcome = self.store.put("videos/a-clip.mp4", CONTENT)

        self.assertTrue(outcome.ok)
        body = self.request.call_args_list[1].kwargs["json"]
        self.assertEqual(body["sha"], "abc")
        self.assertEqual(body["message"], "Update videos/a-clip.mp4")

    def test_rejected_put_is_a_failed_outcome(self):
        self.request.side_effect = [
            _response(404),
            _response(422, {"message": "File is too large"}),
        ]

        outcome = self.store.put("videos/a-clip.mp4", CONTENT)

        self.assertFalse(outcome.ok)
        self.assertIsInstance(outcome.error, AssetWriteFailed)
        self.assertIn("File is too large", outcome.error.message)
        with self.assertRaises(AssetWriteFailed):
            outcome.unwrap()

    def test_put_aborts_when_existing_file_cannot_be_read(self):
        self.request.side_effect = [_response(500, {"message": "Server Error"})]

        outcome = self.store.put("videos/a-clip.mp4", CONTENT)

        self.assertIsInstance(outcome.error, AssetWriteFailed)
        self.assertIn("Server Error", outcome.error.message)
        self.assertEqual(self.request.call_count, 1)

    def test_put_with_non_json_lookup_is_a_failed_outcome(self):
        self.request.side_effect = [_response(200)]

        outcome = self.store.put("videos/a-clip.mp4", CONTENT)

        self.assertIsInstance(outcome.error, AssetWriteFailed)
        self.assertEqual(self.request.call_count, 1)

    def test_put_connection_error_is_a_failed_outcome(self):
        self.request.side_effect = [_response(404), requests.ConnectionError("down")]
        outcome = self.store.put("videos/a-clip.mp4", CONTENT)
        self.assertIsInstance(outcome.error, AssetWriteFailed)

    def test_delete_missing_file_is_already_done(self):
        self.request.side_effect = [_response(404)]

        outcome = self.store.delete("videos/gone.mp4")

        self.assertTrue(outcome.ok)
        self.assertEqual(self.request.call_count, 1)

    def test_delete_existing_file_uses_sha(self):
        self.request.side_effect = [
            _response(200, {"name": "a.mp4", "path": "videos/a.mp4", "sha": "abc"}),
            _response(200, {"commit": {}}),
        ]

        outcome = self.store.delete("videos/a.mp4")

        self.assertTrue(outcome.ok)
        method = self.request.call_args_list[1].args[0]
        body = self.request.call_args_list[1].kwargs["json"]
        self.assertEqual(method, "DELETE")
        self.assertEqual(
            body, {"message": "Delete videos/a.mp4", "sha": "abc", "branch": "main"}
        )

    def test_failed_delete_does_not_raise(self):
        self.request.side_effect = [
            _response(200, {"name": "a.mp4", "path": "videos/a.mp4", "sha": "abc"}),
            _response(409, {"message": "sha does not match"}),
        ]

        outcome = self.store.delete("videos/a.mp4")

        self.assertFalse(outcome.ok)
        self.assertIn("sha does not match", outcome.error.message)

    def test_delete_when_existing_file_cannot_be_read(self):
        self.request.side_effect = [_response(500, {"message": "Server Error"})]

        outcome = self.store.delete("videos/a.mp4")

        self.assertIsInstance(outcome.error, UpstreamFailure)
        self.assertEqual(self.request.call_count, 1)

    def test_delete_with_html_lookup_does_not_raise(self):
        # e.g. a proxy answering 200 with an HTML page
        self.request.side_effect = [_response(200)]

        outcome = self.store.delete("videos/a.mp4")

        self.assertIsInstance(outcome.error, UpstreamFailure)
        self.assertEqual(self.request.call_count, 1)

    def test_stat_rejects_non_object_body(self):
        self.request.side_effect = [_response(200, "just a string")]
        self.assertIsInstance(self.store.stat("videos/a.mp4").error, UpstreamFailure)

    def test_list_folder(self):
        self.request.side_effect = [
            _response(
                200,
                [
                    {"name": "a.mp4", "path": "videos/a.mp4", "sha": "1", "size": 10},
                    {"name": "old", "path": "videos/old", "sha": "2", "type": "dir"},
                ],
            )
        ]

        outcome = self.store.list("videos")

        self.assertEqual(
            [entry.path for entry in outcome.value], ["videos/a.mp4", "videos/old"]
        )
        self.assertEqual(outcome.value[1].type, "dir")

    def test_list_missing_folder(self):
        self.request.side_effect = [_response(404)]
        self.assertIsInstance(self.store.list("nope").error, NotFound)


class InMemoryAssetStoreTests(unittest.TestCase):
    def test_put_stat_delete(self):
        store = InMemoryAssetStore()
        url = store.put("thumbnails/a-cover.jpg", CONTENT).unwrap()

        self.assertEqual(url, "https://example.test/assets/thumbnails/a-cover.jpg")
        entry = store.stat("thumbnails/a-cover.jpg").value
        self.assertEqual(entry.sha, git_blob_sha(b"hello"))
        self.assertEqual(entry.size, 5)
        self.assertEqual(
            [e.name for e in store.list("thumbnails").value], ["a-cover.jpg"]
        )

        self.assertTrue(store.delete("thumbnails/a-cover.jpg").ok)
        self.assertTrue(store.delete("thumbnails/a-cover.jpg").ok)
        self.assertIsNone(store.stat("thumbnails/a-cover.jpg").value)


class NormalizeBase64Tests(unittest.TestCase):
    def test_strips_data_url_prefix_and_whitespace(self):
        self.assertEqual(
            normalize_base64(f"data:image/png;base64,{CONTENT[:4]}\n{CONTENT[4:]}"),
            CONTENT,
        )

    def test_rejects_empty_or_invalid(self):
        for value in ("", "   ", "data:image/png;base64,", "%%%"):
            with self.subTest(value=value):
                with self.assertRaises(ValidationError):
                    normalize_base64(value)

    def test_git_blob_sha_matches_git(self):
        # `printf hello | git hash-object --stdin`
        self.assertEqual(
            git_blob_sha(b"hello"), "b6fc4c620b67d95f953a5c1c1230aaab5db5a1b0"
        )


if __name__ == "__main__":
    unittest.main()

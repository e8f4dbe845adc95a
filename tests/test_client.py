"""Tests for the completion API client."""
import json
import unittest

from requests.exceptions import ConnectionError as RequestsConnectionError

from finsight.config.manager import ApiConfig
from finsight.llm.client import CompletionClient
from finsight.utils.cancellation import CancellationToken
from finsight.utils.exceptions import ApiError, CancellationError


class FakeResponse:
    def __init__(self, status_code, text):
        self.status_code = status_code
        self.text = text


class FakeSession:
    """Stands in for requests.Session; records posts and replays one response."""

    def __init__(self, response=None, error=None, on_post=None):
        self.response = response
        self.error = error
        self.on_post = on_post
        self.posts = []

    def post(self, url, data=None, headers=None):
        self.posts.append({"url": url, "data": data, "headers": headers})
        if self.on_post is not None:
            self.on_post()
        if self.error is not None:
            raise self.error
        return self.response


def ok_body(content):
    return json.dumps({"choices": [{"message": {"role": "assistant", "content": content}}]})


class TestCompletionClient(unittest.TestCase):
    """Test CompletionClient functionality."""

    def setUp(self):
        """Set up test fixtures."""
        self.config = ApiConfig(
            endpoint="https://example.invalid/v1/chat/completions",
            api_key="sk-test",
            model="deepseek-chat"
        )
        self.messages = [{"role": "user", "content": "hello"}]

    def test_returns_reply_content(self):
        session = FakeSession(FakeResponse(200, ok_body("Hi there")))
        client = CompletionClient(self.config, session=session)

        self.assertEqual(client.complete(self.messages), "Hi there")

    def test_request_payload_and_headers(self):
        session = FakeSession(FakeResponse(200, ok_body("ok")))
        client = CompletionClient(self.config, session=session)

        client.complete(self.messages, temperature=0.2, max_tokens=50)

        post = session.posts[0]
        self.assertEqual(post["url"], self.config.endpoint)
        self.assertEqual(post["headers"]["Authorization"], "Bearer sk-test")
        self.assertEqual(post["headers"]["Content-Type"], "application/json")
        payload = json.loads(post["data"].decode("utf-8"))
        self.assertEqual(payload["model"], "deepseek-chat")
        self.assertEqual(payload["messages"], self.messages)
        self.assertEqual(payload["temperature"], 0.2)
        self.assertEqual(payload["max_tokens"], 50)

    def test_config_defaults_fill_missing_parameters(self):
        session = FakeSession(FakeResponse(200, ok_body("ok")))
        CompletionClient(self.config, session=session).complete(self.messages)

        payload = json.loads(session.posts[0]["data"].decode("utf-8"))
        self.assertEqual(payload["temperature"], 0.7)
        self.assertEqual(payload["max_tokens"], 1000)

    def test_error_payload_raises_api_error(self):
        body = json.dumps({"error": {"message": "Invalid API key", "type": "authentication_error"}})
        client = CompletionClient(self.config, session=FakeSession(FakeResponse(401, body)))

        with self.assertRaises(ApiError) as ctx:
            client.complete(self.messages)
        self.assertIn("Invalid API key", str(ctx.exception))

    def test_non_2xx_status_raises_api_error(self):
        client = CompletionClient(self.config, session=FakeSession(FakeResponse(502, "Bad Gateway")))

        with self.assertRaises(ApiError) as ctx:
            client.complete(self.messages)
        self.assertIn("502", str(ctx.exception))

    def test_missing_content_raises_api_error(self):
        body = json.dumps({"choices": []})
        client = CompletionClient(self.config, session=FakeSession(FakeResponse(200, body)))

        with self.assertRaises(ApiError):
            client.complete(self.messages)

    def test_non_json_body_raises_api_error(self):
        client = CompletionClient(self.config, session=FakeSession(FakeResponse(200, "<html></html>")))

        with self.assertRaises(ApiError):
            client.complete(self.messages)

    def test_transport_failure_raises_api_error(self):
        session = FakeSession(error=RequestsConnectionError("connection refused"))
        client = CompletionClient(self.config, session=session)

        with self.assertRaises(ApiError):
            client.complete(self.messages)

    def test_cancelled_before_transmitting(self):
        session = FakeSession(FakeResponse(200, ok_body("ok")))
        token = CancellationToken()
        token.cancel()

        with self.assertRaises(CancellationError):
            CompletionClient(self.config, session=session).complete(self.messages, cancel_token=token)
        self.assertEqual(session.posts, [])

    def test_cancelled_while_in_flight_discards_response(self):
        token = CancellationToken()
        session = FakeSession(FakeResponse(200, ok_body("late reply")), on_post=token.cancel)

        with self.assertRaises(CancellationError):
            CompletionClient(self.config, session=session).complete(self.messages, cancel_token=token)
        self.assertEqual(len(session.posts), 1)

    def test_cancelled_during_transport_failure(self):
        token = CancellationToken()
        session = FakeSession(error=RequestsConnectionError("reset"), on_post=token.cancel)

        with self.assertRaises(CancellationError):
            CompletionClient(self.config, session=session).complete(self.messages, cancel_token=token)


if __name__ == "__main__":
    unittest.main()

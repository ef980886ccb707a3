"""Tests for the FastAPI endpoints.

Feed downloads go through an ``httpx.MockTransport`` (by patching
``new_http_client``) and site discovery is patched at ``find_rss_feed`` so the
tests never touch the network.
"""

from unittest import TestCase, mock

from fastapi.testclient import TestClient

from feedpulse.app_server import app
from feedpulse.main.tools.errors import FetchError, NotFoundError

from feed_samples import (
    DEFAULT_ROUTES,
    FEED_A_URL,
    FEED_B_URL,
    FEED_C_URL,
    mock_async_client,
)

ORIGIN = {"Origin": "http://localhost:3000"}


class TestAPI(TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.client = TestClient(app)
        cls.patchers = [
            mock.patch(
                target,
                side_effect=lambda: mock_async_client(DEFAULT_ROUTES),
            )
            for target in (
                "feedpulse.main.tools.fetcher.new_http_client",
                "feedpulse.app_server.new_http_client",
            )
        ]
        for patcher in cls.patchers:
            patcher.start()

    @classmethod
    def tearDownClass(cls) -> None:
        for patcher in cls.patchers:
            patcher.stop()

    def test_routes(self) -> None:
        paths = {route.path for route in app.routes}
        self.assertIn("/api/fetch-and-filter", paths)
        self.assertIn("/api/find-rss", paths)
        self.assertIn("/api/fetch-rss", paths)

    def test_root_and_health(self) -> None:
        self.assertEqual(self.client.get("/").status_code, 200)
        self.assertEqual(self.client.get("/healthz").json(), {"status": "healthy"})

    def test_fetch_and_filter_requires_feed(self) -> None:
        response = self.client.get("/api/fetch-and-filter")
        self.assertEqual(response.status_code, 400)
        self.assertIn("error", response.json())

    def test_fetch_and_filter_partial_failure(self) -> None:
        response = self.client.get(
            "/api/fetch-and-filter",
            params=[("feed", FEED_A_URL), ("feed", FEED_B_URL), ("feed", FEED_C_URL), ("year", "2024")],
            headers=ORIGIN,
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["access-control-allow-origin"], "*")
        items = response.json()
        self.assertEqual([item["isoDate"] for item in items], ["2024-05-01T08:00:00Z", "2024-01-01T10:00:00Z"])
        self.assertEqual(
            set(items[0]),
            {"title", "link", "pubDate", "isoDate", "content", "contentSnippet", "categories", "guid", "creator"},
        )

    def test_fetch_and_filter_single_feed_with_keyword(self) -> None:
        response = self.client.get(
            "/api/fetch-and-filter",
            params={"feed": FEED_A_URL, "keyword": "SUMMER"},
        )
        self.assertEqual([item["title"] for item in response.json()], ["Summer Preview"])

    def test_fetch_and_filter_ignores_non_numeric_year(self) -> None:
        response = self.client.get(
            "/api/fetch-and-filter",
            params={"feed": FEED_A_URL, "year": "abc"},
        )
        self.assertEqual(len(response.json()), 2)

    def test_fetch_and_filter_all_feeds_failing(self) -> None:
        response = self.client.get("/api/fetch-and-filter", params={"feed": FEED_C_URL})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])

    def test_fetch_and_filter_pipeline_failure(self) -> None:
        with mock.patch("feedpulse.app_server.aggregate", side_effect=RuntimeError("sort exploded")):
            response = self.client.get("/api/fetch-and-filter", params={"feed": FEED_A_URL})
        self.assertEqual(response.status_code, 500)
        body = response.json()
        self.assertIn("error", body)
        self.assertEqual(body["details"], "sort exploded")

    def test_fetch_rss(self) -> None:
        response = self.client.get("/api/fetch-rss", params={"url": FEED_A_URL})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([item["guid"] for item in response.json()], ["a-1", "a-2"])

    def test_fetch_rss_errors(self) -> None:
        self.assertEqual(self.client.get("/api/fetch-rss").status_code, 400)
        response = self.client.get("/api/fetch-rss", params={"url": FEED_C_URL})
        self.assertEqual(response.status_code, 500)
        self.assertIn("details", response.json())

    def test_find_rss_requires_url(self) -> None:
        self.assertEqual(self.client.get("/api/find-rss").status_code, 400)

    @mock.patch("feedpulse.app_server.find_rss_feed", return_value="https://example.com/feed.xml")
    def test_find_rss(self, find: mock.Mock) -> None:
        response = self.client.get("/api/find-rss", params={"url": "https://example.com/"}, headers=ORIGIN)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"feedUrl": "https://example.com/feed.xml"})
        self.assertEqual(response.headers["access-control-allow-origin"], "*")
        find.assert_called_once_with("https://example.com/")

    @mock.patch("feedpulse.app_server.find_rss_feed", side_effect=NotFoundError("No RSS or Atom feed found at this URL."))
    def test_find_rss_not_found(self, _: mock.Mock) -> None:
        response = self.client.get("/api/find-rss", params={"url": "https://example.com/"})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "No RSS or Atom feed found at this URL."})

    @mock.patch("feedpulse.app_server.find_rss_feed", side_effect=FetchError("Failed to fetch the site page.", details="timeout"))
    def test_find_rss_fetch_failure(self, _: mock.Mock) -> None:
        response = self.client.get("/api/find-rss", params={"url": "https://example.com/"})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Failed to fetch the site page.", "details": "timeout"})


class TestUnexpectedErrors(TestCase):
    """Library errors outside the FeedPulse hierarchy still get a JSON body."""

    @classmethod
    def setUpClass(cls) -> None:
        cls.client = TestClient(app, raise_server_exceptions=False)

    @mock.patch("feedpulse.app_server.find_rss_feed", side_effect=RuntimeError("label too long"))
    def test_find_rss_unexpected_error(self, _: mock.Mock) -> None:
        response = self.client.get("/api/find-rss", params={"url": "http://" + "a" * 70 + ".com/"})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.headers["content-type"], "application/json")
        self.assertEqual(response.json(), {"error": "Unexpected server error.", "details": "label too long"})

    def test_fetch_rss_invalid_url(self) -> None:
        with mock.patch(
            "feedpulse.app_server.new_http_client",
            side_effect=lambda: mock_async_client(DEFAULT_ROUTES),
        ):
            response = self.client.get("/api/fetch-rss", params={"url": "http://[::1"})
        self.assertEqual(response.status_code, 500)
        body = response.json()
        self.assertEqual(body["error"], "Failed to fetch or parse the RSS feed.")
        self.assertIn("details", body)

import unittest

import requests

from coach.updates import check_for_updates, is_newer_version, parse_version


class _StubResponse:
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error

    def json(self):
        if self.error is not None:
            raise self.error
        return self.payload


class _StubHttp:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.urls = []

    def get(self, url, headers=None, timeout=None):
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.response


class VersionTests(unittest.TestCase):
    def test_parse_version(self):
        self.assertEqual(parse_version("v2.1.0"), (2, 1, 0))
        self.assertEqual(parse_version("2.10.3"), (2, 10, 3))
        self.assertIsNone(parse_version("v2.1"))
        self.assertIsNone(parse_version(""))

    def test_strictly_newer_only(self):
        self.assertTrue(is_newer_version((2, 1, 0), (2, 1, 1)))
        self.assertTrue(is_newer_version((2, 1, 0), (3, 0, 0)))
        self.assertFalse(is_newer_version((2, 1, 0), (2, 1, 0)))
        self.assertFalse(is_newer_version((2, 1, 0), (2, 0, 9)))
        self.assertFalse(is_newer_version(None, (9, 9, 9)))


class CheckForUpdatesTests(unittest.TestCase):
    def test_newer_release_reported(self):
        http = _StubHttp(_StubResponse({
            "tag_name": "v2.2.0",
            "html_url": "https://github.com/misterburton/mb-lightroom-coach/releases/tag/v2.2.0",
        }))
        update = check_for_updates("2.1.0", http=http)
        self.assertEqual(update.version, "v2.2.0")
        self.assertEqual(update.display_version, "2.2.0")
        self.assertEqual(http.urls, ["https://api.github.com/repos/misterburton/mb-lightroom-coach/releases/latest"])

    def test_same_version_is_not_an_update(self):
        http = _StubHttp(_StubResponse({"tag_name": "v2.1.0", "html_url": "https://github.com/x/y/releases/v2.1.0"}))
        self.assertIsNone(check_for_updates("2.1.0", http=http))

    def test_failures_mean_no_update(self):
        self.assertIsNone(check_for_updates(http=_StubHttp(error=requests.ConnectionError("offline"))))
        self.assertIsNone(check_for_updates(http=_StubHttp(_StubResponse(error=ValueError("not json")))))
        self.assertIsNone(check_for_updates(http=_StubHttp(_StubResponse({"message": "rate limited"}))))


if __name__ == "__main__":
    unittest.main()

"""
Shared fixtures:
- `catalog_session`: stands in for requests.Session inside OMDBClient
- `app` / `client`: Flask app on in-memory SQLite with that fake catalog
- `api`: ApiClient whose HTTP calls go through the Flask test client
"""

from urllib.parse import urlsplit

import pytest
import requests

from app import create_app
from catalog import OMDBClient
from client import ApiClient
from database import db


class FakeResponse:
    def __init__(self, status_code=200, payload=None, raises=None):
        self.status_code = status_code
        self._payload = payload
        self._raises = raises

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self._raises:
            raise self._raises
        return self._payload


class FakeCatalogSession:
    """Records every upstream call and replays queued responses (or exceptions)."""

    def __init__(self):
        self.calls = []
        self.queue = []

    def reply(self, payload=None, status_code=200, raises=None):
        self.queue.append(FakeResponse(status_code, payload, raises))

    def fail(self, exc):
        self.queue.append(exc)

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "timeout": timeout})
        item = self.queue.pop(0) if self.queue else FakeResponse(200, {"Response": "False", "Error": "Movie not found!"})
        if isinstance(item, Exception):
            raise item
        return item


class FlaskSession:
    """requests.Session look-alike routed into a Flask test client."""

    def __init__(self, test_client):
        self.test_client = test_client

    def request(self, method, url, params=None, json=None, timeout=None):
        resp = self.test_client.open(urlsplit(url).path, method=method, query_string=params, json=json)
        return FlaskResponse(resp)


class FlaskResponse:
    def __init__(self, resp):
        self.status_code = resp.status_code
        self._resp = resp

    def json(self):
        data = self._resp.get_json(silent=True)
        if data is None:
            raise ValueError("not JSON")
        return data


def _omdb_page(titles, total, start_id=1):
    return {
        "Response": "True",
        "totalResults": str(total),
        "Search": [
            {"Title": title, "Year": year, "imdbID": f"tt{start_id + i:07d}", "Type": "movie", "Poster": "N/A"}
            for i, (title, year) in enumerate(titles)
        ],
    }


@pytest.fixture()
def catalog_session():
    return FakeCatalogSession()


@pytest.fixture()
def app(catalog_session):
    catalog = OMDBClient(api_key="test-key", session=catalog_session)
    app = create_app(
        {"TESTING": True, "SQLALCHEMY_DATABASE_URI": "sqlite://", "LOG_LEVEL": "WARNING"},
        catalog=catalog,
    )
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def api(client):
    return ApiClient(base_url="http://testserver", session=FlaskSession(client))


@pytest.fixture()
def omdb_page():
    """Builds an OMDb search payload from (title, year) pairs."""
    return _omdb_page

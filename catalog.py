import requests

from logger import logger
from results import Err, ErrorKind, Ok
from schemas import OmdbSearchPayload, ValidationError

OMDB_URL = "http://www.omdbapi.com/"
PAGE_SIZE = 10  # fixed by OMDb


class OMDBClient:
    """
    Keyword search against OMDb, reshaped to ``{results, totalResults}``.

    Every call is a single attempt; failures come back as ``Err`` values,
    never as exceptions.
    """

    def __init__(self, api_key, base_url=OMDB_URL, timeout=10, session=None):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def search(self, keyword, page=1):
        if keyword is None or not str(keyword).strip():
            return Err(ErrorKind.MISSING_PARAMETER, "Missing query param q")
        try:
            page = int(page)
        except (TypeError, ValueError):
            return Err(ErrorKind.INVALID_PARAMETER, "page must be a positive integer")
        if page < 1:
            return Err(ErrorKind.INVALID_PARAMETER, "page must be a positive integer")

        params = {"apikey": self.api_key, "s": keyword, "page": page}
        try:
            resp = self.session.get(self.base_url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            payload = OmdbSearchPayload.model_validate(resp.json())
        except requests.RequestException as exc:
            logger.warning("OMDb request failed for {!r} page {}: {}", keyword, page, exc)
            return Err(ErrorKind.UPSTREAM_ERROR, "Movie catalog is unavailable")
        except (ValueError, ValidationError) as exc:
            logger.warning("OMDb sent an unexpected payload for {!r}: {}", keyword, exc)
            return Err(ErrorKind.UPSTREAM_ERROR, "Movie catalog sent an unexpected response")

        if not payload.matched:
            return Err(ErrorKind.NOT_FOUND, payload.Error or "Movie not found!")

        try:
            total = int(payload.totalResults)
        except (TypeError, ValueError):
            logger.warning("OMDb totalResults not numeric: {!r}", payload.totalResults)
            return Err(ErrorKind.UPSTREAM_ERROR, "Movie catalog sent an unexpected response")

        logger.debug("OMDb {!r} page {}: {} of {}", keyword, page, len(payload.Search), total)
        return Ok({
            "results": [movie.model_dump() for movie in payload.Search],
            "totalResults": total,
        })


def page_count(total_results):
    """Number of upstream pages needed for ``total_results`` matches."""
    if not total_results or total_results < 0:
        return 0
    return -(-int(total_results) // PAGE_SIZE)

"""
Client side of the movie search & reviews app.

``ApiClient`` talks to the HTTP API and hands back ``Ok``/``Err`` values.
``Controller`` owns the UI state (keyword, page, selected title), drives the
two APIs and keeps a ``View`` that ``render_html`` turns into markup.

Every request that repaints the view takes a new sequence token from
``ClientState``; a response is applied only while its token is still the
latest one, so a slow page-2 answer can't overwrite page 3.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional
from urllib.parse import quote

import requests
from jinja2 import Environment

from catalog import page_count
from logger import logger
from results import Err, ErrorKind, Ok
from schemas import MovieSummary, ReviewOut, SearchPage, ValidationError

NO_POSTER = "https://via.placeholder.com/100x150?text=No+Image"


class Phase(str, Enum):
    IDLE = "Idle"
    SEARCHING = "Searching"
    RESULTS_SHOWN = "ResultsShown"
    REVIEWS_SHOWN = "ReviewsShown"


# ──────────────────────────────────────────────────────────────
# HTTP
# ──────────────────────────────────────────────────────────────
class ApiClient:
    def __init__(self, base_url="http://localhost:5000", session=None, timeout=10):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def search(self, keyword, page=1):
        result = self._call("GET", "/api/search", ErrorKind.UPSTREAM_ERROR, params={"q": keyword, "page": page})
        if not result.ok:
            return result
        try:
            return Ok(SearchPage.model_validate(result.value))
        except ValidationError:
            return Err(ErrorKind.UPSTREAM_ERROR, "Search failed")

    def create_review(self, movie_title, review_text):
        body = {"movieTitle": movie_title, "reviewText": review_text}
        result = self._call("POST", "/api/reviews", ErrorKind.STORE_ERROR, json=body)
        if not result.ok:
            return result
        try:
            return Ok(ReviewOut.model_validate(result.value))
        except ValidationError:
            return Err(ErrorKind.STORE_ERROR, "Submit failed")

    def list_reviews(self, movie_title):
        path = "/api/reviews/" + quote(movie_title, safe="")
        result = self._call("GET", path, ErrorKind.STORE_ERROR)
        if not result.ok:
            return result
        try:
            return Ok([ReviewOut.model_validate(item) for item in result.value])
        except (TypeError, ValidationError):
            return Err(ErrorKind.STORE_ERROR, "Error loading reviews.")

    def _call(self, method, path, failure_kind, **kwargs):
        try:
            resp = self.session.request(method, self.base_url + path, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("{} {} failed: {}", method, path, exc)
            return Err(failure_kind, "Network error")

        try:
            data = resp.json()
        except ValueError:
            data = None

        if resp.status_code >= 400:
            body = data if isinstance(data, dict) else {}
            kind = _error_kind(body.get("kind"), resp.status_code, failure_kind)
            return Err(kind, body.get("error") or f"Request failed ({resp.status_code})")
        if data is None:
            return Err(failure_kind, "Malformed response")
        return Ok(data)


def _error_kind(reported, status, default):
    # Trust the kind the server names; fall back on the status code
    try:
        return ErrorKind(reported)
    except ValueError:
        pass
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status == 400:
        return ErrorKind.VALIDATION_ERROR if default is ErrorKind.STORE_ERROR else ErrorKind.MISSING_PARAMETER
    return default


# ──────────────────────────────────────────────────────────────
# State & view
# ──────────────────────────────────────────────────────────────
@dataclass
class ClientState:
    keyword: str = ""
    page: int = 1
    title: Optional[str] = None
    phase: Phase = Phase.IDLE
    seq: int = 0

    def next_token(self):
        self.seq += 1
        return self.seq

    def is_current(self, token):
        return token == self.seq


@dataclass
class PageControl:
    number: int
    disabled: bool = False


@dataclass
class View:
    error: str = ""
    loading: bool = False
    results: List[MovieSummary] = field(default_factory=list)
    results_message: str = ""
    pagination: List[PageControl] = field(default_factory=list)
    reviews_title: Optional[str] = None
    reviews: List[ReviewOut] = field(default_factory=list)
    reviews_message: str = ""
    review_input: str = ""

    def clear_search(self):
        self.error = ""
        self.loading = False
        self.results = []
        self.results_message = ""
        self.pagination = []

    def clear_reviews(self):
        self.reviews_title = None
        self.reviews = []
        self.reviews_message = ""
        self.review_input = ""


def build_pagination(total_results, page):
    pages = page_count(total_results)
    if pages <= 1:
        return []
    return [PageControl(number=p, disabled=(p == page)) for p in range(1, pages + 1)]


# ──────────────────────────────────────────────────────────────
# Controller
# ──────────────────────────────────────────────────────────────
class Controller:
    def __init__(self, api: ApiClient, alert: Optional[Callable[[str], None]] = None):
        self.api = api
        self.state = ClientState()
        self.view = View()
        self.alert = alert or (lambda message: logger.warning("Alert: {}", message))

    # Search ---------------------------------------------------

    def submit_search(self, keyword):
        """Start a fresh search.

        Keyword, page and selection are reset and the review panel cleared
        even for blank input; only the request itself is skipped.
        """
        keyword = (keyword or "").strip()
        self.state.keyword = keyword
        self.state.page = 1
        self.state.title = None
        self.view.clear_reviews()
        if not keyword:
            if self.state.phase is Phase.REVIEWS_SHOWN:
                self.state.phase = Phase.IDLE
            return False
        return self._run_search()

    def go_to_page(self, page):
        """Click on a page control; the current page's control is inert."""
        enabled = {c.number for c in self.view.pagination if not c.disabled}
        if page not in enabled or not self.state.keyword:
            return False
        self.state.page = page
        return self._run_search()

    def begin_search(self):
        token = self.state.next_token()
        self.state.phase = Phase.SEARCHING
        self.view.clear_search()
        self.view.clear_reviews()
        self.view.loading = True
        return token

    def apply_search(self, token, result):
        if not self.state.is_current(token):
            logger.debug("Dropping stale search response (token {}, latest {})", token, self.state.seq)
            return False

        self.view.clear_search()
        self.state.phase = Phase.RESULTS_SHOWN
        if isinstance(result, Err):
            self.view.error = result.message
            return True

        found = result.value
        self.view.results = list(found.results)
        if not self.view.results:
            self.view.results_message = "No results found."
        self.view.pagination = build_pagination(found.totalResults, self.state.page)
        return True

    def _run_search(self):
        token = self.begin_search()
        return self.apply_search(token, self.api.search(self.state.keyword, self.state.page))

    # Reviews --------------------------------------------------

    def show_reviews(self, title):
        self.state.title = title
        self.state.phase = Phase.REVIEWS_SHOWN
        self.view.clear_search()
        self.view.clear_reviews()
        self.view.reviews_title = title
        return self.refresh_reviews()

    def set_review_input(self, text):
        self.view.review_input = text

    def submit_review(self, text=None):
        if text is not None:
            self.view.review_input = text
        review_text = self.view.review_input.strip()
        if not review_text or not self.state.title:
            return False

        result = self.api.create_review(self.state.title, review_text)
        if isinstance(result, Err):
            self.alert(result.message)
            return False

        self.view.review_input = ""
        self.refresh_reviews()
        return True

    def begin_reviews(self):
        token = self.state.next_token()
        self.view.reviews_message = "Loading reviews…"
        return token

    def apply_reviews(self, token, result):
        if not self.state.is_current(token):
            logger.debug("Dropping stale reviews response (token {}, latest {})", token, self.state.seq)
            return False

        if isinstance(result, Err):
            self.view.reviews = []
            self.view.reviews_message = "Error loading reviews."
            return True

        self.view.reviews = list(result.value)
        self.view.reviews_message = "" if self.view.reviews else "No reviews yet. Be the first!"
        return True

    def refresh_reviews(self):
        if not self.state.title:
            return False
        token = self.begin_reviews()
        return self.apply_reviews(token, self.api.list_reviews(self.state.title))

    def render_html(self):
        return render_html(self.view)


# ──────────────────────────────────────────────────────────────
# Rendering
# ──────────────────────────────────────────────────────────────
_env = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True)

_PAGE = _env.from_string("""\
<div id="error">{{ view.error }}</div>
<div id="results">
{% if view.loading %}
  Loading…
{% elif view.results %}
{% for m in view.results %}
  <div class="movie" data-imdb-id="{{ m.imdbID }}">
    <img src="{{ m.Poster or no_poster }}" alt="Poster of {{ m.Title }}" />
    <div class="movie-info">
      <h3>{{ m.Title }} ({{ m.Year }})</h3>
      <p>Type: {{ m.Type }}</p>
      <div class="actions"><button data-title="{{ m.Title }}">View & Add Reviews</button></div>
    </div>
  </div>
{% endfor %}
{% elif view.results_message %}
  <p>{{ view.results_message }}</p>
{% endif %}
</div>
<div id="pagination">
{% for c in view.pagination %}
  <button data-page="{{ c.number }}"{% if c.disabled %} disabled{% endif %}>{{ c.number }}</button>
{% endfor %}
</div>
<div id="reviews-container">
{% if view.reviews_title is not none %}
  <h2>Reviews for: {{ view.reviews_title }}</h2>
  <div class="review-form">
    <textarea id="review-text" placeholder="Write your review here...">{{ view.review_input }}</textarea><br/>
    <button id="submit-review">Submit Review</button>
  </div>
  <div id="reviews-list">
{% if view.reviews_message %}
    <p>{{ view.reviews_message }}</p>
{% endif %}
{% for r in view.reviews %}
    <div class="review"><p>{{ r.reviewText }}</p><small>Review #{{ r.id }}</small></div>
{% endfor %}
  </div>
{% endif %}
</div>
""")


def render_html(view: View) -> str:
    return _PAGE.render(view=view, no_poster=NO_POSTER)

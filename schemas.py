from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

__all__ = [
    "MovieSummary",
    "OmdbSearchPayload",
    "ReviewIn",
    "ReviewOut",
    "SearchPage",
    "ValidationError",
    "first_error",
]


class MovieSummary(BaseModel):
    """One entry of an OMDb search; field names follow the upstream wire format."""

    model_config = ConfigDict(extra="ignore")

    imdbID: str
    Title: str
    Year: str = ""
    Type: str = ""
    Poster: Optional[str] = None

    @field_validator("Poster")
    @classmethod
    def _missing_poster(cls, value):
        if value in (None, "", "N/A"):
            return None
        return value


class OmdbSearchPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    Response: str
    Search: List[MovieSummary] = Field(default_factory=list)
    totalResults: Optional[str] = None
    Error: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.Response == "True"


class ReviewIn(BaseModel):
    """Body of POST /api/reviews."""

    movieTitle: str
    reviewText: str

    # Blank counts as missing; the stored value is left untouched
    @field_validator("movieTitle", "reviewText")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class SearchPage(BaseModel):
    """Body of a successful GET /api/search, as the client reads it."""

    results: List[MovieSummary] = Field(default_factory=list)
    totalResults: int = Field(ge=0)


class ReviewOut(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    movieTitle: str
    reviewText: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


def first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    field = ".".join(str(part) for part in err.get("loc", ()))
    return f"{field}: {err['msg']}" if field else err["msg"]

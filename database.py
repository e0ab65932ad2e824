from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from logger import logger
from results import Err, ErrorKind, Ok
from schemas import ReviewIn, ValidationError, first_error

db = SQLAlchemy()


class Review(db.Model):
    __tablename__ = 'reviews'
    id = db.Column(db.Integer, primary_key=True)
    movie_title = db.Column(db.String(255), nullable=False, index=True)
    review_text = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "movieTitle": self.movie_title,
            "reviewText": self.review_text,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Review {self.id} {self.movie_title!r}>"


def create_review(payload):
    """Validate ``payload`` and insert one review.

    ``payload`` is the decoded request body (any JSON value). Nothing is
    written unless both fields are present and non-blank.
    """
    if not isinstance(payload, dict):
        return Err(ErrorKind.VALIDATION_ERROR, "movieTitle and reviewText are required")

    try:
        data = ReviewIn.model_validate(payload)
    except ValidationError as e:
        return Err(ErrorKind.VALIDATION_ERROR, f"movieTitle and reviewText are required ({first_error(e)})")

    review = Review(movie_title=data.movieTitle, review_text=data.reviewText)
    try:
        db.session.add(review)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to save review for {!r}", data.movieTitle)
        return Err(ErrorKind.STORE_ERROR, "Could not save review")

    logger.info("Saved review {} for {!r}", review.id, review.movie_title)
    return Ok(review)


def list_reviews(movie_title):
    # Insertion order; an empty list is a normal answer
    try:
        reviews = Review.query.filter_by(movie_title=movie_title).order_by(Review.id).all()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to load reviews for {!r}", movie_title)
        return Err(ErrorKind.STORE_ERROR, "Could not load reviews")
    return Ok(reviews)

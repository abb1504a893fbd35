import re
import uuid
from sqlalchemy.orm import Session
from app.models.movie import Movie


def generate_slug(text: str) -> str:
    """Convert text to a URL-safe slug: lowercase, hyphens, no special chars."""
    slug = text.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug or "movie"


def make_unique_movie_slug(db: Session, title_text: str, exclude_id: int = None) -> str:
    """Generate a unique movie slug, appending a short random suffix on collision."""
    base_slug = generate_slug(title_text)
    slug = base_slug
    while True:
        query = db.query(Movie.id).filter(Movie.slug == slug)
        if exclude_id is not None:
            query = query.filter(Movie.id != exclude_id)
        if query.first() is None:
            return slug
        slug = f"{base_slug}-{uuid.uuid4().hex[:6]}"

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_admin_user
from app.models.user import User
from app.models.movie import Movie
from app.models.screening import Screening
from app.schemas.movie import MovieCreate, MovieUpdate, Movie as MovieSchema
from app.schemas.common import PaginatedResponse
from app.utils.slug import make_unique_movie_slug

router = APIRouter(prefix="/admin/movies", tags=["Admin - Movies"])


@router.get("/", response_model=PaginatedResponse[MovieSchema])
def list_movies(
    search: Optional[str] = Query(None, description="Case-insensitive title search"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    query = db.query(Movie)
    if search:
        query = query.filter(Movie.title.ilike(f"%{search}%"))

    total = query.count()
    movies = (
        query.order_by(Movie.created_at.desc(), Movie.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return PaginatedResponse(
        data=movies,
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.post("/", response_model=MovieSchema, status_code=status.HTTP_201_CREATED)
def create_movie(
    data: MovieCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    fields = data.model_dump(exclude={"slug"})
    movie = Movie(**fields, slug=make_unique_movie_slug(db, data.slug or data.title))
    db.add(movie)
    db.commit()
    db.refresh(movie)
    return movie


@router.patch("/{movie_id}", response_model=MovieSchema)
def update_movie(
    movie_id: int,
    data: MovieUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    movie = db.query(Movie).filter(Movie.id == movie_id).first()
    if not movie:
        raise HTTPException(status_code=404, detail="Movie not found")

    updates = data.model_dump(exclude_unset=True)
    if "title" in updates and updates["title"] != movie.title:
        movie.slug = make_unique_movie_slug(db, updates["title"], exclude_id=movie.id)
    for field, value in updates.items():
        setattr(movie, field, value)

    db.commit()
    db.refresh(movie)
    return movie


@router.delete("/{movie_id}", status_code=status.HTTP_200_OK)
def delete_movie(
    movie_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Delete a movie. Movies with screenings are deactivated instead."""
    movie = db.query(Movie).filter(Movie.id == movie_id).first()
    if not movie:
        raise HTTPException(status_code=404, detail="Movie not found")

    has_screenings = db.query(Screening.id).filter(Screening.movie_id == movie_id).first()
    if has_screenings:
        movie.is_active = False
        db.commit()
        return {"id": movie_id, "deleted": False, "deactivated": True}

    db.delete(movie)
    db.commit()
    return {"id": movie_id, "deleted": True, "deactivated": False}

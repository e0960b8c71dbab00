"""
Movie catalog entity and its row projection.

Getters shield callers from the remote field names and normalise awkward
values (comma separated cast, ``"N/A"`` posters). The API only includes a
``Response`` field when an item is loaded individually.
"""

from typing import ClassVar, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from .core.entity import Entity, FetchState

MISSING = "N/A"


class Movie(Entity):
    """A movie, episode or series from an OMDb-style catalog."""

    id_attribute: ClassVar[str] = "imdbID"

    def get_type(self) -> Optional[str]:
        return self.get("Type")

    def get_title(self) -> Optional[str]:
        return self.get("Title")

    def get_year(self) -> Optional[str]:
        return self.get("Year")

    def get_rating(self) -> Optional[str]:
        return self.get("Rated")

    def get_director(self) -> Optional[str]:
        return self.get("Director")

    def get_cast(self) -> List[str]:
        actors = self.get("Actors") or ""
        return [name for name in actors.split(", ") if name]

    def get_description(self) -> Optional[str]:
        return self.get("Plot")

    def get_image(self) -> str:
        image = self.get("Poster")
        return image if image and image != MISSING else ""

    def get_score(self) -> Optional[str]:
        return self.get("tomatoMeter")

    def is_fully_loaded(self) -> bool:
        return self.is_full() or self.has("Response")


class MovieRow(BaseModel):
    """Row view-model for one result."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: Optional[str] = None
    year: Optional[str] = None
    rating: Optional[str] = None
    description: Optional[str] = None
    cast: Tuple[str, ...] = ()
    image: str = ""
    full: bool = False
    loading: bool = False
    type: Optional[str] = None
    score: Optional[str] = None


def project_movie(movie: Movie) -> MovieRow:
    """Project a movie entity into a row view-model."""
    return MovieRow(
        id=movie.id,
        title=movie.get_title(),
        year=movie.get_year(),
        rating=movie.get_rating(),
        description=movie.get_description(),
        cast=tuple(movie.get_cast()),
        image=movie.get_image(),
        full=movie.is_fully_loaded(),
        loading=movie.fetch_state is FetchState.IN_FLIGHT,
        type=movie.get_type(),
        score=movie.get_score(),
    )

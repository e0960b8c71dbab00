"""Shared fixtures for the StarCatalog test suite."""

import pytest

from starcatalog.core.collection import EntityCollection
from starcatalog.movies import Movie
from starcatalog.transport.memory import MemoryTransport

HOBBIT_LISTING = [
    {"Title": "The Hobbit: An Unexpected Journey", "Year": "2012", "imdbID": "tt0903624",
     "Type": "movie", "Poster": "https://img.example/hobbit1.jpg"},
    {"Title": "The Hobbit: The Desolation of Smaug", "Year": "2013", "imdbID": "tt1170358",
     "Type": "movie", "Poster": "N/A"},
    {"Title": "The Hobbit: The Battle of the Five Armies", "Year": "2014", "imdbID": "tt2310332",
     "Type": "movie", "Poster": "https://img.example/hobbit3.jpg"},
]

RINGS_LISTING = [
    {"Title": "The Lord of the Rings: The Fellowship of the Ring", "Year": "2001",
     "imdbID": "tt0120737", "Type": "movie", "Poster": "https://img.example/lotr1.jpg"},
    {"Title": "The Lord of the Rings: The Return of the King", "Year": "2003",
     "imdbID": "tt0167260", "Type": "movie", "Poster": "https://img.example/lotr3.jpg"},
]

HOBBIT_DETAIL = {
    "Title": "The Hobbit: An Unexpected Journey",
    "Year": "2012",
    "Rated": "PG-13",
    "Director": "Peter Jackson",
    "Actors": "Martin Freeman, Ian McKellen, Richard Armitage",
    "Plot": "A reluctant Hobbit sets out to the Lonely Mountain.",
    "Poster": "https://img.example/hobbit1.jpg",
    "tomatoMeter": "64",
    "imdbID": "tt0903624",
    "Type": "movie",
    "Response": "True",
}


@pytest.fixture
def transport():
    return MemoryTransport(
        listings={"hobbit": HOBBIT_LISTING, "lord of the rings": RINGS_LISTING},
        details={HOBBIT_DETAIL["imdbID"]: HOBBIT_DETAIL},
    )


@pytest.fixture
def collection(transport):
    return EntityCollection(Movie, transport)


class Recorder:
    """Callable that records every invocation."""

    def __init__(self):
        self.calls = []

    def __call__(self, *args):
        self.calls.append(args)

    @property
    def count(self):
        return len(self.calls)


@pytest.fixture
def recorder():
    return Recorder()

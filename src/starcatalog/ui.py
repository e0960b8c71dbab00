"""
HTML rendering for result snapshots.

A sink for ``ViewBinder.on_render``: turns ``MovieRow`` snapshots into the
results list markup. Stub rows get a "load more" button carrying the row id,
which the page wires to ``CatalogApp.load_details``.
"""

from typing import Iterable

from fastcore.xml import Button, Div, Form, H4, Img, Input, Li, P, Span, Ul, to_xml

from .movies import MovieRow


def render_row(row: MovieRow):
    """Build the ``<li>`` for one result."""
    heading = row.title or row.id
    if row.year:
        heading = f"{heading} ({row.year})"

    body = []
    if row.image:
        body.append(Img(src=row.image, alt=row.title or row.id, cls="poster"))
    body.append(H4(heading, cls="title"))
    if row.type:
        body.append(Span(row.type, cls="badge"))

    if row.full:
        if row.rating:
            body.append(P(f"Rated {row.rating}", cls="rating"))
        if row.score:
            body.append(P(f"Tomatometer: {row.score}", cls="score"))
        if row.description:
            body.append(P(row.description, cls="description"))
        if row.cast:
            body.append(P(", ".join(row.cast), cls="cast"))
    else:
        label = "Loading..." if row.loading else "Load details"
        body.append(Button(label, cls="load-more", type="button"))

    return Li(*body, cls="list-group-item", data_id=row.id)


def render_results(rows: Iterable[MovieRow], element_id: str = "results") -> str:
    """Render a snapshot to the results ``<ul>``."""
    return to_xml(Ul(*[render_row(row) for row in rows], id=element_id, cls="list-group"))


def render_search_form(value: str = "", element_id: str = "search") -> str:
    """Render the search form with the current term filled in."""
    return to_xml(
        Form(
            Div(Input(type="search", name="term", value=value, placeholder="Search titles"), cls="input-group"),
            id=element_id,
        )
    )

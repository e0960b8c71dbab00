"""Tests for route compilation and fragment synchronization."""

import pytest

from starcatalog.errors import RouterError
from starcatalog.routing.navigation import MemoryNavigation, normalize_fragment
from starcatalog.routing.router import Route, RouteSynchronizer, RouterState


class TestRoute:

    def test_named_capture_is_percent_decoded(self):
        route = Route("search/:term", "search")
        assert route.matches("search/lord%20of%20the%20rings") == ["lord of the rings"]

    def test_capture_does_not_cross_segments(self):
        route = Route("search/:term", "search")
        assert route.matches("search/a/b") is None
        assert route.matches("search/") is None

    def test_match_is_anchored(self):
        route = Route("search/:term", "search")
        assert route.matches("xsearch/hobbit") is None
        assert route.matches("search/hobbit/extra") is None

    def test_splat_captures_remainder(self):
        route = Route("files/*path", "files")
        assert route.matches("files/a/b%20c.txt") == ["a/b c.txt"]
        assert route.matches("files/") == [""]

    def test_literal_regex_characters_are_escaped(self):
        route = Route("a.b/:x", "dots")
        assert route.matches("a.b/1") == ["1"]
        assert route.matches("axb/1") is None

    def test_generate_url_encodes_parameters(self):
        assert Route("search/:term", "search").generate_url(term="a/b c") == "search/a%2Fb%20c"
        assert Route("files/*path", "files").generate_url(path="a/b c") == "files/a/b%20c"

    def test_generate_url_requires_every_parameter(self):
        with pytest.raises(RouterError):
            Route("search/:term", "search").generate_url()

    def test_param_names(self):
        assert Route("movie/:id/*rest", "movie").param_names == ["id", "rest"]


class TestNavigation:

    @pytest.mark.parametrize("raw,expected", [
        ("#search/x", "search/x"),
        ("/search/x", "search/x"),
        ("search/x  ", "search/x"),
        ("", ""),
        (None, ""),
    ])
    def test_normalize_fragment(self, raw, expected):
        assert normalize_fragment(raw) == expected

    def test_history_back_and_forward(self, recorder):
        nav = MemoryNavigation()
        nav.subscribe(recorder)
        nav.visit("a")
        nav.visit("b")

        assert nav.back() is True
        assert nav.current_fragment() == "a"
        assert nav.forward() is True
        assert nav.forward() is False
        assert recorder.calls == [("a",), ("b",), ("a",), ("b",)]

    def test_replace_does_not_grow_history(self):
        nav = MemoryNavigation("a")
        nav.set_fragment("b", replace=True)
        assert nav.history == ["b"]

    def test_unsubscribe(self, recorder):
        nav = MemoryNavigation()
        unsubscribe = nav.subscribe(recorder)
        unsubscribe()
        nav.visit("a")
        assert recorder.count == 0


class TestRouteSynchronizer:

    def test_navigate_with_trigger_dispatches_decoded_term(self, recorder):
        router = RouteSynchronizer(MemoryNavigation())
        router.route("search/:term", "search", recorder)

        assert router.navigate("search/lord%20of%20the%20rings", trigger=True) is True
        assert recorder.calls == [("lord of the rings",)]
        assert router.state is RouterState.MATCHED

    def test_navigate_without_trigger_only_updates_fragment(self, recorder):
        nav = MemoryNavigation()
        router = RouteSynchronizer(nav)
        router.route("search/:term", "search", recorder)
        router.start()

        assert router.navigate("search/hobbit") is False
        assert nav.current_fragment() == "search/hobbit"
        assert recorder.count == 0

    def test_first_registered_route_wins(self):
        router = RouteSynchronizer(MemoryNavigation())
        hits = []
        router.route("search/:term", "generic", lambda term: hits.append(("generic", term)))
        router.route("search/special", "special", lambda: hits.append(("special",)))

        router.navigate("search/special", trigger=True)

        assert hits == [("generic", "special")]

    def test_unmatched_fragment_returns_false(self, recorder):
        router = RouteSynchronizer(MemoryNavigation())
        router.route("search/:term", "search", recorder)

        assert router.navigate("about", trigger=True) is False
        assert router.state is RouterState.IDLE
        assert recorder.count == 0

    def test_start_dispatches_deep_link(self, recorder):
        router = RouteSynchronizer(MemoryNavigation("#search/hobbit"))
        router.route("search/:term", "search", recorder)

        assert router.start() is True
        assert recorder.calls == [("hobbit",)]

    def test_start_twice_raises(self):
        router = RouteSynchronizer(MemoryNavigation())
        router.start()
        with pytest.raises(RouterError):
            router.start()

    def test_external_changes_are_dispatched(self, recorder):
        nav = MemoryNavigation()
        router = RouteSynchronizer(nav)
        router.route("search/:term", "search", recorder)
        router.start()

        nav.visit("search/hobbit")
        nav.visit("search/rings")
        nav.back()

        assert recorder.calls == [("hobbit",), ("rings",), ("hobbit",)]

    def test_own_navigation_is_not_dispatched_twice(self, recorder):
        nav = MemoryNavigation()
        router = RouteSynchronizer(nav)
        router.route("search/:term", "search", recorder)
        router.start()

        router.navigate("search/hobbit", trigger=True)

        assert recorder.calls == [("hobbit",)]

    def test_stop_ignores_later_changes(self, recorder):
        nav = MemoryNavigation()
        router = RouteSynchronizer(nav)
        router.route("search/:term", "search", recorder)
        router.start()
        router.stop()

        nav.visit("search/hobbit")

        assert recorder.count == 0

    def test_generic_route_event(self, recorder):
        router = RouteSynchronizer(MemoryNavigation())
        router.route("search/:term", "search")
        router.events.on("route", recorder)

        router.navigate("search/hobbit", trigger=True)

        assert recorder.calls == [("search", ["hobbit"])]

    def test_url_for(self):
        router = RouteSynchronizer(MemoryNavigation())
        router.route("#search/:term", "search")
        assert router.url_for("search", term="lord of the rings") == "search/lord%20of%20the%20rings"
        with pytest.raises(RouterError):
            router.url_for("missing")

    def test_url_for_round_trips_through_match(self):
        router = RouteSynchronizer(MemoryNavigation())
        router.route("search/:term", "search")
        route, args = router.match(router.url_for("search", term="50% off/sale"))
        assert route.name == "search"
        assert args == ["50% off/sale"]

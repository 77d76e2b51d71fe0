"""
Unit tests for request target resolution.
"""

import pytest

from tinyhttpd.http.resolver import Resolver, ResolvedResource, ContentKind


@pytest.fixture
def resolver() -> Resolver:
    return Resolver(root=".", default_document="home.html", cgi_marker="cgi-bin")


class TestStaticTargets:
    """Targets without the CGI marker."""

    def test_root_gets_default_document(self, resolver: Resolver):
        resource = resolver.resolve("/")

        assert resource.path == "./home.html"
        assert resource.kind is ContentKind.STATIC
        assert resource.cgi_args == ""

    def test_plain_file(self, resolver: Resolver):
        resource = resolver.resolve("/godzilla.gif")

        assert resource.path == "./godzilla.gif"
        assert resource.is_static

    def test_directory_gets_default_document(self, resolver: Resolver):
        assert resolver.resolve("/docs/").path == "./docs/home.html"

    def test_query_string_is_part_of_static_path(self, resolver: Resolver):
        """Static targets are never split at '?'."""
        resource = resolver.resolve("/home.html?x=1")

        assert resource.path == "./home.html?x=1"
        assert resource.cgi_args == ""

    def test_no_normalization(self, resolver: Resolver):
        assert resolver.resolve("/a/../b%20c").path == "./a/../b%20c"


class TestDynamicTargets:
    """Targets containing the CGI marker."""

    def test_with_args(self, resolver: Resolver):
        resource = resolver.resolve("/cgi-bin/adder?15&20")

        assert resource.path == "./cgi-bin/adder"
        assert resource.kind is ContentKind.DYNAMIC
        assert resource.cgi_args == "15&20"
        assert not resource.is_static

    def test_without_args(self, resolver: Resolver):
        resource = resolver.resolve("/cgi-bin/adder")

        assert resource.path == "./cgi-bin/adder"
        assert resource.cgi_args == ""

    def test_empty_args(self, resolver: Resolver):
        assert resolver.resolve("/cgi-bin/adder?").cgi_args == ""

    def test_split_at_first_question_mark(self, resolver: Resolver):
        resource = resolver.resolve("/cgi-bin/adder?a?b")

        assert resource.path == "./cgi-bin/adder"
        assert resource.cgi_args == "a?b"

    def test_marker_anywhere_in_target(self, resolver: Resolver):
        """Substring match, not a path prefix check."""
        resource = resolver.resolve("/docs/my-cgi-bin-notes.txt")
        assert resource.kind is ContentKind.DYNAMIC

    def test_custom_marker_and_root(self):
        resolver = Resolver(root="/srv/www", cgi_marker="scripts")

        resource = resolver.resolve("/scripts/run?x")
        assert resource.path == "/srv/www/scripts/run"
        assert resource.cgi_args == "x"

        assert resolver.resolve("/cgi-bin/adder").is_static


class TestWithinRoot:
    """Tests for ResolvedResource.within_root."""

    @pytest.mark.parametrize("target", ["/", "/home.html", "/a/b/c.gif", "/a/../b.html"])
    def test_inside(self, resolver: Resolver, target: str):
        assert resolver.resolve(target).within_root

    @pytest.mark.parametrize("target", ["/../secret", "/a/../../secret", "/cgi-bin/../../x"])
    def test_outside(self, resolver: Resolver, target: str):
        assert not resolver.resolve(target).within_root

    def test_target_without_leading_slash(self):
        """'..' glued onto the root escapes it."""
        resource = ResolvedResource(path="./..", kind=ContentKind.STATIC, root=".")
        assert not resource.within_root

    def test_absolute_root(self, tmp_path):
        resolver = Resolver(root=str(tmp_path / "www"))

        assert resolver.resolve("/x.html").within_root
        assert not resolver.resolve("/../x.html").within_root

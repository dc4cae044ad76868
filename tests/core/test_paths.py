"""Tests for the path/identity policy."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

sha1s = st.text(alphabet="0123456789abcdef", min_size=40, max_size=40)
filenames = st.text(
    alphabet=st.characters(blacklist_characters="/\x00", blacklist_categories=("Cs",)),
    min_size=1,
    max_size=30,
)


class _Meta:
    def __init__(self, sha1: str, filename: str, relative_publication_path: str = "") -> None:
        self.sha1 = sha1
        self.filename = filename
        self.relative_publication_path = relative_publication_path


class TestStorageKey:
    """Test content-addressed key derivation."""

    def test_prefixes_underscore(self) -> None:
        from zonestore.core.paths import storage_key

        assert (
            storage_key("aaf4c61ddcc5e8a2dabede0f3b482cd9aea9434d")
            == "_aaf4c61ddcc5e8a2dabede0f3b482cd9aea9434d"
        )

    @pytest.mark.parametrize(
        "value", ["", "abc", "A" * 40, "g" * 40, "a" * 41, "../" + "a" * 37]
    )
    def test_rejects_non_sha1(self, value: str) -> None:
        from zonestore.core.paths import storage_key

        with pytest.raises(ValueError):
            storage_key(value)


class TestPublicPath:
    """Test public path derivation."""

    def test_persistent_resource(self) -> None:
        from zonestore.core.paths import public_path

        meta = _Meta("aaf4c61ddcc5e8a2dabede0f3b482cd9aea9434d", "hello")

        assert public_path(meta) == "aaf4c61ddcc5e8a2dabede0f3b482cd9aea9434d/hello"

    def test_static_resource(self) -> None:
        from zonestore.core.paths import public_path

        meta = _Meta("a" * 40, "app.css", "Packages/Site/")

        assert public_path(meta) == "Packages/Site/app.css"

    def test_static_path_is_plain_concatenation(self) -> None:
        from zonestore.core.paths import public_path

        # No separator is inserted between prefix and filename
        assert public_path(_Meta("a" * 40, "app.css", "Site-")) == "Site-app.css"

    @given(sha1=sha1s, filename=filenames)
    def test_persistent_path_is_deterministic(self, sha1: str, filename: str) -> None:
        from zonestore.core.paths import public_path

        first = public_path(_Meta(sha1, filename))

        assert first == public_path(_Meta(sha1, filename))
        assert first.startswith(sha1 + "/")
        assert first.endswith(filename)

    @given(sha1=sha1s, filename=filenames, prefix=filenames)
    def test_static_path_ignores_hash(self, sha1: str, filename: str, prefix: str) -> None:
        from zonestore.core.paths import public_path

        assert public_path(_Meta(sha1, filename, prefix + "/")) == (
            public_path(_Meta("0" * 40, filename, prefix + "/"))
        )


class TestPublicUrl:
    """Test URL construction."""

    def test_default_scheme_is_http(self) -> None:
        from zonestore.core.paths import public_url

        assert (
            public_url("site-1a2b.kxcdn.com", "abc/hello")
            == "http://site-1a2b.kxcdn.com/abc/hello"
        )

    def test_https(self) -> None:
        from zonestore.core.paths import public_url

        assert public_url("cdn.example.com", "x", "https") == "https://cdn.example.com/x"


class TestRemotePaths:
    """Test absolute remote path helpers."""

    def test_zone_path(self) -> None:
        from zonestore.core.paths import zone_path

        assert zone_path("site", "abc/file") == "/site/abc/file"
        assert zone_path("site", "/abc/file") == "/site/abc/file"

    @pytest.mark.parametrize(
        ("remote_path", "expected"),
        [
            ("/site/abc/file", "/site/abc"),
            ("/site/_abc", "/site"),
            ("/site", "/"),
        ],
    )
    def test_parent_path(self, remote_path: str, expected: str) -> None:
        from zonestore.core.paths import parent_path

        assert parent_path(remote_path) == expected

    @pytest.mark.parametrize(
        ("remote_path", "nested"),
        [
            ("/site/_abc", False),
            ("/site/abc/file.txt", True),
            ("/site/a/b/file.txt", True),
        ],
    )
    def test_is_nested(self, remote_path: str, nested: bool) -> None:
        from zonestore.core.paths import is_nested

        assert is_nested(remote_path) is nested

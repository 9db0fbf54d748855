"""Tests for slug helpers."""
import pytest

from tagradio.slugs import is_valid_slug, slugify


class TestSlugify:
    """Test slugify."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Heavy Hitters!!", "heavy-hitters"),
            ("  a -- b  ", "a-b"),
            ("Rock", "rock"),
            ("80s Synth-Pop", "80s-synth-pop"),
            ("Drum & Bass", "drum-bass"),
            ("---", ""),
        ],
    )
    def test_slugify(self, name, expected):
        assert slugify(name) == expected

    def test_slugify_is_deterministic(self):
        assert slugify("Late Night Chill") == slugify("Late Night Chill")

    def test_non_ascii_letters_become_hyphens(self):
        assert slugify("Café Música") == "caf-m-sica"


class TestIsValidSlug:
    """Test is_valid_slug."""

    @pytest.mark.parametrize("slug", ["rock", "heavy-hitters", "80s", "a-b-c"])
    def test_valid(self, slug):
        assert is_valid_slug(slug)

    @pytest.mark.parametrize(
        "slug", ["", "Rock", "heavy hitters", "rock_and_roll", "rock!", "../etc", "abc\n", "heavy-hitters\n"]
    )
    def test_invalid(self, slug):
        assert not is_valid_slug(slug)

# SPDX-License-Identifier: MIT
"""Tests for loading override tables."""

import json

import pytest

from compass.descriptions import DescriptionResolver
from compass.errors import ConfigurationError
from compass.local_images.overrides import load_overrides, override_matches, parse_overrides
from compass.models import ManualOverride


class TestLoadOverrides:
    """Bundled and custom override files."""

    def test_bundled_file_loads(self):
        config = load_overrides()
        assert config.image_overrides
        assert config.text_overrides
        assert config.description_patterns
        assert all(o.kind == "image" for o in config.image_overrides)
        assert all(o.kind == "text" for o in config.text_overrides)

    def test_custom_file(self, tmp_path):
        path = tmp_path / "overrides.json"
        path.write_text(json.dumps({
            "image_overrides": [{"pattern": "Ella Rock", "resolution": "ella"}],
            "description_patterns": [{"pattern": "ella", "text": "Hill country village."}],
        }), encoding="utf-8")

        config = load_overrides(path)
        assert config.image_overrides[0].pattern == "ellarock"
        assert config.text_overrides == []
        assert config.description_patterns[0].text == "Hill country village."

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_overrides(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "overrides.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_overrides(path)


class TestParseOverrides:

    def test_invalid_regex(self):
        with pytest.raises(ConfigurationError):
            parse_overrides({"image_overrides": [{"match": "regex", "pattern": "(unclosed", "resolution": "x"}]})

    def test_invalid_description_regex(self):
        with pytest.raises(ConfigurationError):
            parse_overrides({"description_patterns": [{"pattern": "[", "text": "x"}]})

    def test_unknown_match_mode(self):
        with pytest.raises(ConfigurationError):
            parse_overrides({"text_overrides": [{"match": "glob", "pattern": "x*", "resolution": "x"}]})

    def test_missing_resolution(self):
        with pytest.raises(ConfigurationError):
            parse_overrides({"text_overrides": [{"pattern": "x"}]})

    def test_empty_document(self):
        config = parse_overrides({})
        assert config.image_overrides == []
        assert config.description_patterns == []


class TestOverrideMatches:

    def test_key_mode(self):
        override = ManualOverride(pattern="loversleap", resolution="x")
        assert override_matches(override, "Lovers’ Leap")
        assert not override_matches(override, "Lovers Leap Falls")

    def test_regex_mode_is_case_insensitive(self):
        override = ManualOverride(pattern="independence\\s*square", resolution="x", match="regex")
        assert override_matches(override, "INDEPENDENCE SQUARE")
        assert not override_matches(override, "Independence Arcade")

    def test_missing_name(self):
        assert not override_matches(ManualOverride(pattern="", resolution="x"), None)


class TestBundledTables:
    """Content shipped in compass/data/overrides.json."""

    @pytest.fixture
    def describer(self):
        config = load_overrides()
        return DescriptionResolver(config.text_overrides, config.description_patterns)

    def test_table_sizes(self):
        config = load_overrides()
        assert len(config.description_patterns) == 121
        assert len(config.text_overrides) == 6
        assert len(config.image_overrides) == 3

    @pytest.mark.parametrize(
        "name, start",
        [
            ("Galle Fort", "Galle Fort"),
            ("Yala National Park", "Yala National Park"),
            ("Arugam Bay", "Arugam Bay"),
            ("Nuwara Eliya", "Nuwara Eliya"),
            ("Abhayagiri Stupa", "Abhayagiri"),
            ("Mirissa", "Mirissa"),
            ("Jaffna", "Jaffna"),
            ("Devon Falls", "St. Clair"),
        ],
    )
    def test_place_descriptions(self, describer, name, start):
        assert describer.describe(name).startswith(start)

    def test_pinnawala_key_variants(self, describer):
        texts = {
            describer.match_override(key)
            for key in (
                "kegallepinnawalaelephanthorphanage",
                "kegallepinnawelaelephanthorphanage",
                "pinnawelaelephanthorphanage",
                "pinnawalaelephanthorphanage",
                "Pinnawela",
            )
        }
        assert len(texts) == 1
        assert next(iter(texts)).startswith("The Pinnawala Elephant Orphanage")

    def test_independence_override_fires_on_any_independence_name(self):
        config = load_overrides()
        override = config.image_overrides[1]
        assert override_matches(override, "Independence Memorial Hall")
        assert override_matches(override, "Independence Square")

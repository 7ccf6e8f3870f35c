"""Tests for profession slug normalization."""

import pytest

from hh_vibe.services.slug import slugify, transliterate


class TestSlugify:
    """Card store keys."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Frontend-разработчик", "frontend-razrabotchik"),
            ("  Бариста  ", "barista"),
            ("Data Scientist", "data-scientist"),
            ("Менеджер  по   продажам", "menedzher-po-prodazham"),
            ("Щука ёлка", "schuka-yolka"),
            ("UX/UI дизайнер", "ux-ui-dizayner"),
            ("C++ разработчик", "c-razrabotchik"),
        ],
    )
    def test_known_names(self, name, expected):
        assert slugify(name) == expected

    def test_case_and_whitespace_insensitive(self):
        assert slugify("DevOps Инженер") == slugify("  devops   инженер ")

    def test_no_leading_or_trailing_hyphens(self):
        assert slugify("--Тестировщик--") == "testirovschik"

    def test_untransliterable_name_gives_empty_slug(self):
        """Names without Latin or Cyrillic letters produce no key."""
        assert slugify("🎯 !!!") == ""

    def test_soft_and_hard_signs_dropped(self):
        assert transliterate("подъезд ель") == "podezd el"

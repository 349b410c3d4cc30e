"""Tests for controlled label copy generation."""

from tribes_admin.services.label_copy import generate_label_copy


class TestGenerateLabelCopy:

    def test_formats_publishers_with_pro(self):
        copy = generate_label_copy("2024", [
            {"name": "North Star Music", "pro": "ASCAP", "tribes_administered": True},
            {"name": "Harbor Songs", "pro": "BMI", "tribes_administered": True},
        ])
        assert copy == (
            "© 2024 North Star Music (ASCAP) / Harbor Songs (BMI) "
            "(adm. at TribesRightsManagement.com). All rights reserved."
        )

    def test_returns_none_without_administered_publishers(self):
        copy = generate_label_copy("2024", [
            {"name": "Outside Publishing", "pro": "SESAC", "tribes_administered": False},
        ])
        assert copy is None

    def test_returns_none_for_no_publishers(self):
        assert generate_label_copy("2024", []) is None

    def test_missing_year_uses_placeholder(self):
        copy = generate_label_copy(None, [
            {"name": "North Star Music", "pro": "ASCAP", "tribes_administered": True},
        ])
        assert copy.startswith("© — North Star Music (ASCAP)")

    def test_publisher_without_pro_has_no_parentheses(self):
        copy = generate_label_copy("2020", [
            {"name": "Indie Pub", "pro": None, "tribes_administered": True},
        ])
        assert copy.startswith("© 2020 Indie Pub (adm. at")

    def test_duplicates_by_name_keep_first_seen_order(self):
        copy = generate_label_copy("2024", [
            {"name": "B Songs", "pro": "BMI", "tribes_administered": True},
            {"name": "A Songs", "pro": "ASCAP", "tribes_administered": True},
            {"name": "B Songs", "pro": "BMI", "tribes_administered": True},
        ])
        assert "B Songs (BMI) / A Songs (ASCAP) (adm." in copy
        assert copy.count("B Songs") == 1

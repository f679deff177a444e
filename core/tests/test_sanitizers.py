from decimal import Decimal

from django.test import SimpleTestCase

from core import sanitizers


class SanitizerTests(SimpleTestCase):
    def test_text_strips_control_characters_and_truncates(self):
        self.assertEqual(sanitizers.sanitize_text("  hi\x00 there\x07 "), "hi there")
        self.assertEqual(sanitizers.sanitize_text("abcdef", max_length=3), "abc")
        self.assertEqual(sanitizers.sanitize_text(None), "")

    def test_title_drops_html_and_newlines(self):
        self.assertEqual(
            sanitizers.sanitize_title("<b>Logo</b>\n  design"),
            "Logo design",
        )

    def test_description_keeps_allowed_tags_only(self):
        clean = sanitizers.sanitize_description('<p>Hi</p><script>alert(1)</script>')
        self.assertIn("<p>Hi</p>", clean)
        self.assertNotIn("<script>", clean)

    def test_tags_are_deduplicated_in_order(self):
        self.assertEqual(
            sanitizers.sanitize_tags(["python", " django ", "python", "", None]),
            ["python", "django"],
        )

    def test_amount_accepts_comma_decimal_and_rounds(self):
        self.assertEqual(sanitizers.validate_amount("1 500,256"), Decimal("1500.26"))
        self.assertEqual(sanitizers.validate_amount(10), Decimal("10.00"))

    def test_amount_rejects_garbage_and_negatives(self):
        for value in ("abc", None, "-5", "NaN"):
            with self.assertRaises(sanitizers.InvalidValue):
                sanitizers.validate_amount(value)

    def test_amount_minimum(self):
        with self.assertRaises(sanitizers.InvalidValue):
            sanitizers.validate_amount("0.50", min_value=Decimal("1"))

    def test_int_bounds(self):
        self.assertEqual(sanitizers.validate_int("7", min_value=1, max_value=365), 7)
        with self.assertRaises(sanitizers.InvalidValue):
            sanitizers.validate_int("0", min_value=1)
        with self.assertRaises(sanitizers.InvalidValue):
            sanitizers.validate_int("400", max_value=365)
        with self.assertRaises(sanitizers.InvalidValue):
            sanitizers.validate_int("seven")

    def test_rating_is_one_to_five(self):
        self.assertEqual(sanitizers.validate_rating("5"), 5)
        for value in (0, 6, "x"):
            with self.assertRaises(sanitizers.InvalidValue):
                sanitizers.validate_rating(value)

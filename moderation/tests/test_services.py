from django.core.cache import cache
from django.test import SimpleTestCase

from core.exceptions import UpstreamFailure, ValidationError
from moderation import engine
from moderation.services import ModerationService, ModerationUnavailable


def broken_engine(text, **options):
    raise RuntimeError("dictionary failed to load")


class CountingEngine:
    def __init__(self):
        self.calls = 0

    def __call__(self, text, **options):
        self.calls += 1
        return engine.moderate(text, **options)


class ModerationServiceTests(SimpleTestCase):
    def setUp(self):
        cache.clear()

    def test_engine_failure_is_never_reported_as_clean(self):
        service = ModerationService(moderate=broken_engine)
        with self.assertRaises(ModerationUnavailable):
            service.check("hello")

    def test_check_cached_reuses_results_per_text_and_options(self):
        counting = CountingEngine()
        service = ModerationService(moderate=counting)

        first = service.check_cached("ты сука")
        second = service.check_cached("ты сука")
        self.assertEqual(first, second)
        self.assertEqual(counting.calls, 1)

        service.check_cached("ты сука", mask=True)
        self.assertEqual(counting.calls, 2)

    def test_publishable_text_reports_worst_verdict(self):
        service = ModerationService()
        verdict = service.ensure_publishable({
            "title": ("Логотип", False),
            "description": ("ты сука", False),
            "empty": ("", True),
        })
        self.assertEqual(verdict, {"score": 35, "verdict": "needs_review"})

    def test_severe_fields_are_all_listed(self):
        service = ModerationService()
        with self.assertRaises(ValidationError) as ctx:
            service.ensure_publishable({
                "title": ("хуй и пизда", False),
                "description": ("блять, пиздец", True),
                "address": ("Москва", False),
            })
        self.assertEqual(sorted(ctx.exception.errors), ["description", "title"])

    def test_gate_fails_closed_when_engine_is_down(self):
        service = ModerationService(moderate=broken_engine)
        with self.assertRaises(UpstreamFailure):
            service.ensure_publishable({"title": ("hello", False)})

    def test_gate_skips_empty_texts_even_when_engine_is_down(self):
        service = ModerationService(moderate=broken_engine)
        self.assertEqual(service.ensure_publishable({"title": ("", False)}), {"score": 0, "verdict": "safe"})

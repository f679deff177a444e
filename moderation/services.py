# moderation/services.py
import hashlib
import json
import logging

from django.core.cache import cache
from django.utils.translation import gettext_lazy as _

from core.conf import market_setting
from core.exceptions import UpstreamFailure, ValidationError

from . import engine

logger = logging.getLogger("market.moderation")


class ModerationUnavailable(Exception):
    """The engine failed; the text must be treated as unverified, never as clean."""


class ModerationService:
    """
    Entry point used by views and other services.

    `check()` wraps the engine and converts any engine failure into
    ModerationUnavailable. `ensure_publishable()` is the publication gate.
    """

    def __init__(self, moderate=None, cache_backend=None):
        self._moderate = moderate or engine.moderate
        self._cache = cache_backend or cache

    def check(self, text, strict=False, mask=False, return_stats=False) -> engine.ModerationResult:
        try:
            return self._moderate(text, strict=strict, mask=mask, return_stats=return_stats)
        except Exception as e:
            logger.error(f"Moderation engine failed: {e}", exc_info=True)
            raise ModerationUnavailable(str(e)) from e

    def check_cached(self, text, strict=False, mask=False, return_stats=False) -> dict:
        """Same as check() but returns a dict and caches it per text + options."""
        options = {"strict": strict, "mask": mask, "stats": return_stats}
        digest = hashlib.sha256(
            (text + json.dumps(options, sort_keys=True)).encode("utf-8")
        ).hexdigest()
        key = f"moderation:{digest}"

        cached = self._cache.get(key)
        if cached is not None:
            return cached

        result = self.check(text, strict=strict, mask=mask, return_stats=return_stats).to_dict()
        self._cache.set(key, result, market_setting("MODERATION_CACHE_SECONDS"))
        return result

    def ensure_publishable(self, fields: dict) -> dict:
        """
        Publication gate.

        `fields` maps field name -> (text, strict). Empty texts are skipped.
        Returns {"score": worst score, "verdict": worst verdict}.

        Raises:
            ValidationError: any field is severe (every offending field listed)
            UpstreamFailure: the engine is unavailable
        """
        worst_score = 0
        worst_verdict = engine.VERDICT_SAFE
        errors = {}

        for name, (text, strict) in fields.items():
            if not text:
                continue
            try:
                result = self.check(text, strict=strict)
            except ModerationUnavailable:
                raise UpstreamFailure(_("Content moderation is unavailable, the text could not be verified."))

            worst_score = max(worst_score, result.score)
            if result.verdict == engine.VERDICT_SEVERE:
                words = sorted({v.word for v in result.violations})
                errors[name] = [str(_("Contains prohibited language: %(words)s")) % {"words": ", ".join(words)}]
                worst_verdict = engine.VERDICT_SEVERE
            elif result.verdict == engine.VERDICT_NEEDS_REVIEW and worst_verdict == engine.VERDICT_SAFE:
                worst_verdict = engine.VERDICT_NEEDS_REVIEW

        if errors:
            logger.info(f"Publication blocked by moderation: {sorted(errors)}")
            raise ValidationError(errors, message=_("Content did not pass moderation."))

        return {"score": worst_score, "verdict": worst_verdict}


def get_moderation_service():
    return ModerationService()

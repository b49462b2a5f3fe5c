import logging

from django.utils import timezone

from core.models import Profile, compute_composite_score

from .api_client import (
    PLATFORM_CODECHEF,
    PLATFORM_CODEFORCES,
    PLATFORM_LEETCODE,
    RATING_CLIENTS,
)
from .sync import SyncJob

logger = logging.getLogger(__name__)

RATING_FIELDS = [
    "rating_codeforces",
    "rating_codechef",
    "rating_leetcode",
    "composite_score",
    "ratings_updated_at",
    "updated_at",
]


class RatingSyncJob(SyncJob):
    name = "update_ratings"
    label = "Rating update"

    def __init__(self, clients=None):
        super().__init__()
        self.clients = clients or RATING_CLIENTS

    def refresh_profile(self, profile: Profile) -> Profile:
        # All three ratings and the score are written together in one save.
        cf = self.clients[PLATFORM_CODEFORCES].get_rating(profile.handle_codeforces)
        cc = self.clients[PLATFORM_CODECHEF].get_rating(profile.handle_codechef)
        lc = self.clients[PLATFORM_LEETCODE].get_rating(profile.handle_leetcode)

        profile.rating_codeforces = cf
        profile.rating_codechef = cc
        profile.rating_leetcode = lc
        profile.composite_score = compute_composite_score(cf, cc, lc)
        profile.ratings_updated_at = timezone.now()
        profile.save(update_fields=RATING_FIELDS)

        logger.info(
            "Updated %s: CF=%s, CC=%s, LC=%s, Score=%s",
            profile.user.username,
            cf,
            cc,
            lc,
            profile.composite_score,
        )
        return profile

    def execute(self) -> dict:
        profiles = list(Profile.with_handles())
        if not profiles:
            logger.info("No profiles with platform handles found.")
            return {"profiles": 0, "updated": 0, "errors": 0}

        updated = 0
        errors = 0
        for profile in profiles:
            try:
                self.refresh_profile(profile)
                updated += 1
            except Exception:
                errors += 1
                logger.exception("Failed to update ratings for %s", profile.user.username)

        return {"profiles": len(profiles), "updated": updated, "errors": errors}


rating_sync_job = RatingSyncJob()

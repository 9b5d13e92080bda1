"""Submission routing tests — fingerprint flag, tier and spot-check draw."""

from __future__ import annotations

import random

import pytest

from dojoxp.db.models import AiFlag, TrustTier, VideoStatus
from dojoxp.moderation.video_service import route_submission

RATE = 0.1


class TestRouteSubmission:
    """Only green + verified/trusted may skip review."""

    @pytest.mark.parametrize("flag", [AiFlag.RED, AiFlag.YELLOW])
    @pytest.mark.parametrize("tier", list(TrustTier))
    def test_flagged_content_always_pending(self, flag, tier, never_sampled):
        assert route_submission(flag, tier, never_sampled, RATE) == (VideoStatus.PENDING, False)

    def test_green_unverified_pending(self, never_sampled):
        assert route_submission(AiFlag.GREEN, TrustTier.UNVERIFIED, never_sampled, RATE) == (
            VideoStatus.PENDING,
            False,
        )

    @pytest.mark.parametrize("tier", [TrustTier.VERIFIED, TrustTier.TRUSTED])
    def test_green_trusted_not_sampled_auto_approves(self, tier, never_sampled):
        assert route_submission(AiFlag.GREEN, tier, never_sampled, RATE) == (VideoStatus.APPROVED, False)

    @pytest.mark.parametrize("tier", [TrustTier.VERIFIED, TrustTier.TRUSTED])
    def test_green_trusted_sampled_is_spot_check(self, tier, always_sampled):
        assert route_submission(AiFlag.GREEN, tier, always_sampled, RATE) == (VideoStatus.PENDING, True)

    def test_draw_only_for_eligible_submissions(self):
        """Ineligible submissions never consume a random draw."""
        rng = random.Random(7)
        expected_next = random.Random(7).random()
        route_submission(AiFlag.RED, TrustTier.TRUSTED, rng, RATE)
        route_submission(AiFlag.GREEN, TrustTier.UNVERIFIED, rng, RATE)
        assert rng.random() == expected_next


class TestSpotCheckStatistics:
    """The sampled fraction converges to the configured rate."""

    TRIALS = 10_000

    @pytest.mark.parametrize("seed", [1, 42, 2026])
    def test_fraction_converges_to_one_in_ten(self, seed):
        rng = random.Random(seed)
        tiers = [TrustTier.VERIFIED, TrustTier.TRUSTED]
        sampled = 0
        for i in range(self.TRIALS):
            status, spot_check = route_submission(AiFlag.GREEN, tiers[i % 2], rng, RATE)
            if spot_check:
                assert status == VideoStatus.PENDING
                sampled += 1
            else:
                assert status == VideoStatus.APPROVED
        # sd = sqrt(0.1 * 0.9 / 10000) = 0.003; allow > 3 sd
        assert abs(sampled / self.TRIALS - RATE) < 0.01

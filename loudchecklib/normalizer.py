from __future__ import annotations

from typing import Any, Iterable

from .config import ConfigError, ParamSpec
from .models import AnalysisSummary, NormalizationResult, PlatformProfile
from .platforms import PLATFORM_PROFILES

POLICIES = ("peak_safe", "loudness_only")


def normalize(
    summary: AnalysisSummary,
    profile: PlatformProfile,
    policy: str = "peak_safe",
) -> NormalizationResult:
    """Project *summary* onto *profile*'s loudness target.

    ``loudness_only`` applies ``target - loudness`` and never limits.
    ``peak_safe`` does the same, then pulls the gain down by the amount
    the projected peak overshoots the profile's ceiling.  Profiles without
    a ceiling are always treated as ``loudness_only``.
    """
    if policy not in POLICIES:
        raise ConfigError(f"Unknown normalization policy: {policy!r}")

    gain = profile.target_loudness - summary.loudness
    limited = False

    if policy == "peak_safe" and profile.target_peak is not None:
        projected_peak = summary.peak + gain
        if projected_peak > profile.target_peak:
            gain -= projected_peak - profile.target_peak
            limited = True

    return NormalizationResult(
        profile_id=profile.id,
        gain_db=gain,
        projected_loudness=summary.loudness + gain,
        projected_peak=summary.peak + gain,
        limited=limited,
        policy=policy,
    )


class PlatformNormalizer:
    id = "platform_normalizer"
    name = "Platform Normalization"

    @classmethod
    def config_params(cls) -> list[ParamSpec]:
        return [
            ParamSpec(
                key="normalization_policy", type=str, default="peak_safe",
                choices=list(POLICIES),
                label="Normalization policy",
                description=(
                    "'peak_safe' reduces the gain further when the normalized "
                    "peak would exceed the platform ceiling (simulated "
                    "limiting). 'loudness_only' matches the loudness target "
                    "and ignores peaks."
                ),
            ),
        ]

    def __init__(self, config: dict[str, Any] | None = None):
        self.policy = "peak_safe"
        if config:
            self.configure(config)

    def configure(self, config: dict[str, Any]) -> None:
        policy = config.get("normalization_policy", "peak_safe")
        if policy not in POLICIES:
            raise ConfigError(f"Unknown normalization policy: {policy!r}")
        self.policy = policy

    def normalize(self, summary: AnalysisSummary, profile: PlatformProfile) -> NormalizationResult:
        return normalize(summary, profile, self.policy)

    def normalize_all(
        self,
        summary: AnalysisSummary,
        profiles: Iterable[PlatformProfile] | None = None,
    ) -> dict[str, NormalizationResult]:
        """One independent result per profile, keyed by id in catalog order."""
        if profiles is None:
            profiles = PLATFORM_PROFILES
        return {p.id: self.normalize(summary, p) for p in profiles}

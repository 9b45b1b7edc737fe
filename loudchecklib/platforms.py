"""Streaming platform loudness targets."""

from __future__ import annotations

from .models import PlatformProfile

ORIGINAL_ID = "original"

PLATFORM_PROFILES: tuple[PlatformProfile, ...] = (
    PlatformProfile(
        id="spotify", name="Spotify",
        target_loudness=-14.0, target_peak=-1.0,
        guidance="Upload high-quality (e.g., WAV/FLAC), they'll transcode to Opus/AAC. Target -14 LUFS.",
    ),
    PlatformProfile(
        id="apple", name="Apple Music",
        target_loudness=-16.0, target_peak=-1.0,
        guidance="Upload high-quality (e.g., ALAC/WAV/FLAC). Target -16 LUFS.",
    ),
    PlatformProfile(
        id="youtube", name="YouTube",
        target_loudness=-14.0, target_peak=-1.0,
        guidance="Upload high-quality. Target -14 LUFS.",
    ),
    PlatformProfile(
        id="soundcloud", name="SoundCloud",
        target_loudness=-10.0, target_peak=-0.5,
        guidance="Less aggressive normalization. Can handle louder masters. Target around -8 to -13 LUFS.",
    ),
    PlatformProfile(
        id="tidal", name="Tidal (HiFi)",
        target_loudness=-14.0, target_peak=-1.0,
        guidance="Lossless (FLAC/ALAC) preferred. Target -14 LUFS for most content.",
    ),
)

_BY_ID = {p.id: p for p in PLATFORM_PROFILES}


def get_profile(profile_id: str) -> PlatformProfile:
    """Look up a catalog profile.  Raises ``KeyError`` for unknown ids."""
    try:
        return _BY_ID[profile_id]
    except KeyError:
        raise KeyError(f"Unknown platform profile: {profile_id!r}") from None


def profile_ids() -> list[str]:
    return [p.id for p in PLATFORM_PROFILES]

import dataclasses

import pytest

from loudchecklib.platforms import ORIGINAL_ID, PLATFORM_PROFILES, get_profile, profile_ids


def test_catalog_contents():
    expected = {
        "spotify": (-14.0, -1.0),
        "apple": (-16.0, -1.0),
        "youtube": (-14.0, -1.0),
        "soundcloud": (-10.0, -0.5),
        "tidal": (-14.0, -1.0),
    }
    assert {p.id: (p.target_loudness, p.target_peak) for p in PLATFORM_PROFILES} == expected
    assert all(p.guidance for p in PLATFORM_PROFILES)


def test_ids_are_unique_and_ordered():
    ids = profile_ids()
    assert ids == ["spotify", "apple", "youtube", "soundcloud", "tidal"]
    assert ORIGINAL_ID not in ids


def test_get_profile():
    assert get_profile("apple").name == "Apple Music"
    with pytest.raises(KeyError):
        get_profile("napster")


def test_profiles_are_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        PLATFORM_PROFILES[0].target_loudness = -9.0

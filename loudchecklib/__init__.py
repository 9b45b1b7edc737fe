from ._version import __version__
from .models import (
    Severity,
    TransportState,
    AudioTrack,
    AnalysisSummary,
    SeriesPoint,
    TrackAnalysis,
    PlatformProfile,
    NormalizationResult,
)
from .audio import (
    AUDIO_EXTENSIONS,
    DecodeFailure,
    db_to_linear,
    load_track,
    loudness_proxy,
)
from .analyzer import WindowedLoudnessAnalyzer, analyze_track
from .normalizer import PlatformNormalizer, normalize
from .platforms import PLATFORM_PROFILES, ORIGINAL_ID, get_profile
from .transport import (
    PlaybackTransport,
    SoundDeviceBackend,
    TransportError,
    RenderingUnavailable,
    InvalidTransportState,
)
from .session import LoudnessSession
from .config import (
    default_config,
    merge_configs,
    validate_config,
    validate_config_fields,
    load_preset,
    save_preset,
    ConfigError,
    ConfigFieldError,
    ParamSpec,
    PLAYBACK_PARAMS,
)
from .reports import build_report, generate_report, save_json
from .events import EventBus

__all__ = [
    "__version__",
    "Severity",
    "TransportState",
    "AudioTrack",
    "AnalysisSummary",
    "SeriesPoint",
    "TrackAnalysis",
    "PlatformProfile",
    "NormalizationResult",
    "AUDIO_EXTENSIONS",
    "DecodeFailure",
    "db_to_linear",
    "load_track",
    "loudness_proxy",
    "WindowedLoudnessAnalyzer",
    "analyze_track",
    "PlatformNormalizer",
    "normalize",
    "PLATFORM_PROFILES",
    "ORIGINAL_ID",
    "get_profile",
    "PlaybackTransport",
    "SoundDeviceBackend",
    "TransportError",
    "RenderingUnavailable",
    "InvalidTransportState",
    "LoudnessSession",
    "default_config",
    "merge_configs",
    "validate_config",
    "validate_config_fields",
    "load_preset",
    "save_preset",
    "ConfigError",
    "ConfigFieldError",
    "ParamSpec",
    "PLAYBACK_PARAMS",
    "build_report",
    "generate_report",
    "save_json",
    "EventBus",
]

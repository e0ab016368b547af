from .cache import CacheKey
from .clients import (
    ClientPlatform,
    ClientProfile,
    ClientScreen,
    ClientSession,
    HeaderStyle,
    PoTokenResult,
)
from .formats import (
    AudioTrackType,
    EnrichedFormat,
    FormatDescriptor,
    ItagType,
    MediaFormat,
)
from .streams import (
    AudioStream,
    DeliveryMethod,
    RawStreamingDescriptor,
    Stream,
    StreamInfo,
    StreamType,
    Thumbnail,
    VideoStream,
    contains_similar_stream,
)

__all__ = [
    "AudioStream",
    "AudioTrackType",
    "CacheKey",
    "ClientPlatform",
    "ClientProfile",
    "ClientScreen",
    "ClientSession",
    "DeliveryMethod",
    "EnrichedFormat",
    "FormatDescriptor",
    "HeaderStyle",
    "ItagType",
    "MediaFormat",
    "PoTokenResult",
    "RawStreamingDescriptor",
    "Stream",
    "StreamInfo",
    "StreamType",
    "Thumbnail",
    "VideoStream",
    "contains_similar_stream",
]

"""YouTube extraction: player script, innertube clients and stream assembly."""

from .assembler import AssembledStreams, StreamAssembler
from .extractor import YOUTUBE_SERVICE_ID, YoutubeStreamExtractor
from .innertube import InnertubeClient
from .orchestrator import PlayerResponseOrchestrator, PlayerResponses
from .player_manager import PlayerScriptManager
from .player_script import PlayerScriptFetcher

__all__ = [
    "AssembledStreams",
    "InnertubeClient",
    "PlayerResponseOrchestrator",
    "PlayerResponses",
    "PlayerScriptFetcher",
    "PlayerScriptManager",
    "StreamAssembler",
    "YOUTUBE_SERVICE_ID",
    "YoutubeStreamExtractor",
]

from .po_token import PoTokenProviderPort
from .script_runner import ScriptRunnerPort
from .stream_extractor import StreamExtractorPort
from .transport import HttpResponse, TransportPort

__all__ = [
    "HttpResponse",
    "PoTokenProviderPort",
    "ScriptRunnerPort",
    "StreamExtractorPort",
    "TransportPort",
]

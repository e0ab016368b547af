from .fetch_stream_info import StreamInfoUseCase

__all__ = ["StreamInfoUseCase"]

"""Memoized access to everything derived from the base player script.

One manager instance holds the script of the current player version and
the results (or failures) of every extraction run against it. A failure
is stored and re-raised on later calls without running the matchers
again, until the caches are cleared or another player version is seen.
"""

from __future__ import annotations

import asyncio
from typing import Literal

import structlog

from tubegarr.domain.exceptions import (
    DeobfuscationFailed,
    ExtractionError,
    MalformedUpstreamData,
)
from tubegarr.domain.ports.script_runner import ScriptRunnerPort
from tubegarr.infrastructure.youtube import signature, throttling
from tubegarr.infrastructure.youtube.player_script import PlayerScriptFetcher

log = structlog.get_logger(__name__)

FailureCategory = Literal["sts", "signature", "throttling"]


class PlayerScriptManager:
    """Deobfuscation engine facade with per-script memoization.

    All state is guarded by one ``asyncio.Lock``; the only suspension point
    inside the lock is the lazy script download.
    """

    def __init__(self, fetcher: PlayerScriptFetcher, runner: ScriptRunnerPort) -> None:
        self._fetcher = fetcher
        self._runner = runner
        self._lock = asyncio.Lock()
        self._player_url: str | None = None
        self._player_code: str | None = None
        self._signature_timestamp: int | None = None
        self._signature_code: str | None = None
        self._throttling_name: str | None = None
        self._throttling_code: str | None = None
        self._failures: dict[FailureCategory, ExtractionError] = {}
        self._throttling_parameters: dict[str, str] = {}

    @property
    def player_url(self) -> str | None:
        return self._player_url

    def throttling_parameters_cache_size(self) -> int:
        return len(self._throttling_parameters)

    def _reset(self) -> None:
        self._player_url = None
        self._player_code = None
        self._signature_timestamp = None
        self._signature_code = None
        self._throttling_name = None
        self._throttling_code = None
        self._failures.clear()
        self._throttling_parameters.clear()

    def _install_script(self, player_url: str, player_code: str) -> None:
        if self._player_url is not None and self._player_url != player_url:
            log.info(
                "player_script_changed", old=self._player_url, new=player_url
            )
        self._reset()
        self._player_url = player_url
        self._player_code = player_code

    async def set_script(self, player_url: str, player_code: str) -> None:
        """Install a script directly; a different URL invalidates every cache."""
        async with self._lock:
            if player_url == self._player_url and player_code == self._player_code:
                return
            self._install_script(player_url, player_code)

    async def _ensure_script(self, video_id: str) -> str:
        if self._player_code is not None:
            return self._player_code
        player_url, player_code = await self._fetcher.fetch(video_id)
        self._install_script(player_url, player_code)
        return player_code

    def _raise_stored(self, category: FailureCategory) -> None:
        failure = self._failures.get(category)
        if failure is not None:
            raise failure

    async def get_signature_timestamp(self, video_id: str) -> int:
        async with self._lock:
            if self._signature_timestamp is not None:
                return self._signature_timestamp
            self._raise_stored("sts")
            code = await self._ensure_script(video_id)
            try:
                self._signature_timestamp = signature.get_signature_timestamp(code)
            except MalformedUpstreamData as e:
                self._failures["sts"] = e
                raise
            return self._signature_timestamp

    async def _get_signature_code(self, video_id: str) -> str:
        if self._signature_code is not None:
            return self._signature_code
        self._raise_stored("signature")
        code = await self._ensure_script(video_id)
        try:
            self._signature_code = signature.get_deobfuscation_code(code)
        except DeobfuscationFailed as e:
            self._failures["signature"] = e
            log.warning("signature_function_extraction_failed", error=e.reason)
            raise
        return self._signature_code

    async def deobfuscate_signature(self, video_id: str, obfuscated: str) -> str:
        """Run the player's signature transform on ``obfuscated``.

        Raises:
            DeobfuscationFailed: the transform could not be extracted or run.
        """
        async with self._lock:
            code = await self._get_signature_code(video_id)
        return self._runner.call(
            code, signature.DEOBFUSCATION_FUNCTION_NAME, obfuscated
        )

    async def _get_throttling_function(self, video_id: str) -> tuple[str, str]:
        if self._throttling_code is not None and self._throttling_name is not None:
            return self._throttling_name, self._throttling_code
        self._raise_stored("throttling")
        code = await self._ensure_script(video_id)
        try:
            name = throttling.get_function_name(code)
            function_code = throttling.get_function_code(code, name)
        except DeobfuscationFailed as e:
            self._failures["throttling"] = e
            log.warning("throttling_function_extraction_failed", error=e.reason)
            raise
        self._throttling_name = name
        self._throttling_code = function_code
        return name, function_code

    async def get_url_with_throttling_parameter_deobfuscated(
        self, video_id: str, streaming_url: str
    ) -> str:
        """Replace the ``n`` parameter of ``streaming_url`` by its transformed value.

        URLs without ``n`` are returned unchanged.
        """
        obfuscated = throttling.get_throttling_parameter(streaming_url)
        if obfuscated is None:
            return streaming_url

        async with self._lock:
            cached = self._throttling_parameters.get(obfuscated)
            if cached is not None:
                return streaming_url.replace(obfuscated, cached)
            name, function_code = await self._get_throttling_function(video_id)
            deobfuscated = self._runner.call(function_code, name, obfuscated)
            self._throttling_parameters[obfuscated] = deobfuscated

        return streaming_url.replace(obfuscated, deobfuscated)

    async def clear_throttling_parameters_cache(self) -> None:
        async with self._lock:
            self._throttling_parameters.clear()

    async def clear_all_caches(self) -> None:
        """Forget the script, every extracted function and every stored failure."""
        async with self._lock:
            self._reset()
        log.info("player_caches_cleared")

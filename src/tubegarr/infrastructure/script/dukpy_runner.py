"""ScriptRunnerPort adapter evaluating snippets in the embedded Duktape engine."""

from __future__ import annotations

import dukpy
import structlog

from tubegarr.domain.exceptions import DeobfuscationFailed

log = structlog.get_logger(__name__)


class DukpyScriptRunner:
    """Runs one extracted function per call in a fresh interpreter.

    A fresh ``JSInterpreter`` per call keeps snippets from different
    player versions from seeing each other's globals.
    """

    def call(self, code: str, function_name: str, argument: str) -> str:
        interpreter = dukpy.JSInterpreter()
        try:
            interpreter.evaljs(code)
            result = interpreter.evaljs(f"{function_name}(dukpy['arg'])", arg=argument)
        except dukpy.JSRuntimeError as e:
            log.warning("script_evaluation_failed", function=function_name, error=str(e))
            raise DeobfuscationFailed(
                f"Could not run {function_name}: {e}"
            ) from e
        if result is None:
            return ""
        return str(result)

"""Source-to-executable transforms for script modules.

The compiler hands every script module to a ``SourceTransform``. A
transform either returns browser-ready JavaScript or raises
``TransformError``; the compiler isolates that failure to the one module.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

import dukpy

from nodecanvas.config.schema import CompilerConfig
from nodecanvas.errors import TransformError
from nodecanvas.logging import get_logger

log = get_logger("compiler")

# Standalone Babel build shipped inside the dukpy distribution
BABEL_BUNDLE_GLOB = "babel-*.min.js"

_TRANSFORM_SCRIPT = "Babel.transform(dukpy.source, dukpy.options).code;"


def babel_bundle() -> Path:
    """Path of the Babel build bundled with dukpy."""
    modules = Path(dukpy.__file__).parent / "jsmodules"
    bundles = sorted(modules.glob(BABEL_BUNDLE_GLOB))
    if not bundles:
        raise TransformError("<babel>", f"no Babel build found in {modules}")
    return bundles[-1]


@runtime_checkable
class SourceTransform(Protocol):
    """Turns one module's source text into executable JavaScript."""

    def __call__(self, source: str, *, filename: str) -> str:
        """Transform ``source``.

        Raises:
            TransformError: The module cannot be transformed.
        """
        ...


class BabelTransform:
    """Babel running inside dukpy's embedded interpreter.

    Presets come from config; the default ``react`` preset rewrites JSX and
    leaves ES module syntax alone so the import map can resolve it. The
    Babel build is loaded into one interpreter on first use and reused for
    every later module.
    """

    def __init__(self, presets: list[str] | None = None) -> None:
        self._presets = list(presets) if presets is not None else ["react"]
        self._interpreter: dukpy.JSInterpreter | None = None

    @property
    def presets(self) -> list[str]:
        return list(self._presets)

    def _ready_interpreter(self) -> dukpy.JSInterpreter:
        if self._interpreter is None:
            bundle = babel_bundle()
            interpreter = dukpy.JSInterpreter()
            try:
                # Discard the bundle's completion value; only the Babel global is needed
                interpreter.evaljs(bundle.read_text(encoding="utf-8") + "\n;null;")
            except dukpy.JSRuntimeError as e:
                raise TransformError("<babel>", f"cannot load {bundle.name}: {e}") from e
            log.debug("Loaded %s", bundle.name)
            self._interpreter = interpreter
        return self._interpreter

    def __call__(self, source: str, *, filename: str) -> str:
        interpreter = self._ready_interpreter()
        options = {"presets": self._presets}
        try:
            code = interpreter.evaljs(_TRANSFORM_SCRIPT, source=source, options=options)
        except dukpy.JSRuntimeError as e:
            raise TransformError(filename, str(e)) from e
        if not isinstance(code, str):
            raise TransformError(filename, "transform produced no code")
        return code


class PassthroughTransform:
    """Leaves source untouched. For plain JavaScript projects."""

    def __call__(self, source: str, *, filename: str) -> str:
        return source


def transform_from_config(config: CompilerConfig) -> SourceTransform:
    if config.transform == "none":
        return PassthroughTransform()
    if config.transform != "babel":
        log.warning("Unknown transform %r, using babel", config.transform)
    return BabelTransform(config.babel_presets)

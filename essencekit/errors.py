"""Exception hierarchy shared by the compiler, plugins, and build pipeline."""

from __future__ import annotations


class EssenceError(RuntimeError):
    """Base class for errors raised by essencekit."""


class RenderError(EssenceError):
    """Raised when a component tree cannot be rendered at all."""


class ComponentCycleError(RenderError):
    """Raised when a component re-enters itself through nesting or ``extends``."""

    def __init__(self, chain: tuple[str, ...]) -> None:
        self.chain = chain
        super().__init__(f"Cyclic component reference: {' -> '.join(chain)}")


class RenderDepthError(RenderError):
    """Raised when nested or base components recurse beyond the depth limit."""

    def __init__(self, chain: tuple[str, ...], max_depth: int) -> None:
        self.chain = chain
        self.max_depth = max_depth
        super().__init__(
            f"Component nesting exceeded {max_depth} levels: {' -> '.join(chain)}"
        )


class ApiError(EssenceError):
    """Raised when component data cannot be fetched from a configured API group."""


class PluginLoadError(EssenceError):
    """Raised when a rule or post-process source cannot be imported."""


class BuildError(EssenceError):
    """Raised when a build is aborted, e.g. by rule failures in strict mode."""


__all__ = [
    "ApiError",
    "BuildError",
    "ComponentCycleError",
    "EssenceError",
    "PluginLoadError",
    "RenderDepthError",
    "RenderError",
]

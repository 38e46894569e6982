"""Public configuration API for essencekit.

The configuration package exposes dataclasses describing a site build and a
YAML loader that resolves defaults. The loader lives in
:mod:`essencekit.config.loader`, while the models are defined in
:mod:`essencekit.config.models`.
"""

from __future__ import annotations

from .loader import build_site_config, load_site_config
from .models import (
    PLACEHOLDER_MODES,
    PostProcessConfig,
    RulesConfig,
    SiteConfig,
    SiteConfigError,
)

__all__ = [
    "PLACEHOLDER_MODES",
    "PostProcessConfig",
    "RulesConfig",
    "SiteConfig",
    "SiteConfigError",
    "build_site_config",
    "load_site_config",
]

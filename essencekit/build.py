"""Site build pipeline.

This module turns a project's components into one static output tree per
target environment. ``SiteBuilder`` discovers the components, renders every
component whose config sets ``"render": true``, checks each result against
the configured rules, injects client scripts, runs the post-processors, and
writes the artefacts.

Output is written into a staging directory beside the final one and only
swapped into ``<output_dir>/<env>`` once every component has rendered, so a
failed build leaves the previous output untouched.

Typical usage mirrors the ``essencekit build`` command:

>>> from pathlib import Path
>>> from essencekit.config import load_site_config
>>> config = load_site_config(Path("essencekit.yaml"))  # doctest: +SKIP
>>> written = SiteBuilder(config, env="prod").run()  # doctest: +SKIP
>>> print(written[0])  # doctest: +SKIP
public/prod/Home/index.html
"""

from __future__ import annotations

import logging
import shutil
import typing as typ

from .api import ApiDataLoader
from .client_scripts import build_auth_script
from .compiler import ComponentRenderer, LogicEngine, discover_components
from .errors import BuildError
from .plugins.postprocess import PostProcessor
from .plugins.rules import RuleChecker

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .compiler import ComponentDescriptor, ComponentRegistry
    from .compiler.renderer import DataLoader
    from .config import SiteConfig
    from .plugins.rules import RuleFailure

logger = logging.getLogger(__name__)

BODY_CLOSE = "</body>"


def inject_scripts(markup: str, scripts: list[str]) -> str:
    """Insert ``scripts`` before the last ``</body>``, or append them.

    Examples
    --------
    >>> inject_scripts("<body><p>x</p></body>", ["<script>1</script>"])
    '<body><p>x</p><script>1</script></body>'
    """
    if not scripts:
        return markup
    block = "".join(scripts)
    index = markup.lower().rfind(BODY_CLOSE)
    if index == -1:
        return markup + block
    return markup[:index] + block + markup[index:]


class SiteBuilder:
    """Render a project's components into ``<output_dir>/<env>``."""

    def __init__(
        self,
        site_config: SiteConfig,
        *,
        env: str = "dev",
        data_loader: DataLoader | None = None,
        rule_checker: RuleChecker | None = None,
        post_processor: PostProcessor | None = None,
        include_builtin: bool = True,
    ) -> None:
        """Initialize the builder.

        Parameters
        ----------
        site_config : SiteConfig
            Resolved site configuration.
        env : str, optional
            Target environment; names the output folder and fills ``@ENV@``.
        data_loader : DataLoader, optional
            Component data loader. Defaults to an :class:`ApiDataLoader` over
            the configured API groups.
        rule_checker : RuleChecker, optional
            Defaults to the rules configured in ``site_config``.
        post_processor : PostProcessor, optional
            Defaults to the post-processors configured in ``site_config``.
        include_builtin : bool, optional
            Whether the shipped ``BasePage`` and ``BaseComponent`` are
            available after the project's own components.
        """
        self.site_config = site_config
        self.env = env
        base_dir = site_config.project_root
        self._api_loader = None if data_loader else ApiDataLoader(site_config)
        self.data_loader = data_loader or self._api_loader
        self.rule_checker = rule_checker or RuleChecker(site_config.rules, base_dir)
        self.post_processor = post_processor or PostProcessor(
            site_config.post_process, base_dir
        )
        self.include_builtin = include_builtin

    def close(self) -> None:
        """Close the HTTP session of the default API data loader."""
        if self._api_loader is not None:
            self._api_loader.close()

    @property
    def output_root(self) -> Path:
        return self.site_config.resolve(self.site_config.output_dir)

    @property
    def target_dir(self) -> Path:
        """Final output folder for this environment."""
        return self.output_root / self.env

    @property
    def staging_dir(self) -> Path:
        return self.output_root / f".staging-{self.env}"

    @property
    def strict(self) -> bool:
        """Whether rule failures abort the build."""
        return self.site_config.is_strict_build(self.env)

    def discover(self) -> ComponentRegistry:
        """Scan the project's components directory into a fresh registry."""
        components_dir = self.site_config.resolve(self.site_config.components_dir)
        return discover_components(
            [components_dir], include_builtin=self.include_builtin
        )

    def make_renderer(self, registry: ComponentRegistry) -> ComponentRenderer:
        return ComponentRenderer(
            registry,
            env=self.env,
            data_loader=self.data_loader,
            engine=LogicEngine(strict=self.site_config.strict_placeholders),
            max_depth=self.site_config.max_depth,
        )

    def render_component(self, name: str) -> str:
        """Render one component by name with its client scripts injected.

        Raises
        ------
        BuildError
            If no component called ``name`` exists.
        """
        registry = self.discover()
        descriptor = registry.find_by_name(name)
        if descriptor is None:
            msg = f'Component "{name}" not found.'
            raise BuildError(msg)
        try:
            markup = self.make_renderer(registry).render(descriptor)
        finally:
            self.close()
        return inject_scripts(markup, self.client_scripts(descriptor))

    def run(self) -> list[Path]:
        """Build every renderable component and return the written paths.

        Returns
        -------
        list[Path]
            Paths of the written HTML files inside :attr:`target_dir`.

        Raises
        ------
        BuildError
            If rules fail in strict mode.
        RenderError
            If a component tree contains a cycle or nests too deeply.

        Notes
        -----
        Any failure removes the staging directory and leaves the previous
        contents of :attr:`target_dir` in place.
        """
        registry = self.discover()
        registry.reset_data()
        renderer = self.make_renderer(registry)
        staging = self.staging_dir
        if staging.exists():
            shutil.rmtree(staging)
        staging.mkdir(parents=True)

        written: list[Path] = []
        try:
            for descriptor in registry.renderable():
                written.append(self._build_one(renderer, descriptor, staging))
            self._copy_assets(staging)
        except Exception:
            shutil.rmtree(staging, ignore_errors=True)
            raise
        finally:
            self.close()

        target = self.target_dir
        if target.exists():
            shutil.rmtree(target)
        staging.rename(target)
        logger.info("Built %d page(s) into %s.", len(written), target)
        return [target / relative for relative in written]

    def _build_one(
        self,
        renderer: ComponentRenderer,
        descriptor: ComponentDescriptor,
        staging: Path,
    ) -> Path:
        markup = renderer.render(descriptor)
        self._check_rules(markup, descriptor)
        markup = inject_scripts(markup, self.client_scripts(descriptor))
        destination = staging / descriptor.output_path
        markup = self.post_processor.run(markup, descriptor, destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(markup, encoding="utf-8")
        logger.info("Rendered %s -> %s", descriptor.name, descriptor.output_path)
        return descriptor.output_path

    def _check_rules(self, markup: str, descriptor: ComponentDescriptor) -> None:
        failures = self.rule_checker.run(markup, descriptor)
        if not failures:
            return
        if not self.strict:
            for failure in failures:
                logger.warning("Rule %s failed for %s", failure, descriptor.name)
            return
        for failure in failures:
            logger.error("Rule %s failed for %s", failure, descriptor.name)
        raise BuildError(_strict_failure_message(descriptor, failures))

    def client_scripts(self, descriptor: ComponentDescriptor) -> list[str]:
        """Return the script blocks to inject into ``descriptor``'s page."""
        scripts: list[str] = []
        if descriptor.config.get("auth") is True:
            endpoint = self.site_config.auth_endpoint
            if endpoint:
                scripts.append(build_auth_script(endpoint))
            else:
                logger.warning(
                    "%s requests auth but no auth endpoint is configured.",
                    descriptor.name,
                )
        scripts.extend(descriptor.client_scripts)
        return scripts

    def _copy_assets(self, staging: Path) -> None:
        assets_dir = self.site_config.resolve(self.site_config.assets_dir)
        if not assets_dir.is_dir():
            logger.debug("No assets directory at %s.", assets_dir)
            return
        shutil.copytree(assets_dir, staging / "assets", dirs_exist_ok=True)


def _strict_failure_message(
    descriptor: ComponentDescriptor, failures: list[RuleFailure]
) -> str:
    names = ", ".join(failure.name for failure in failures)
    return f"Build stopped: {descriptor.name} failed rule(s) {names}."


__all__ = ["BODY_CLOSE", "SiteBuilder", "inject_scripts"]

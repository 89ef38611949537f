"""Plugin discovery and injector assembly.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints,
plus local directory discovery from ``.lambdakube/modules/``, plus explicit
``package.module:function`` references from config or ``--module``.

Modules are applied in registration order, so rule registration order (and
with it the output order of independent rules) is stable across runs.
"""

from __future__ import annotations

import importlib
import importlib.util
import inspect
import logging
import sys
from collections.abc import Callable
from pathlib import Path

import pluggy

from lambdakube.domain.describers import standard_descs
from lambdakube.domain.errors import ModuleLoadError
from lambdakube.domain.injector import Injector
from lambdakube.plugins.hookspecs import PROJECT_NAME, LambdaKubeHookSpec, hookimpl

ENTRY_POINT_GROUP = "lambdakube.modules"

logger = logging.getLogger(__name__)


class ModulePlugin:
    """Adapt a plain ``module(injector)`` function to the plugin hook."""

    def __init__(self, func: Callable[[Injector], object]) -> None:
        self.func = func

    @hookimpl
    def lambdakube_module(self, injector: Injector) -> None:
        self.func(injector)


class PluginManager:
    """Manages module discovery, loading, and injector assembly."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(LambdaKubeHookSpec)

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Discover plugins from entry points and an optional local directory.

        Entry points in the ``lambdakube.modules`` group may name either a
        plugin object or a plain module function. Returns a list of loaded
        plugin names.
        """
        self._load_entry_points()
        if local_dir is not None:
            self._discover_local(local_dir)
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def register_module(self, func: Callable[[Injector], object], name: str | None = None) -> None:
        """Register a plain module function as a plugin."""
        resolved_name = name or f"{func.__module__}:{func.__qualname__}"
        base, n = resolved_name, 1
        while self._pm.has_plugin(resolved_name):
            n += 1
            resolved_name = f"{base}#{n}"
        self.register_plugin(ModulePlugin(func), name=resolved_name)

    def load_ref(self, ref: str) -> None:
        """Import and register a ``package.module:function`` reference.

        Raises:
            ModuleLoadError: The reference is malformed, the import fails,
                or the attribute is missing or not callable.
        """
        module_name, sep, attr = ref.partition(":")
        if not sep or not module_name or not attr:
            raise ModuleLoadError(ref, "expected 'package.module:function'")
        try:
            module = importlib.import_module(module_name)
        except ImportError as exc:
            raise ModuleLoadError(ref, str(exc)) from exc

        target: object = module
        for part in attr.split("."):
            target = getattr(target, part, None)
            if target is None:
                raise ModuleLoadError(ref, f"no attribute {attr!r}")
        if not callable(target):
            raise ModuleLoadError(ref, f"{attr!r} is not callable")
        self.register_module(target, name=ref)

    def list_plugin_names(self) -> list[str]:
        """Return names of all registered plugins, in registration order."""
        return [impl.plugin_name for impl in self._pm.hook.lambdakube_module.get_hookimpls()]

    def build_injector(self, *, standard: bool = True) -> Injector:
        """Create an injector and apply every registered module to it.

        pluggy calls hooks last-registered-first; modules are applied here
        in registration order instead. *standard* adds the standard
        describers after all modules.
        """
        injector = Injector()
        for impl in self._pm.hook.lambdakube_module.get_hookimpls():
            impl.function(injector=injector)
        if standard:
            standard_descs(injector)
        return injector

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def _load_entry_points(self) -> None:
        """Load ``lambdakube.modules`` entry points.

        Errors are logged as warnings: a broken installed module must not
        prevent the rest of the system from resolving.
        """
        from importlib.metadata import entry_points

        for ep in entry_points(group=ENTRY_POINT_GROUP):
            if self._pm.has_plugin(ep.name):
                continue
            try:
                obj = ep.load()
            except Exception:
                logger.warning("Failed to load entry point %s", ep.name, exc_info=True)
                continue
            self._register_loaded(obj, ep.name)

    def _register_loaded(self, obj: object, name: str) -> None:
        """Register a loaded object: plugin class, plugin instance, or function."""
        if inspect.isclass(obj):
            if not self._has_hook_impls(obj):
                logger.warning("Plugin class %s has no lambdakube hooks", name)
                return
            try:
                obj = obj()
            except Exception:
                logger.warning("Failed to instantiate plugin %s", name, exc_info=True)
                return
            self.register_plugin(obj, name=name)
        elif self._has_hook_impls(type(obj)):
            self.register_plugin(obj, name=name)
        elif callable(obj):
            self.register_module(obj, name=name)
        else:
            logger.warning("Ignoring plugin %s: not a module or plugin", name)

    # ------------------------------------------------------------------
    # Local directory discovery
    # ------------------------------------------------------------------

    def _discover_local(self, local_dir: Path) -> None:
        """Scan *local_dir* for single-file Python modules.

        Each ``*.py`` file (excluding ``_``-prefixed names) is loaded as a
        module. Classes carrying hookimpl-decorated methods are instantiated
        and registered; otherwise a top-level ``module`` function is
        registered.

        Errors are logged as warnings but never raised.
        """
        if not local_dir.is_dir():
            return

        for py_file in sorted(local_dir.glob("*.py")):
            if py_file.name.startswith("_"):
                continue
            module_name = f"lambdakube_local_module_{py_file.stem}"
            try:
                spec = importlib.util.spec_from_file_location(module_name, py_file)
                if spec is None or spec.loader is None:
                    logger.warning("Could not create module spec for %s", py_file)
                    continue
                module = importlib.util.module_from_spec(spec)
                sys.modules[module_name] = module
                spec.loader.exec_module(module)
            except Exception:
                logger.warning("Failed to load local module %s", py_file, exc_info=True)
                sys.modules.pop(module_name, None)
                continue

            registered = False
            for _attr_name, obj in inspect.getmembers(module, inspect.isclass):
                if obj.__module__ != module_name:
                    continue  # skip imported classes
                if not self._has_hook_impls(obj):
                    continue
                self._register_loaded(obj, f"{module_name}.{obj.__name__}")
                registered = True

            func = getattr(module, "module", None)
            if not registered and callable(func):
                self.register_module(func, name=module_name)
                logger.debug("Loaded local module function from %s", py_file)

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """Check whether *cls* has any methods decorated with ``@hookimpl``.

        Pluggy's ``HookimplMarker("lambdakube")`` sets a ``lambdakube_impl``
        attribute on decorated methods.
        """
        for name in dir(cls):
            if name.startswith("_"):
                continue
            method = getattr(cls, name, None)
            if callable(method) and getattr(method, "lambdakube_impl", None):
                return True
        return False

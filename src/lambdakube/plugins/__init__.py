"""Extension layer — system modules via pluggy.

Discovery: entry_points (pip-installed) in the ``lambdakube.modules`` group,
single-file modules in ``.lambdakube/modules/``, and explicit
``package.module:function`` references.
INVARIANT: a discovered plugin that fails to load is a warning, never an
error. An explicit reference that fails to load is an error.
"""

from lambdakube.plugins.hookspecs import hookimpl
from lambdakube.plugins.manager import PluginManager

__all__ = ["PluginManager", "hookimpl"]

"""Pluggy hook specifications for lambdakube system modules.

A plugin contributes rules, describers, and tests to the injector being
assembled for a resolution run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from lambdakube.domain.injector import Injector

PROJECT_NAME = "lambdakube"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class LambdaKubeHookSpec:
    """Hook specifications for the lambdakube plugin system."""

    @hookspec
    def lambdakube_module(self, injector: Injector) -> None:
        """Register rules and describers on *injector*."""

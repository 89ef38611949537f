"""BaseService — shared foundation for lambdakube services.

Every service receives the assembled :class:`Injector` and the unified
settings at construction time. Services convert expected failures
(:class:`~lambdakube.domain.errors.LambdaKubeError`) into failed
:class:`ServiceResult`\\ s; anything else propagates.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from lambdakube.infrastructure.kubectl import Kubectl

if TYPE_CHECKING:
    from lambdakube.config.settings import LkSettings
    from lambdakube.domain.injector import Injector


class BaseService:
    """Base for service-layer classes.

    Usage::

        class DeployService(BaseService):
            def render(self, values) -> ServiceResult:
                try:
                    objects = get_deployable(self._injector, values)
                except LambdaKubeError as exc:
                    return ServiceResult.failure("render", exc)
                ...
    """

    def __init__(
        self,
        injector: Injector,
        settings: LkSettings,
        *,
        kubectl: Kubectl | None = None,
    ) -> None:
        self._injector = injector
        self._settings = settings
        self._kubectl = kubectl or Kubectl(settings.deploy.kubectl)

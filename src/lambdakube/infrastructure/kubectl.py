"""Thin wrapper around the ``kubectl`` binary.

Every failure (non-zero exit, missing binary) surfaces as
:class:`~lambdakube.domain.errors.KubectlError`. Output is captured, never
streamed.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from lambdakube.domain.errors import KubectlError

logger = logging.getLogger(__name__)


class Kubectl:
    """Runs kubectl commands, optionally scoped to a namespace."""

    def __init__(self, binary: str = "kubectl") -> None:
        self._binary = binary

    def run(self, *args: str, namespace: str | None = None) -> str:
        """Run ``kubectl [-n namespace] args...`` and return its stdout."""
        cmd = [self._binary]
        if namespace is not None:
            cmd += ["-n", namespace]
        cmd += list(args)
        logger.debug("Running %s", " ".join(cmd))
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError as exc:
            raise KubectlError(cmd, str(exc)) from exc
        if proc.returncode != 0:
            raise KubectlError(cmd, proc.stderr)
        return proc.stdout

    def kube_apply(self, content: str, path: Path, *, namespace: str | None = None) -> bool:
        """Write *content* to *path* and apply it, unless nothing changed.

        Returns True when kubectl was invoked. When apply fails the file is
        removed, so the next call retries instead of seeing identical content.
        """
        if path.is_file() and path.read_text(encoding="utf-8") == content:
            logger.debug("Unchanged manifest %s, skipping apply", path)
            return False

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        try:
            self.run("apply", "-f", str(path), namespace=namespace)
        except KubectlError:
            path.unlink(missing_ok=True)
            raise
        return True

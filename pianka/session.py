"""
Per-invocation session for a Composer environment.

A session owns the resources that must not outlive the command:
- A private, temporary KUBECONFIG file that gcloud writes cluster
  credentials into and kubectl reads them from
- The fetchers and resolver bound to that file

Sessions are context managers; the kubeconfig file is removed on every
exit path.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog

from pianka.config import ComposerConfig, Config
from pianka.fetchers.composer import ComposerFetcher
from pianka.fetchers.kubernetes import KubernetesFetcher
from pianka.resolver import ResourceResolver

logger = structlog.get_logger(__name__)


class SessionError(Exception):
    """Raised when a session is used outside its ``with`` block."""


class ComposerSession:
    """Scoped access to one Composer environment.

    Example:
        >>> with ComposerSession(target, config) as session:
        ...     worker = session.resolver.resolve_worker()
    """

    def __init__(self, target: ComposerConfig, config: Config):
        self.target = target
        self.config = config
        self.kubeconfig_path: Optional[Path] = None
        self._composer: Optional[ComposerFetcher] = None
        self._kubernetes: Optional[KubernetesFetcher] = None
        self._resolver: Optional[ResourceResolver] = None

    def __enter__(self) -> "ComposerSession":
        fd, path = tempfile.mkstemp(prefix="pianka-kubeconfig-")
        os.close(fd)
        self.kubeconfig_path = Path(path)
        logger.debug("session.open", kubeconfig=path)

        env = {"KUBECONFIG": path}
        self._composer = ComposerFetcher(self.config, env=env)
        self._kubernetes = KubernetesFetcher(self.config, env=env)
        self._resolver = ResourceResolver(self.target, self.config, self._composer, self._kubernetes)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self.kubeconfig_path is not None:
            self.kubeconfig_path.unlink(missing_ok=True)
            logger.debug("session.close", kubeconfig=str(self.kubeconfig_path))
            self.kubeconfig_path = None
        self._composer = None
        self._kubernetes = None
        self._resolver = None

    def _require(self, value):
        if value is None:
            raise SessionError("Session is not open")
        return value

    @property
    def composer(self) -> ComposerFetcher:
        return self._require(self._composer)

    @property
    def kubernetes(self) -> KubernetesFetcher:
        return self._require(self._kubernetes)

    @property
    def resolver(self) -> ResourceResolver:
        return self._require(self._resolver)

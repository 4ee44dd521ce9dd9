"""
Fetchers for the external tools Pianka drives.

- ComposerFetcher: gcloud (environment metadata, cluster credentials)
- KubernetesFetcher: kubectl (namespaces, pods, exec, port-forward)
"""

from pianka.fetchers.base import (
    BaseFetcher,
    CommandFailedError,
    FetchError,
    ResourceNotFoundError,
    ToolNotFoundError,
    WorkerNotFoundError,
)
from pianka.fetchers.composer import ComposerFetcher
from pianka.fetchers.kubernetes import KubernetesFetcher

__all__ = [
    "BaseFetcher",
    "CommandFailedError",
    "ComposerFetcher",
    "FetchError",
    "KubernetesFetcher",
    "ResourceNotFoundError",
    "ToolNotFoundError",
    "WorkerNotFoundError",
]

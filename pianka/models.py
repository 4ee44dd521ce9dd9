"""Records describing a resolved Composer environment.

All of these are derived per invocation from gcloud/kubectl output and are
never persisted.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pianka.connection import ConnectionString

_CLUSTER_PATH_RE = re.compile(
    r"^projects/(?P<project>[^/]+)/(?P<kind>zones|locations|regions)/(?P<location>[^/]+)/clusters/(?P<name>[^/]+)$"
)


@dataclass(frozen=True)
class ClusterReference:
    """A GKE cluster as referenced by a Composer environment.

    Composer reports the cluster either as a bare name or as a resource
    path such as ``projects/p/zones/us-central1-a/clusters/c`` (Composer 1)
    or ``projects/p/locations/us-central1/clusters/c`` (Composer 2).
    """

    name: str
    project: str = ""
    location: str = ""
    is_zonal: bool = False

    @classmethod
    def parse(cls, value: str) -> "ClusterReference":
        value = value.strip().strip("/")
        match = _CLUSTER_PATH_RE.match(value)
        if not match:
            return cls(name=value)
        location = match.group("location")
        # A location ending in a zone letter (us-central1-a) is a zone.
        is_zonal = match.group("kind") == "zones" or bool(re.search(r"-[a-z]$", location))
        return cls(
            name=match.group("name"),
            project=match.group("project"),
            location=location,
            is_zonal=is_zonal,
        )


@dataclass
class ComposerEnvironment:
    """Subset of ``gcloud composer environments describe`` output."""

    name: str
    location: str
    gke_cluster: str = ""
    dag_gcs_prefix: str = ""
    airflow_uri: str = ""

    @classmethod
    def from_dict(cls, name: str, location: str, data: Dict[str, Any]) -> "ComposerEnvironment":
        config = data.get("config") or {}
        return cls(
            name=name,
            location=location,
            gke_cluster=config.get("gkeCluster", ""),
            dag_gcs_prefix=config.get("dagGcsPrefix", ""),
            airflow_uri=config.get("airflowUri", ""),
        )

    @property
    def dag_bucket(self) -> str:
        """Bucket name without the ``gs://`` scheme and ``/dags`` suffix."""
        bucket = self.dag_gcs_prefix
        if bucket.endswith("/dags"):
            bucket = bucket[: -len("/dags")]
        if bucket.startswith("gs://"):
            bucket = bucket[len("gs://"):]
        return bucket

    @property
    def cluster(self) -> ClusterReference:
        return ClusterReference.parse(self.gke_cluster)


@dataclass(frozen=True)
class WorkerPod:
    """The Airflow worker pod that commands are executed in."""

    cluster_name: str
    namespace: str
    pod_name: str


@dataclass(frozen=True)
class DatabaseCredentials:
    """Connection parameters of the Airflow metadata database."""

    url: str
    user: str
    password: str
    host: str
    port: int
    database: str

    @classmethod
    def from_connection_string(cls, url: str, conn: ConnectionString) -> "DatabaseCredentials":
        return cls(
            url=url,
            user=conn.user,
            password=conn.password,
            host=conn.host,
            port=conn.port_number,
            database=conn.database,
        )


@dataclass
class ResolvedEnvironment:
    """Everything ``info`` reports about an environment."""

    dag_bucket: str
    worker: WorkerPod
    web_ui_url: str
    database: Optional[DatabaseCredentials] = None

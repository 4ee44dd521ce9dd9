"""Resolution of live identifiers for a Composer environment.

Turns a (name, location) pair into the GKE cluster, namespace, worker pod,
web UI address and database credentials by querying gcloud and kubectl.
Each lookup runs at most once per resolver instance.
"""

from typing import Optional

import structlog

from pianka.config import ComposerConfig, Config
from pianka.connection import parse_connection_string
from pianka.fetchers.base import WorkerNotFoundError
from pianka.fetchers.composer import ComposerFetcher
from pianka.fetchers.kubernetes import KubernetesFetcher
from pianka.models import ComposerEnvironment, DatabaseCredentials, ResolvedEnvironment, WorkerPod

logger = structlog.get_logger(__name__)


class ResourceResolver:
    """Resolve and memoize the resources of one Composer environment."""

    def __init__(
        self,
        target: ComposerConfig,
        config: Config,
        composer: ComposerFetcher,
        kubernetes: KubernetesFetcher,
    ):
        self.target = target
        self.config = config
        self.composer = composer
        self.kubernetes = kubernetes
        self._environment: Optional[ComposerEnvironment] = None
        self._worker: Optional[WorkerPod] = None
        self._database: Optional[DatabaseCredentials] = None

    def describe_environment(self) -> ComposerEnvironment:
        if self._environment is None:
            self._environment = self.composer.describe_environment(
                self.target.composer_name, self.target.composer_location
            )
        return self._environment

    def resolve_bucket(self) -> str:
        logger.debug("fetch_bucket")
        bucket = self.describe_environment().dag_bucket
        logger.debug("resolved.bucket", dag_bucket=bucket)
        return bucket

    def resolve_web_ui(self) -> str:
        logger.debug("fetch_web_ui")
        url = self.describe_environment().airflow_uri
        logger.debug("resolved.web_ui", web_ui_url=url)
        return url

    def resolve_worker(self) -> WorkerPod:
        """Fetch cluster credentials and find a running Airflow worker.

        Raises:
            WorkerNotFoundError: If no running worker pod exists
        """
        if self._worker is not None:
            return self._worker

        logger.debug("fetch_worker")
        cluster = self.describe_environment().cluster
        self.composer.get_cluster_credentials(cluster)

        namespace = self.kubernetes.find_namespace(self.config.namespace_marker)
        if namespace is None:
            logger.debug("resolved.namespace_fallback", marker=self.config.namespace_marker)
            namespace = "default"

        pod_name = self.kubernetes.find_running_pod(namespace, self.config.worker_marker)
        if not pod_name:
            raise WorkerNotFoundError(f"No running {self.config.worker_marker}!")

        self._worker = WorkerPod(cluster_name=cluster.name, namespace=namespace, pod_name=pod_name)
        logger.debug("resolved.worker", cluster=cluster.name, namespace=namespace, worker=pod_name)
        return self._worker

    def resolve_database(self) -> DatabaseCredentials:
        """Read the metadata database URL from the worker environment.

        Raises:
            ConnectionStringError: If the URL does not name a host
        """
        if self._database is not None:
            return self._database

        logger.debug("fetch_database_credentials")
        worker = self.resolve_worker()
        output = self.kubernetes.exec_capture(
            worker.namespace,
            worker.pod_name,
            self.config.worker_container,
            ["bash", "-c", f"echo ${self.config.sql_alchemy_conn_variable}"],
        )
        url = output.strip()
        conn = parse_connection_string(url).require_host()
        self._database = DatabaseCredentials.from_connection_string(url, conn)
        logger.debug(
            "resolved.database",
            host=conn.host,
            port=self._database.port,
            user=conn.user,
            database=conn.database,
        )
        return self._database

    def resolve_all(self) -> ResolvedEnvironment:
        return ResolvedEnvironment(
            dag_bucket=self.resolve_bucket(),
            worker=self.resolve_worker(),
            web_ui_url=self.resolve_web_ui(),
            database=self.resolve_database(),
        )

"""Cloud Composer and GKE lookups via gcloud."""

import json
from typing import List

import structlog

from pianka.fetchers.base import BaseFetcher, FetchError
from pianka.models import ClusterReference, ComposerEnvironment

logger = structlog.get_logger(__name__)


class ComposerFetcher(BaseFetcher):
    """Fetcher for Composer environment metadata and cluster credentials.

    Authentication is delegated to the active gcloud account.
    """

    def _gcloud(self, *args: str) -> List[str]:
        cmd = [self.config.gcloud_binary]
        if self.config.composer_release_track and args and args[0] == "composer":
            cmd.append(self.config.composer_release_track)
        cmd.extend(args)
        return cmd

    def describe_environment(self, name: str, location: str) -> ComposerEnvironment:
        """Describe a Composer environment.

        Raises:
            CommandFailedError: If gcloud fails (unknown environment, no access)
            FetchError: If gcloud output is not valid JSON
        """
        logger.debug("composer.describe", environment=name, location=location)
        cmd = self._gcloud(
            "composer", "environments", "describe", name,
            "--location", location,
            "--format=json",
        )
        output = self._run(cmd)
        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            raise FetchError(f"Unexpected output from gcloud: {e}") from e
        environment = ComposerEnvironment.from_dict(name, location, data)
        logger.debug(
            "composer.described",
            gke_cluster=environment.gke_cluster,
            dag_gcs_prefix=environment.dag_gcs_prefix,
            airflow_uri=environment.airflow_uri,
        )
        return environment

    def get_cluster_credentials(self, cluster: ClusterReference) -> None:
        """Write credentials for the cluster into this fetcher's KUBECONFIG."""
        logger.debug("composer.get_credentials", cluster=cluster.name, location=cluster.location)
        cmd = self._gcloud("container", "clusters", "get-credentials", cluster.name)
        if cluster.location:
            cmd.extend(["--zone" if cluster.is_zonal else "--region", cluster.location])
        if cluster.project:
            cmd.extend(["--project", cluster.project])
        self._run(cmd)

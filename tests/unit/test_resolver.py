"""Unit tests for the resource resolver."""

from unittest.mock import MagicMock

import pytest

from pianka.connection import ConnectionStringError
from pianka.fetchers.base import CommandFailedError, WorkerNotFoundError
from pianka.models import ClusterReference, ComposerEnvironment, WorkerPod
from pianka.resolver import ResourceResolver


@pytest.fixture
def environment():
    return ComposerEnvironment(
        name="env-1",
        location="europe-west1",
        gke_cluster="projects/p/zones/europe-west1-b/clusters/env-1-gke",
        dag_gcs_prefix="gs://env-1-bucket/dags",
        airflow_uri="https://abc-tp.appspot.com",
    )


@pytest.fixture
def composer(environment):
    fetcher = MagicMock()
    fetcher.describe_environment.return_value = environment
    return fetcher


@pytest.fixture
def kubernetes():
    fetcher = MagicMock()
    fetcher.find_namespace.return_value = "composer-1-10-airflow-1"
    fetcher.find_running_pod.return_value = "airflow-worker-abc"
    fetcher.exec_capture.return_value = "mysql+mysqldb://root:pw@airflow-sqlproxy-service.default/composer-db\n"
    return fetcher


@pytest.fixture
def resolver(target, config, composer, kubernetes):
    return ResourceResolver(target, config, composer, kubernetes)


class TestDescribe:
    """Tests for environment-level lookups."""

    def test_describe_is_memoized(self, resolver, composer):
        resolver.resolve_bucket()
        resolver.resolve_web_ui()
        resolver.describe_environment()

        composer.describe_environment.assert_called_once_with("env-1", "europe-west1")

    def test_resolve_bucket(self, resolver):
        assert resolver.resolve_bucket() == "env-1-bucket"

    def test_resolve_web_ui(self, resolver):
        assert resolver.resolve_web_ui() == "https://abc-tp.appspot.com"


class TestResolveWorker:
    """Tests for worker resolution."""

    def test_resolve_worker(self, resolver, composer, kubernetes):
        worker = resolver.resolve_worker()

        assert worker == WorkerPod(
            cluster_name="env-1-gke",
            namespace="composer-1-10-airflow-1",
            pod_name="airflow-worker-abc",
        )
        composer.get_cluster_credentials.assert_called_once_with(
            ClusterReference(name="env-1-gke", project="p", location="europe-west1-b", is_zonal=True)
        )
        kubernetes.find_namespace.assert_called_once_with("composer")
        kubernetes.find_running_pod.assert_called_once_with("composer-1-10-airflow-1", "airflow-worker")

    def test_resolve_worker_is_memoized(self, resolver, composer):
        resolver.resolve_worker()
        resolver.resolve_worker()

        composer.get_cluster_credentials.assert_called_once()

    def test_namespace_falls_back_to_default(self, resolver, kubernetes):
        kubernetes.find_namespace.return_value = None

        assert resolver.resolve_worker().namespace == "default"

    def test_no_running_worker(self, resolver, kubernetes):
        kubernetes.find_running_pod.return_value = None

        with pytest.raises(WorkerNotFoundError, match="No running airflow-worker!"):
            resolver.resolve_worker()

    def test_credential_failure_aborts(self, resolver, composer, kubernetes):
        composer.get_cluster_credentials.side_effect = CommandFailedError(["gcloud"], 1, "denied")

        with pytest.raises(CommandFailedError):
            resolver.resolve_worker()

        kubernetes.find_namespace.assert_not_called()


class TestResolveDatabase:
    """Tests for database credential resolution."""

    def test_resolve_database(self, resolver, kubernetes):
        db = resolver.resolve_database()

        assert db.user == "root"
        assert db.password == "pw"
        assert db.host == "airflow-sqlproxy-service.default"
        assert db.port == 3306
        assert db.database == "composer-db"
        assert db.url == "mysql+mysqldb://root:pw@airflow-sqlproxy-service.default/composer-db"
        kubernetes.exec_capture.assert_called_once_with(
            "composer-1-10-airflow-1",
            "airflow-worker-abc",
            "airflow-worker",
            ["bash", "-c", "echo $AIRFLOW__CORE__SQL_ALCHEMY_CONN"],
        )

    def test_resolve_database_is_memoized(self, resolver, kubernetes):
        resolver.resolve_database()
        resolver.resolve_database()

        kubernetes.exec_capture.assert_called_once()

    def test_malformed_connection_string(self, resolver, kubernetes):
        kubernetes.exec_capture.return_value = "\n"

        with pytest.raises(ConnectionStringError):
            resolver.resolve_database()

    def test_requires_worker(self, resolver, kubernetes):
        kubernetes.find_running_pod.return_value = None

        with pytest.raises(WorkerNotFoundError):
            resolver.resolve_database()

        kubernetes.exec_capture.assert_not_called()


def test_resolve_all(resolver):
    env = resolver.resolve_all()

    assert env.dag_bucket == "env-1-bucket"
    assert env.web_ui_url == "https://abc-tp.appspot.com"
    assert env.worker.pod_name == "airflow-worker-abc"
    assert env.database.database == "composer-db"

"""Kubernetes access for the Composer GKE cluster via kubectl."""

import json
import subprocess
import sys
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import structlog

from pianka.fetchers.base import BaseFetcher, FetchError, ToolNotFoundError
from pianka.utils.command import run_interactive, start_background

logger = structlog.get_logger(__name__)

_TUNNEL_STOP_TIMEOUT = 5


class KubernetesFetcher(BaseFetcher):
    """Fetcher for namespaces and pods, plus exec and port-forward helpers.

    Uses the KUBECONFIG from the fetcher environment, which the Composer
    fetcher fills via ``gcloud container clusters get-credentials``.
    """

    def _kubectl(self, *args: str) -> List[str]:
        return [self.config.kubectl_binary, *args]

    def _get_items(self, *args: str) -> List[Dict[str, Any]]:
        output = self._run(self._kubectl("get", *args, "-o", "json"))
        try:
            return json.loads(output).get("items", [])
        except (json.JSONDecodeError, AttributeError) as e:
            raise FetchError(f"Unexpected output from kubectl: {e}") from e

    def list_namespaces(self) -> List[str]:
        """Return namespace names in the order kubectl lists them."""
        return [item.get("metadata", {}).get("name", "") for item in self._get_items("namespaces")]

    def list_pods(self, namespace: str) -> List[Dict[str, Any]]:
        """Return pods of a namespace as simplified records.

        Each record has ``name``, ``phase`` and ``terminating`` keys.
        """
        pods = []
        for item in self._get_items("pods", "--namespace", namespace):
            metadata = item.get("metadata", {})
            status = item.get("status", {})
            pods.append(
                {
                    "name": metadata.get("name", ""),
                    "phase": status.get("phase", ""),
                    "terminating": bool(metadata.get("deletionTimestamp")),
                }
            )
        return pods

    def find_namespace(self, marker: str) -> Optional[str]:
        """First namespace whose name contains the marker."""
        for name in self.list_namespaces():
            if marker in name:
                return name
        return None

    def find_running_pod(self, namespace: str, marker: str) -> Optional[str]:
        """First running, non-terminating pod whose name contains the marker."""
        for pod in self.list_pods(namespace):
            if marker in pod["name"] and pod["phase"] == "Running" and not pod["terminating"]:
                return pod["name"]
        return None

    def exec_command(
        self,
        namespace: str,
        pod: str,
        container: str,
        command: List[str],
        interactive: bool = False,
    ) -> List[str]:
        """Build the kubectl exec command line for a pod."""
        return self._kubectl(
            "exec",
            f"--namespace={namespace}",
            "-it" if interactive else "-t",
            pod,
            "--container",
            container,
            "--",
            *command,
        )

    def exec_capture(self, namespace: str, pod: str, container: str, command: List[str]) -> str:
        """Run a command in a pod and return its stdout."""
        return self._run(self.exec_command(namespace, pod, container, command))

    def exec_attached(
        self,
        namespace: str,
        pod: str,
        container: str,
        command: List[str],
        interactive: bool = False,
    ) -> int:
        """Run a command in a pod with output streamed to the terminal."""
        cmd = self.exec_command(namespace, pod, container, command, interactive=interactive)
        try:
            return run_interactive(cmd, env=self.env)
        except FileNotFoundError as e:
            raise ToolNotFoundError(f"{cmd[0]} not found in PATH") from e

    def port_forward_command(self, namespace: str, target: str, local_port: int, remote_port: int) -> List[str]:
        ports = str(remote_port) if local_port == remote_port else f"{local_port}:{remote_port}"
        return self._kubectl("port-forward", f"--namespace={namespace}", target, ports)

    def port_forward_blocking(self, namespace: str, target: str, local_port: int, remote_port: int) -> int:
        """Forward a local port in the foreground until interrupted."""
        cmd = self.port_forward_command(namespace, target, local_port, remote_port)
        try:
            return run_interactive(cmd, env=self.env)
        except FileNotFoundError as e:
            raise ToolNotFoundError(f"{cmd[0]} not found in PATH") from e

    @contextmanager
    def port_forward(
        self,
        namespace: str,
        target: str,
        local_port: int,
        remote_port: int,
        grace_seconds: float = 0,
    ) -> Iterator[subprocess.Popen]:
        """Run a port-forward in the background for the duration of the block.

        kubectl output goes to stderr so stdout stays free for the caller.
        After starting, waits ``grace_seconds`` without checking readiness.
        The process is always stopped on exit.
        """
        cmd = self.port_forward_command(namespace, target, local_port, remote_port)
        try:
            process = start_background(cmd, env=self.env, stdout=sys.stderr)
        except FileNotFoundError as e:
            raise ToolNotFoundError(f"{cmd[0]} not found in PATH") from e
        logger.debug("tunnel.started", pid=process.pid, target=target, local_port=local_port)
        try:
            if grace_seconds:
                time.sleep(grace_seconds)
            if process.poll() is not None:
                logger.warning("tunnel.exited_early", exit_code=process.returncode)
            yield process
        finally:
            _stop_process(process)


def _stop_process(process: subprocess.Popen) -> None:
    if process.poll() is not None:
        logger.debug("tunnel.already_exited", pid=process.pid, exit_code=process.returncode)
        return
    process.terminate()
    try:
        process.wait(timeout=_TUNNEL_STOP_TIMEOUT)
    except subprocess.TimeoutExpired:
        logger.warning("tunnel.kill", pid=process.pid)
        process.kill()
        process.wait()
    logger.debug("tunnel.stopped", pid=process.pid)

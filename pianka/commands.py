"""Implementations of the Pianka verbs.

Each function resolves what it needs through an open ComposerSession,
delegates to an external command and returns that command's exit code.
"""

import shlex
from typing import List, Optional

import structlog
import typer

from pianka.fetchers.base import ToolNotFoundError
from pianka.session import ComposerSession
from pianka.utils.command import run_interactive

logger = structlog.get_logger(__name__)

TUNNEL_HOST = "127.0.0.1"


def shell(session: ComposerSession) -> int:
    """Open an interactive bash shell in the Airflow worker."""
    worker = session.resolver.resolve_worker()
    return session.kubernetes.exec_attached(
        worker.namespace,
        worker.pod_name,
        session.config.worker_container,
        ["/bin/bash"],
        interactive=True,
    )


def info(session: ComposerSession) -> int:
    """Print basic information about the environment."""
    env = session.resolver.resolve_all()
    db = env.database
    lines = [
        f"DAG Bucket:            {env.dag_bucket}",
        f"GKE Cluster Name:      {env.worker.cluster_name}",
        f"GKE Namespace:         {env.worker.namespace}",
        f"GKE Worker Name:       {env.worker.pod_name}",
        f"WEB UI URL:            {env.web_ui_url}",
        f"SQL Alchemy URL: {db.url}",
        f"  Host:          {db.host}",
        f"  Port:          {db.port}",
        f"  User:          {db.user}",
        f"  Password:      {db.password}",
        f"  Database:      {db.database}",
    ]
    for line in lines:
        typer.echo(line)
    return 0


def run(session: ComposerSession, args: List[str], interactive: bool = False) -> int:
    """Run an arbitrary command in the Airflow worker."""
    worker = session.resolver.resolve_worker()
    logger.debug("run", command=" ".join(args), worker=worker.pod_name)
    return session.kubernetes.exec_attached(
        worker.namespace,
        worker.pod_name,
        session.config.worker_container,
        list(args),
        interactive=interactive,
    )


def mysql(session: ComposerSession, args: List[str]) -> int:
    """Start the MySQL console inside the worker, passing extra client arguments."""
    worker = session.resolver.resolve_worker()
    db = session.resolver.resolve_database()
    command = [
        "mysql",
        f"--user={db.user}",
        f"--password={db.password}",
        f"--host={db.host}",
        f"--port={db.port}",
        db.database,
        *args,
    ]
    return session.kubernetes.exec_attached(
        worker.namespace,
        worker.pod_name,
        session.config.worker_container,
        command,
        interactive=True,
    )


def tunnel_instructions(user: str, password: str, database: str, port: int) -> List[str]:
    """Lines explaining how to connect through a local tunnel."""
    return [
        "To connect, run:",
        "mysql \\",
        f"  --user={shlex.quote(user)} \\",
        f"  --password={shlex.quote(password)} \\",
        f"  --host={TUNNEL_HOST} \\",
        f"  --port={port} \\",
        f"  {shlex.quote(database)}",
        "",
        "or",
        "",
        "Configure IDE to use this connection URI:",
        f"jdbc:mysql://{user}:{password}@{TUNNEL_HOST}:{port}/{database}",
    ]


def mysqltunnel(session: ComposerSession, port: Optional[int] = None) -> int:
    """Print connection instructions and forward a local port until interrupted.

    The local port defaults to the configured tunnel port.
    """
    config = session.config
    port = port or config.tunnel_port
    session.resolver.resolve_worker()
    db = session.resolver.resolve_database()
    for line in tunnel_instructions(db.user, db.password, db.database, port):
        typer.echo(line)
    return session.kubernetes.port_forward_blocking(
        config.sqlproxy_namespace, config.sqlproxy_target, port, config.sqlproxy_port
    )


def mysqldump(session: ComposerSession, args: List[str]) -> int:
    """Dump the database through a temporary background tunnel.

    The dump goes to stdout; tunnel output goes to stderr. The tunnel is
    stopped whether or not the dump succeeds.
    """
    session.resolver.resolve_worker()
    db = session.resolver.resolve_database()
    config = session.config
    command = [
        config.mysqldump_binary,
        f"--user={db.user}",
        f"--password={db.password}",
        f"--host={TUNNEL_HOST}",
        f"--port={config.tunnel_port}",
        db.database,
        *args,
    ]
    with session.kubernetes.port_forward(
        config.sqlproxy_namespace,
        config.sqlproxy_target,
        config.tunnel_port,
        config.sqlproxy_port,
        grace_seconds=config.tunnel_grace_seconds,
    ):
        try:
            return run_interactive(command)
        except FileNotFoundError as e:
            raise ToolNotFoundError(f"{command[0]} not found in PATH") from e

"""
Unit tests for the per-invocation Composer session.
"""

import os

import pytest

from pianka.fetchers.composer import ComposerFetcher
from pianka.fetchers.kubernetes import KubernetesFetcher
from pianka.resolver import ResourceResolver
from pianka.session import ComposerSession, SessionError


class TestComposerSession:
    """Tests for ComposerSession lifecycle."""

    def test_creates_and_removes_kubeconfig(self, target, config):
        with ComposerSession(target, config) as session:
            path = session.kubeconfig_path
            assert path.exists()

        assert not path.exists()
        assert session.kubeconfig_path is None

    def test_removes_kubeconfig_on_error(self, target, config):
        with pytest.raises(RuntimeError):
            with ComposerSession(target, config) as session:
                path = session.kubeconfig_path
                raise RuntimeError("boom")

        assert not path.exists()

    def test_fetchers_share_kubeconfig(self, target, config, monkeypatch):
        monkeypatch.delenv("KUBECONFIG", raising=False)

        with ComposerSession(target, config) as session:
            assert isinstance(session.composer, ComposerFetcher)
            assert isinstance(session.kubernetes, KubernetesFetcher)
            assert isinstance(session.resolver, ResourceResolver)
            expected = str(session.kubeconfig_path)
            assert session.composer.env["KUBECONFIG"] == expected
            assert session.kubernetes.env["KUBECONFIG"] == expected
            assert session.resolver.kubernetes is session.kubernetes
            assert "KUBECONFIG" not in os.environ

    def test_close_tolerates_missing_file(self, target, config):
        with ComposerSession(target, config) as session:
            session.kubeconfig_path.unlink()

    def test_use_outside_block(self, target, config):
        session = ComposerSession(target, config)

        with pytest.raises(SessionError):
            session.resolver

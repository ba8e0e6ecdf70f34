# SPDX-License-Identifier: Apache-2.0

import pytest

from rosagitops.config import LayersConfig
from rosagitops.kube import KubeClient

from .fakes import API_URL, FakeSession, ROLE_ARN


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(session):
    return KubeClient(API_URL, "sha256~token", session=session)


@pytest.fixture
def config():
    return LayersConfig(
        {
            "cluster_name": "test",
            "aws_region": "us-east-1",
            "gitops_repo_url": "https://github.com/example/rosa-gitops.git",
            "layers": {
                "monitoring": {
                    "enabled": True,
                    "loki_bucket": "test-loki",
                    "loki_role_arn": ROLE_ARN,
                },
                "oadp": {
                    "enabled": True,
                    "bucket": "test-backups",
                    "role_arn": ROLE_ARN,
                },
                "cert-manager": {
                    "enabled": False,
                    "domain": "apps.example.com",
                    "hosted_zone_id": "Z0123456789ABC",
                    "acme_email": "admin@example.com",
                },
                "terminal": {"enabled": True},
            },
        }
    )

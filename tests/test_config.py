# SPDX-License-Identifier: Apache-2.0

import pytest

from rosagitops.config import ConfigError, LayersConfig, load_config

from .fakes import ROLE_ARN

GOV_ROLE_ARN = "arn:aws-us-gov:iam::123456789012:role/test-role"


def test_defaults():
    config = LayersConfig()

    assert config.enabled_layers() == []
    assert config.layer("monitoring")["loki_retention_days"] == 7
    assert config.layer("monitoring")["prometheus_retention_days"] == 15
    config.validate()


def test_valid(config):
    config.validate()
    assert config.enabled_layers() == ["monitoring", "oadp", "terminal"]


def test_errors_are_collected(config):
    config.layers["monitoring"]["loki_retention_days"] = 0
    config.layers["monitoring"]["prometheus_retention_days"] = 91
    config.layers["oadp"]["bucket"] = "Invalid_Bucket"

    with pytest.raises(ConfigError) as excinfo:
        config.validate()

    assert len(excinfo.value.errors) == 3
    assert "monitoring.loki_retention_days must be between 1 and 365" in excinfo.value.errors


def test_unknown_layer():
    config = LayersConfig({"layers": {"service-mesh": {"enabled": True}}})

    with pytest.raises(ConfigError) as excinfo:
        config.validate()
    assert "Unknown layer 'service-mesh'" in excinfo.value.errors[0]


def test_partition():
    assert LayersConfig({"aws_region": "us-east-1"}).partition == "aws"
    assert LayersConfig({"aws_region": "us-gov-west-1"}).partition == "aws-us-gov"


def test_govcloud_role_arn():
    data = {
        "aws_region": "us-gov-west-1",
        "layers": {
            "oadp": {"enabled": True, "bucket": "backups", "role_arn": GOV_ROLE_ARN}
        },
    }
    LayersConfig(data).validate()

    data["layers"]["oadp"]["role_arn"] = ROLE_ARN
    with pytest.raises(ConfigError) as excinfo:
        LayersConfig(data).validate()
    assert "aws-us-gov" in excinfo.value.errors[0]


@pytest.mark.parametrize("region", ["us-east-1", "eu-central-1", "us-gov-east-1"])
def test_valid_regions(region):
    LayersConfig({"aws_region": region}).validate()


@pytest.mark.parametrize("region", ["useast1", "US-EAST-1", "us-east"])
def test_invalid_regions(region):
    with pytest.raises(ConfigError):
        LayersConfig({"aws_region": region}).validate()


def test_cert_manager_requires_domain_and_email():
    config = LayersConfig({"layers": {"cert-manager": {"enabled": True}}})

    with pytest.raises(ConfigError) as excinfo:
        config.validate()

    assert len(excinfo.value.errors) == 3


def test_configmap_data(config):
    data = config.configmap_data()

    assert data["aws_region"] == "us-east-1"
    assert data["layer_monitoring_loki_retention_days"] == "7"
    assert data["layer_cert_manager_enabled"] == "false"
    assert data["layer_cert_manager_domain"] == "apps.example.com"
    assert "layer_cert_manager_role_arn" not in data


def test_load_config(tmp_path):
    path = tmp_path / "gitops-layers.yml"
    path.write_text(
        "cluster_name: demo\n"
        "aws_region: eu-west-1\n"
        "layers:\n"
        "  terminal:\n"
        "    enabled: true\n"
    )

    config = load_config(str(path))

    assert config.cluster_name == "demo"
    assert config.enabled_layers() == ["terminal"]


def test_load_config_missing(tmp_path):
    path = str(tmp_path / "missing.yml")

    assert load_config(path, required=False).enabled_layers() == []
    with pytest.raises(ConfigError):
        load_config(path)


def test_load_config_not_a_mapping(tmp_path):
    path = tmp_path / "gitops-layers.yml"
    path.write_text("- terminal\n")

    with pytest.raises(ConfigError):
        load_config(str(path))


def test_named_layers_are_validated_when_disabled():
    config = LayersConfig()
    config.validate()

    with pytest.raises(ConfigError) as excinfo:
        config.validate(layers=["oadp", "terminal"])

    assert excinfo.value.errors == [
        "oadp.bucket is required",
        "oadp.role_arn is required",
    ]

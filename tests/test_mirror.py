# SPDX-License-Identifier: Apache-2.0

import pytest
import yaml

from rosagitops import mirror

ECR_URL = "123456789012.dkr.ecr.us-east-1.amazonaws.com"


@pytest.mark.parametrize(
    "url", [ECR_URL, f"https://{ECR_URL}", f"{ECR_URL}/mirror"]
)
def test_registry_host(url):
    assert mirror.registry_host(url) == ECR_URL


def test_imageset_config_minimal():
    config = yaml.safe_load(mirror.imageset_config("minimal", "4.18"))

    assert config["kind"] == "ImageSetConfiguration"
    assert config["mirror"]["platform"]["channels"][0]["name"] == "stable-4.18"
    operators = config["mirror"]["operators"][0]
    assert operators["catalog"] == "registry.redhat.io/redhat/redhat-operator-index:v4.18"
    assert [package["name"] for package in operators["packages"]] == [
        "openshift-gitops-operator",
        "web-terminal",
    ]


def test_imageset_config_full_mirrors_whole_catalog():
    config = yaml.safe_load(mirror.imageset_config("full", "4.17"))

    assert "packages" not in config["mirror"]["operators"][0]


def test_imageset_config_unknown_profile():
    with pytest.raises(ValueError):
        mirror.imageset_config("huge", "4.18")


def test_idms_config():
    config = yaml.safe_load(mirror.idms_config(f"https://{ECR_URL}"))

    mirrors = {
        entry["source"]: entry["mirrors"] for entry in config["spec"]["imageDigestMirrors"]
    }
    assert mirrors["registry.redhat.io/redhat"] == [f"{ECR_URL}/redhat"]
    assert mirrors["quay.io/openshift-release-dev"] == [f"{ECR_URL}/openshift-release-dev"]


def test_generate(tmp_path):
    written = mirror.generate("layers", "4.18", str(tmp_path), ECR_URL)

    assert [path.rsplit("/", 1)[-1] for path in written] == [
        "imageset-config-layers.yaml",
        "idms-config.yaml",
    ]
    config = yaml.safe_load((tmp_path / "imageset-config-layers.yaml").read_text())
    names = [package["name"] for package in config["mirror"]["operators"][0]["packages"]]
    assert "loki-operator" in names
    assert "redhat-oadp-operator" in names


def test_generate_without_ecr_url(tmp_path):
    written = mirror.generate("standard", "4.18", str(tmp_path))

    assert len(written) == 1
    assert not (tmp_path / "idms-config.yaml").exists()

# SPDX-License-Identifier: Apache-2.0

import os


# Read secret from file
def read_secret(secret_name):
    try:
        f = open("/run/secrets/" + secret_name, "r", encoding="utf-8")
    except EnvironmentError:
        return ""
    else:
        with f:
            return f.readline().strip()


API_URL = os.getenv("ROSA_GITOPS_API_URL", os.getenv("CLUSTER_API_URL"))
TOKEN = os.getenv("ROSA_GITOPS_TOKEN", read_secret("ROSA_GITOPS_TOKEN"))

# curl -k equivalent, the cluster API certificate is usually not trusted locally
IGNORE_SSL_ERRORS = os.getenv("IGNORE_SSL_ERRORS", "True") == "True"
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "30"))

CONFIG_PATH = os.getenv("ROSA_GITOPS_CONFIG", "gitops-layers.yml")

GITOPS_NAMESPACE = os.getenv("GITOPS_NAMESPACE", "openshift-gitops")

# 300 seconds = 30 checks every 10 seconds in the shell version
CRD_WAIT_TIMEOUT = int(os.getenv("CRD_WAIT_TIMEOUT", "300"))
# 360 seconds = 36 checks every 10 seconds in the shell version
OPERATOR_WAIT_TIMEOUT = int(os.getenv("OPERATOR_WAIT_TIMEOUT", "360"))
WAIT_DELAY = float(os.getenv("WAIT_DELAY", "5"))
WAIT_MAX_DELAY = float(os.getenv("WAIT_MAX_DELAY", "30"))

# ~5 minutes in total: 10, 20, 30, 30, ...
OAUTH_MAX_RETRIES = int(os.getenv("OAUTH_MAX_RETRIES", "10"))
OAUTH_INITIAL_WAIT = int(os.getenv("OAUTH_INITIAL_WAIT", "10"))
OAUTH_MAX_WAIT = int(os.getenv("OAUTH_MAX_WAIT", "30"))

# SPDX-License-Identifier: Apache-2.0

# OpenShift GitOps (ArgoCD) bootstrap

TEMPLATE_NAMESPACE = """---
apiVersion: v1
kind: Namespace
metadata:
  name: {{ name }}
{% if cluster_monitoring %}
  labels:
    openshift.io/cluster-monitoring: "true"
{% endif %}
"""

TEMPLATE_OPERATOR_GROUP = """---
apiVersion: operators.coreos.com/v1
kind: OperatorGroup
metadata:
  name: {{ name }}
  namespace: {{ namespace }}
spec:
{% if target_namespaces %}
  targetNamespaces:
{% for target in target_namespaces %}
    - {{ target }}
{% endfor %}
{% endif %}
  upgradeStrategy: Default
"""

TEMPLATE_SUBSCRIPTION = """---
apiVersion: operators.coreos.com/v1alpha1
kind: Subscription
metadata:
  name: {{ name }}
  namespace: {{ namespace }}
spec:
  channel: {{ channel }}
  installPlanApproval: Automatic
  name: {{ package }}
  source: {{ source | default("redhat-operators") }}
  sourceNamespace: {{ source_namespace | default("openshift-marketplace") }}
"""

TEMPLATE_CLUSTER_ROLE_BINDING = """---
apiVersion: rbac.authorization.k8s.io/v1
kind: ClusterRoleBinding
metadata:
  name: {{ name }}
roleRef:
  apiGroup: rbac.authorization.k8s.io
  kind: ClusterRole
  name: {{ cluster_role }}
subjects:
  - kind: ServiceAccount
    name: {{ service_account }}
    namespace: {{ namespace }}
"""

TEMPLATE_SERVICE_ACCOUNT = """---
apiVersion: v1
kind: ServiceAccount
metadata:
  name: {{ name }}
  namespace: {{ namespace }}
"""

TEMPLATE_SERVICE_ACCOUNT_TOKEN = """---
apiVersion: v1
kind: Secret
metadata:
  name: {{ name }}-token
  namespace: {{ namespace }}
  annotations:
    kubernetes.io/service-account.name: {{ name }}
type: kubernetes.io/service-account-token
"""

TEMPLATE_ARGOCD = """---
apiVersion: argoproj.io/v1beta1
kind: ArgoCD
metadata:
  name: openshift-gitops
  namespace: {{ namespace }}
spec:
  controller:
    processors: {}
    resources:
      limits:
        cpu: "2"
        memory: 2Gi
      requests:
        cpu: 250m
        memory: 1Gi
    sharding: {}
  ha:
    enabled: false
  redis:
    resources:
      limits:
        cpu: 500m
        memory: 256Mi
      requests:
        cpu: 250m
        memory: 128Mi
  repo:
    resources:
      limits:
        cpu: "1"
        memory: 1Gi
      requests:
        cpu: 250m
        memory: 256Mi
  server:
    autoscale:
      enabled: false
    route:
      enabled: true
      tls:
        termination: reencrypt
        insecureEdgeTerminationPolicy: Redirect
    service:
      type: ClusterIP
  applicationSet:
    resources:
      limits:
        cpu: "2"
        memory: 1Gi
      requests:
        cpu: 250m
        memory: 512Mi
  rbac:
    defaultPolicy: ""
    policy: |
      g, system:cluster-admins, role:admin
      g, cluster-admins, role:admin
    scopes: "[groups]"
  sso:
    provider: dex
    dex:
      openShiftOAuth: true
"""

TEMPLATE_GITOPS_CONFIGMAP = """---
apiVersion: v1
kind: ConfigMap
metadata:
  name: rosa-gitops-config
  namespace: {{ namespace }}
  labels:
    app.kubernetes.io/managed-by: rosa-gitops
data: {{ data | tojson }}
"""

TEMPLATE_APPLICATION_SET = """---
apiVersion: argoproj.io/v1alpha1
kind: ApplicationSet
metadata:
  name: rosa-layers
  namespace: {{ namespace }}
spec:
  goTemplate: true
  generators:
    - list:
        elements: {{ elements | tojson }}
  template:
    metadata:
      name: '{% raw %}rosa-layer-{{ .layer }}{% endraw %}'
    spec:
      project: default
      source:
        repoURL: {{ repo_url }}
        targetRevision: {{ revision }}
        path: '{% raw %}{{ .path }}{% endraw %}'
      destination:
        server: https://kubernetes.default.svc
        namespace: '{% raw %}{{ .namespace }}{% endraw %}'
      syncPolicy:
        automated:
          prune: true
          selfHeal: true
        syncOptions:
          - CreateNamespace=true
"""

# Monitoring layer

TEMPLATE_CLUSTER_MONITORING_CONFIG = """---
apiVersion: v1
kind: ConfigMap
metadata:
  name: cluster-monitoring-config
  namespace: openshift-monitoring
data:
  config.yaml: |
    prometheusK8s:
      retention: {{ prometheus_retention_days }}d
      volumeClaimTemplate:
        spec:
          storageClassName: {{ storage_class }}
          resources:
            requests:
              storage: {{ prometheus_storage_size }}
"""

TEMPLATE_LOKI_S3_SECRET = """---
apiVersion: v1
kind: Secret
metadata:
  name: logging-loki-s3
  namespace: openshift-logging
type: Opaque
stringData:
  bucketnames: "{{ bucket }}"
  region: {{ region }}
  audience: openshift
  role_arn: {{ role_arn }}
"""

TEMPLATE_LOKISTACK = """---
apiVersion: loki.grafana.com/v1
kind: LokiStack
metadata:
  name: logging-loki
  namespace: openshift-logging
spec:
  managementState: Managed
  size: {{ size }}
  storage:
    schemas:
      - version: v13
        effectiveDate: "2024-10-01"
    secret:
      name: logging-loki-s3
      type: s3
      credentialMode: token
  storageClassName: {{ storage_class }}
  limits:
    global:
      retention:
        days: {{ retention_days }}
  tenants:
    mode: openshift-logging
"""

TEMPLATE_CLUSTER_LOG_FORWARDER = """---
apiVersion: observability.openshift.io/v1
kind: ClusterLogForwarder
metadata:
  name: instance
  namespace: openshift-logging
spec:
  serviceAccount:
    name: collector
  outputs:
    - name: default-lokistack
      type: lokiStack
      lokiStack:
        target:
          name: logging-loki
          namespace: openshift-logging
        authentication:
          token:
            from: serviceAccount
      tls:
        ca:
          key: service-ca.crt
          configMapName: openshift-service-ca.crt
  pipelines:
    - name: default-logstore
      inputRefs:
        - application
        - infrastructure
      outputRefs:
        - default-lokistack
"""

# Backup (OADP) layer

TEMPLATE_OADP_CREDENTIALS = """---
apiVersion: v1
kind: Secret
metadata:
  name: cloud-credentials
  namespace: openshift-adp
type: Opaque
stringData:
  credentials: |
    [default]
    sts_regional_endpoints = regional
    role_arn = {{ role_arn }}
    web_identity_token_file = /var/run/secrets/openshift/serviceaccount/token
"""

TEMPLATE_DATA_PROTECTION_APPLICATION = """---
apiVersion: oadp.openshift.io/v1alpha1
kind: DataProtectionApplication
metadata:
  name: {{ cluster_name }}-dpa
  namespace: openshift-adp
spec:
  backupLocations:
    - bsl:
        provider: aws
        default: true
        objectStorage:
          bucket: {{ bucket }}
          prefix: {{ prefix }}
        config:
          region: {{ region }}
        credential:
          key: credentials
          name: cloud-credentials
  configuration:
    nodeAgent:
      enable: false
      uploaderType: kopia
    velero:
      defaultPlugins:
        - openshift
        - aws
        - csi
  snapshotLocations:
    - velero:
        provider: aws
        config:
          region: {{ region }}
          profile: default
        credential:
          key: credentials
          name: cloud-credentials
"""

TEMPLATE_BACKUP_SCHEDULE = """---
apiVersion: velero.io/v1
kind: Schedule
metadata:
  name: daily-backup
  namespace: openshift-adp
spec:
  schedule: "{{ schedule }}"
  template:
    ttl: {{ retention_days * 24 }}h0m0s
    includedNamespaces:
      - "*"
    excludedNamespaces:
      - openshift-adp
"""

# Virtualization layer

TEMPLATE_HYPERCONVERGED = """---
apiVersion: hco.kubevirt.io/v1beta1
kind: HyperConverged
metadata:
  name: kubevirt-hyperconverged
  namespace: openshift-cnv
spec: {}
"""

# Certificate management layer

TEMPLATE_CLUSTER_ISSUER = """---
apiVersion: cert-manager.io/v1
kind: ClusterIssuer
metadata:
  name: letsencrypt-route53
spec:
  acme:
    server: {{ acme_server }}
    email: {{ acme_email }}
    privateKeySecretRef:
      name: letsencrypt-route53-account-key
    solvers:
      - selector:
          dnsZones:
            - {{ domain }}
        dns01:
          route53:
            region: {{ region }}
            hostedZoneID: {{ hosted_zone_id }}
{% if role_arn %}
            role: {{ role_arn }}
{% endif %}
"""

TEMPLATE_CERTIFICATE = """---
apiVersion: cert-manager.io/v1
kind: Certificate
metadata:
  name: custom-domain-ingress-cert
  namespace: openshift-ingress
spec:
  secretName: custom-domain-ingress-cert-tls
  issuerRef:
    name: letsencrypt-route53
    kind: ClusterIssuer
  commonName: "*.{{ domain }}"
  dnsNames:
    - "*.{{ domain }}"
"""

TEMPLATE_INGRESS_CONTROLLER = """---
apiVersion: operator.openshift.io/v1
kind: IngressController
metadata:
  name: custom-domain
  namespace: openshift-ingress-operator
spec:
  domain: {{ domain }}
  replicas: {{ replicas }}
  defaultCertificate:
    name: custom-domain-ingress-cert-tls
  endpointPublishingStrategy:
    type: LoadBalancerService
    loadBalancer:
      scope: {{ scope }}
      providerParameters:
        type: AWS
        aws:
          type: NLB
  routeSelector:
    matchLabels:
      ingress: custom-domain
"""

# Disconnected mirroring

TEMPLATE_IMAGESET_CONFIGURATION = """---
# ImageSetConfiguration for {{ profile }} profile
# Generated by rosa-gitops mirror generate
# OpenShift version: {{ ocp_version }}
#
# Usage:
#   oc-mirror --config {{ filename }} docker://<ecr-url>
apiVersion: mirror.openshift.io/v1alpha2
kind: ImageSetConfiguration
storageConfig:
  local:
    path: ./mirror-data
mirror:
  platform:
    channels:
      - name: stable-{{ ocp_version }}
        minVersion: {{ ocp_version }}.0
        maxVersion: {{ ocp_version }}.99
        type: ocp
    graph: true
  operators:
    - catalog: registry.redhat.io/redhat/redhat-operator-index:v{{ ocp_version }}
{% if packages %}
      packages:
{% for package in packages %}
        - name: {{ package.name }}
          channels:
            - name: {{ package.channel }}
{% endfor %}
{% endif %}
  additionalImages: []
  helm: {}
"""

TEMPLATE_IMAGE_DIGEST_MIRROR_SET = """---
# ImageDigestMirrorSet for ROSA zero-egress clusters
# Generated by rosa-gitops mirror generate
#
# Apply this to your cluster BEFORE enabling GitOps:
#   oc apply -f {{ filename }}
apiVersion: config.openshift.io/v1
kind: ImageDigestMirrorSet
metadata:
  name: rosa-operator-mirror
spec:
  imageDigestMirrors:
    - source: registry.redhat.io/redhat
      mirrors:
        - {{ registry_host }}/redhat
    - source: quay.io/openshift-release-dev
      mirrors:
        - {{ registry_host }}/openshift-release-dev
    - source: registry.redhat.io/redhat/redhat-operator-index
      mirrors:
        - {{ registry_host }}/redhat/redhat-operator-index
"""

# SPDX-License-Identifier: Apache-2.0

from loguru import logger
from tabulate import tabulate

from rosagitops import gitops, settings
from rosagitops.commands import ClusterCommand, add_wait_arguments, read_document
from rosagitops.config import load_config


class Validate(ClusterCommand):
    """Check connectivity and authentication against the cluster API"""

    def take_action(self, parsed_args):
        client = self.get_client(parsed_args)
        gitops.validate(client)


class Namespace(ClusterCommand):
    """Create the openshift-gitops namespace"""

    def take_action(self, parsed_args):
        gitops.namespace(self.get_client(parsed_args))


class Subscription(ClusterCommand):
    """Subscribe to the OpenShift GitOps operator"""

    def get_parser(self, prog_name):
        parser = super(Subscription, self).get_parser(prog_name)
        parser.add_argument(
            "--channel", default="latest", help="Operator channel (default: latest)"
        )
        return parser

    def take_action(self, parsed_args):
        gitops.subscription(self.get_client(parsed_args), channel=parsed_args.channel)


class Rbac(ClusterCommand):
    """Grant cluster-admin to the ArgoCD application controller"""

    def take_action(self, parsed_args):
        gitops.rbac(self.get_client(parsed_args))


class WaitCrd(ClusterCommand):
    """Wait for the ArgoCD CRD, a timeout is only a warning"""

    def get_parser(self, prog_name):
        parser = super(WaitCrd, self).get_parser(prog_name)
        return add_wait_arguments(parser, settings.CRD_WAIT_TIMEOUT)

    def take_action(self, parsed_args):
        gitops.wait_crd(
            self.get_client(parsed_args),
            timeout=parsed_args.timeout,
            delay=parsed_args.delay,
            max_delay=parsed_args.max_delay,
        )


class Argocd(ClusterCommand):
    """Create the ArgoCD instance"""

    def take_action(self, parsed_args):
        gitops.argocd(self.get_client(parsed_args))


class Configmap(ClusterCommand):
    """Create the rosa-gitops-config ConfigMap"""

    def get_parser(self, prog_name):
        parser = super(Configmap, self).get_parser(prog_name)
        parser.add_argument(
            "--config",
            default=settings.CONFIG_PATH,
            help="Layers configuration used when no document is given",
        )
        parser.add_argument("--file", help="Read the ConfigMap document from a file")
        parser.add_argument(
            "document", nargs="*", type=str, help="ConfigMap YAML document"
        )
        return parser

    def take_action(self, parsed_args):
        client = self.get_client(parsed_args)
        document = read_document(parsed_args)
        if document is None:
            gitops.configmap(client, config=load_config(parsed_args.config))
        else:
            gitops.configmap(client, document=document)


class Appset(ClusterCommand):
    """Create the rosa-layers ApplicationSet"""

    def get_parser(self, prog_name):
        parser = super(Appset, self).get_parser(prog_name)
        parser.add_argument(
            "--config",
            default=settings.CONFIG_PATH,
            help="Layers configuration used when no document is given",
        )
        parser.add_argument(
            "--file", help="Read the ApplicationSet document from a file"
        )
        parser.add_argument(
            "document", nargs="*", type=str, help="ApplicationSet YAML document"
        )
        return parser

    def take_action(self, parsed_args):
        client = self.get_client(parsed_args)
        document = read_document(parsed_args)
        if document is None:
            gitops.appset(client, config=load_config(parsed_args.config))
        else:
            gitops.appset(client, document=document)


class Bootstrap(ClusterCommand):
    """Install OpenShift GitOps and the rosa-layers ApplicationSet in one go"""

    def get_parser(self, prog_name):
        parser = super(Bootstrap, self).get_parser(prog_name)
        parser.add_argument(
            "--config",
            default=settings.CONFIG_PATH,
            help=f"Layers configuration (default: {settings.CONFIG_PATH})",
        )
        return add_wait_arguments(parser, settings.CRD_WAIT_TIMEOUT)

    def take_action(self, parsed_args):
        config = load_config(parsed_args.config)
        client = self.get_client(parsed_args)

        results = gitops.bootstrap(
            client,
            config,
            timeout=parsed_args.timeout,
            delay=parsed_args.delay,
            max_delay=parsed_args.max_delay,
        )

        table = [[r.description, r.status_code, r.outcome.value] for r in results]
        print(tabulate(table, headers=["Step", "HTTP", "Result"], tablefmt="psql"))
        logger.info("OpenShift GitOps bootstrap finished")

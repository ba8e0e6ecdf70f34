# SPDX-License-Identifier: Apache-2.0

from loguru import logger

from rosagitops import gitops
from rosagitops.commands import ClusterCommand, read_document


class ApplyYaml(ClusterCommand):
    """Create an object from a YAML document, every error is fatal"""

    optional = False

    def get_parser(self, prog_name):
        parser = super(ApplyYaml, self).get_parser(prog_name)
        parser.add_argument("description", type=str, help="What is being applied")
        parser.add_argument(
            "endpoint",
            type=str,
            help="API collection path, e.g. /api/v1/namespaces/openshift-logging/secrets",
        )
        parser.add_argument("--file", help="Read the YAML document from a file")
        parser.add_argument("document", nargs="*", type=str, help="YAML document")
        return parser

    def take_action(self, parsed_args):
        document = read_document(parsed_args)
        if document is None:
            logger.error("No YAML document given")
            return 1

        gitops.apply_yaml(
            self.get_client(parsed_args),
            parsed_args.description,
            parsed_args.endpoint,
            document,
            optional=self.optional,
        )


class ApplyYamlOptional(ApplyYaml):
    """Create an object on a best-effort basis.

    A missing CRD (404) is skipped so that a later run can complete the
    object, unexpected answers are only warnings. Authentication errors
    and an unreachable cluster are still fatal.
    """

    optional = True

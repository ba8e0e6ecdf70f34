# SPDX-License-Identifier: Apache-2.0

from loguru import logger

from rosagitops import settings
from rosagitops.commands import ClusterCommand, add_wait_arguments
from rosagitops.utils import WaitTimeout
from rosagitops.wait import wait_for_kind


class WaitOperator(ClusterCommand):
    """Wait until an operator serves its CRD"""

    def get_parser(self, prog_name):
        parser = super(WaitOperator, self).get_parser(prog_name)
        parser.add_argument("group", type=str, help="API group, e.g. oadp.openshift.io")
        parser.add_argument("version", type=str, help="API version, e.g. v1alpha1")
        parser.add_argument(
            "kind", type=str, help="Kind, e.g. DataProtectionApplication"
        )
        return add_wait_arguments(parser, settings.OPERATOR_WAIT_TIMEOUT)

    def take_action(self, parsed_args):
        group = parsed_args.group
        kind = parsed_args.kind

        try:
            wait_for_kind(
                self.get_client(parsed_args),
                group,
                parsed_args.version,
                kind,
                timeout=parsed_args.timeout,
                delay=parsed_args.delay,
                max_delay=parsed_args.max_delay,
            )
        except WaitTimeout as exc:
            logger.error(str(exc))
            logger.error("The operator may still be installing. Check:")
            logger.error("  oc get csv -A")
            logger.error(f"  oc get crd | grep {group}")
            return 1

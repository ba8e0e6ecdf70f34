# SPDX-License-Identifier: Apache-2.0

from loguru import logger
from tabulate import tabulate

from rosagitops.commands import ClusterCommand
from rosagitops.verify import MonitoringVerifier


class Monitoring(ClusterCommand):
    """Verify the monitoring and logging stack"""

    def get_parser(self, prog_name):
        parser = super(Monitoring, self).get_parser(prog_name)
        parser.add_argument(
            "--format",
            default="table",
            help="Output type",
            const="table",
            nargs="?",
            choices=["table", "log"],
        )
        parser.add_argument(
            "--verbose",
            default=False,
            help="Show the raw PVC listing and retention activity",
            action="store_true",
        )
        return parser

    def take_action(self, parsed_args):
        verifier = MonitoringVerifier(
            self.get_client(parsed_args), verbose=parsed_args.verbose
        )
        checks = verifier.run()

        if parsed_args.format == "table":
            table = [[c.section, c.name, c.status.value, c.message] for c in checks]
            print(
                tabulate(
                    table, headers=["Section", "Check", "Status", "Message"], tablefmt="psql"
                )
            )

        if verifier.failed:
            logger.error("Some verification checks failed")
            logger.error("Check cluster-monitoring-config in openshift-monitoring")
            logger.error("Check LokiStack and ClusterLogForwarder in openshift-logging")
            logger.error("Check the IAM role and S3 bucket permissions")
            return 1

        logger.success("All verification checks passed")

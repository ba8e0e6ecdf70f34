# SPDX-License-Identifier: Apache-2.0

import os

from cliff.command import Command
from loguru import logger

from rosagitops import mirror


class Generate(Command):
    """Generate oc-mirror configuration for zero-egress clusters"""

    def get_parser(self, prog_name):
        parser = super(Generate, self).get_parser(prog_name)
        parser.add_argument(
            "profile",
            nargs="?",
            default="layers",
            choices=mirror.PROFILES.keys(),
            help="Operator profile (default: layers)",
        )
        parser.add_argument(
            "--ocp-version", default="4.18", help="OpenShift version (default: 4.18)"
        )
        parser.add_argument("--ecr-url", help="ECR registry URL")
        parser.add_argument(
            "--output-dir",
            default="./mirror-workspace",
            help="Output directory (default: ./mirror-workspace)",
        )
        return parser

    def take_action(self, parsed_args):
        profile = parsed_args.profile
        output_dir = parsed_args.output_dir
        ecr_url = parsed_args.ecr_url

        logger.info(f"Profile: {profile}")
        logger.info(f"OpenShift version: {parsed_args.ocp_version}")
        logger.info(f"Output directory: {output_dir}")

        written = mirror.generate(profile, parsed_args.ocp_version, output_dir, ecr_url)

        if ecr_url:
            for number, line in enumerate(
                mirror.instructions(
                    written[0], ecr_url, os.path.join(output_dir, "idms-config.yaml")
                ),
                start=1,
            ):
                logger.info(f"{number}. {line}")
        else:
            logger.info("Provide --ecr-url to generate the IDMS config and mirror instructions")

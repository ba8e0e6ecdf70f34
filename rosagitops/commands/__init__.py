# SPDX-License-Identifier: Apache-2.0

from cliff.command import Command

from rosagitops import settings
from rosagitops.kube import KubeClient


class ClusterCommand(Command):
    """Base for commands talking to the cluster API."""

    def get_parser(self, prog_name):
        parser = super(ClusterCommand, self).get_parser(prog_name)
        parser.add_argument(
            "--api-url",
            default=settings.API_URL,
            help="Cluster API URL, e.g. https://api.cluster.example.com:6443 (env ROSA_GITOPS_API_URL)",
        )
        parser.add_argument(
            "--token",
            default=settings.TOKEN,
            help="Bearer token (env ROSA_GITOPS_TOKEN)",
        )
        return parser

    def get_client(self, parsed_args):
        if not parsed_args.api_url:
            raise ValueError("No cluster API URL, use --api-url or ROSA_GITOPS_API_URL")
        return KubeClient(parsed_args.api_url, parsed_args.token)


def add_wait_arguments(parser, timeout):
    parser.add_argument(
        "--timeout",
        default=timeout,
        type=int,
        help=f"Maximum time to wait in seconds (default: {timeout})",
    )
    parser.add_argument(
        "--delay",
        default=settings.WAIT_DELAY,
        type=float,
        help="Initial delay in second(s) between two checks, doubled after every check",
    )
    parser.add_argument(
        "--max-delay",
        default=settings.WAIT_MAX_DELAY,
        type=float,
        help="Upper bound for the delay between two checks",
    )
    return parser


def read_document(parsed_args):
    """YAML document from --file, or the remaining arguments joined."""
    if getattr(parsed_args, "file", None):
        with open(parsed_args.file, "r") as fp:
            return fp.read()
    document = " ".join(getattr(parsed_args, "document", None) or [])
    return document or None

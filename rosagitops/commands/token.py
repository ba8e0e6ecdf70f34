# SPDX-License-Identifier: Apache-2.0

import json
import sys

from cliff.command import Command
from loguru import logger

from rosagitops import auth, settings
from rosagitops.commands import ClusterCommand
from rosagitops.kube import ApiError
from rosagitops.utils import create_session, WaitTimeout


class OAuth(Command):
    """Obtain an OAuth token (Terraform external data source protocol).

    Reads a JSON object with api_url, oauth_url (optional), username and
    password from stdin and always prints a JSON object with token,
    authenticated and error.
    """

    def take_action(self, parsed_args):
        raw = sys.stdin.read()
        logger.debug(f"Input received (length: {len(raw)})")

        try:
            query = json.loads(raw or "{}")
        except ValueError as exc:
            result = auth.TokenResult(error=f"invalid JSON input: {exc}")
        else:
            if not isinstance(query, dict):
                query = {}
            session = create_session(
                ignore_ssl_errors=settings.IGNORE_SSL_ERRORS,
                timeout=settings.REQUEST_TIMEOUT,
            )
            try:
                result = auth.get_token(
                    session,
                    query.get("api_url"),
                    query.get("username"),
                    query.get("password"),
                    oauth_url=query.get("oauth_url") or None,
                )
            finally:
                session.close()

        print(json.dumps(result.as_dict()))


class ServiceAccount(ClusterCommand):
    """Create a ServiceAccount with cluster-admin and print its token as JSON"""

    def get_parser(self, prog_name):
        parser = super(ServiceAccount, self).get_parser(prog_name)
        parser.add_argument(
            "--name",
            default="terraform-gitops",
            help="Name of the ServiceAccount (default: terraform-gitops)",
        )
        parser.add_argument(
            "--namespace",
            default=settings.GITOPS_NAMESPACE,
            help=f"Namespace of the ServiceAccount (default: {settings.GITOPS_NAMESPACE})",
        )
        parser.add_argument(
            "--timeout",
            default=60,
            type=int,
            help="Time to wait for the token to be populated",
        )
        return parser

    def take_action(self, parsed_args):
        client = self.get_client(parsed_args)

        try:
            token = auth.service_account_token(
                client,
                name=parsed_args.name,
                namespace=parsed_args.namespace,
                timeout=parsed_args.timeout,
            )
        except (ApiError, WaitTimeout) as exc:
            logger.error(str(exc))
            print(json.dumps(auth.TokenResult(error=str(exc)).as_dict()))
            return 1

        print(json.dumps(auth.TokenResult(token=token, authenticated="true").as_dict()))

# SPDX-License-Identifier: Apache-2.0

from cliff.command import Command
from loguru import logger
from tabulate import tabulate

from rosagitops import settings
from rosagitops.commands import ClusterCommand, add_wait_arguments
from rosagitops.config import ConfigError, load_config
from rosagitops.layers import LAYERS, install_layer, render_layer


def add_config_argument(parser):
    parser.add_argument(
        "--config",
        default=settings.CONFIG_PATH,
        help=f"Layers configuration (default: {settings.CONFIG_PATH})",
    )
    return parser


class List(Command):
    """List the available GitOps layers"""

    def get_parser(self, prog_name):
        parser = super(List, self).get_parser(prog_name)
        return add_config_argument(parser)

    def take_action(self, parsed_args):
        config = load_config(parsed_args.config, required=False)

        table = [
            [
                layer.name,
                layer.namespace,
                "yes" if config.enabled(layer.name) else "no",
                layer.description,
            ]
            for layer in LAYERS.values()
        ]
        print(
            tabulate(
                table,
                headers=["Layer", "Namespace", "Enabled", "Description"],
                tablefmt="psql",
            )
        )


class Show(Command):
    """Print the manifests of a layer without applying them"""

    def get_parser(self, prog_name):
        parser = super(Show, self).get_parser(prog_name)
        parser.add_argument(
            "layer", nargs=1, type=str, choices=LAYERS.keys(), help="Layer to render"
        )
        return add_config_argument(parser)

    def take_action(self, parsed_args):
        config = load_config(parsed_args.config, required=False)
        print(render_layer(parsed_args.layer[0], config), end="")


class Install(ClusterCommand):
    """Install GitOps layers directly through the cluster API"""

    def get_parser(self, prog_name):
        parser = super(Install, self).get_parser(prog_name)
        parser.add_argument(
            "layer",
            nargs="*",
            type=str,
            help="Layers to install (default: all layers enabled in the configuration)",
        )
        add_config_argument(parser)
        return add_wait_arguments(parser, settings.OPERATOR_WAIT_TIMEOUT)

    def take_action(self, parsed_args):
        config = load_config(parsed_args.config)
        layers = parsed_args.layer or config.enabled_layers()

        unknown = [name for name in layers if name not in LAYERS]
        if unknown:
            logger.error(
                f"Unknown layer(s): {', '.join(unknown)}. Must be one of: {', '.join(LAYERS)}"
            )
            return 1

        if not layers:
            logger.warning("No layers selected and none enabled in the configuration")
            return

        try:
            config.validate(layers=layers)
        except ConfigError as exc:
            for error in exc.errors:
                logger.error(error)
            return 1

        client = self.get_client(parsed_args)

        table = []
        for name in layers:
            if not config.enabled(name):
                logger.info(f"Layer {name} is not enabled in the configuration")
            for result in install_layer(
                client,
                name,
                config,
                timeout=parsed_args.timeout,
                delay=parsed_args.delay,
                max_delay=parsed_args.max_delay,
            ):
                table.append([result.layer, result.step, result.status])

        print(tabulate(table, headers=["Layer", "Step", "Result"], tablefmt="psql"))

        pending = [row for row in table if row[2] in ("not ready", "timeout")]
        if pending:
            logger.warning(
                f"{len(pending)} step(s) are waiting for operators, re-run the installation later"
            )

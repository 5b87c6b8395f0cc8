#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import importlib.metadata
import logging
import logging.config
import os
import sys
from argparse import ArgumentParser, FileType
from argparse import Namespace
from copy import deepcopy
from importlib import import_module
from pkgutil import iter_modules
from typing import Iterable

import yaml

from solidpod.cli import commands
from solidpod.client import PodError, TransportError
from solidpod.context import PodContext
from solidpod.utils import DEFAULT_LOGGING_OPTIONS, datetimestamp, envsubst

logger = logging.getLogger(__name__)
version = importlib.metadata.version('solidpod')


def load_commands(subparsers):
    # load all defined subcommands from the solidpod.cli.commands package,
    # using introspection
    command_modules = {}
    for finder, name, ispkg in iter_modules(commands.__path__):
        module = import_module(commands.__name__ + '.' + name)
        if hasattr(module, 'configure_cli'):
            module.configure_cli(subparsers)
            command_modules[name] = module
    return command_modules


def add_values_arguments(parser: ArgumentParser):
    parser.add_argument(
        '-f', '--file',
        dest='values_file',
        type=FileType(mode='r', encoding='utf-8'),
        help='file containing the values to write, one per line',
        action='store'
    )
    parser.add_argument(
        'values', nargs='*',
        help='values to write; if neither these nor a file are given, read them from STDIN'
    )


def get_values(args: Namespace) -> Iterable[str]:
    if args.values_file is not None or args.values:
        if args.values_file is not None:
            yield from (line.rstrip('\r\n') for line in args.values_file)
        yield from args.values
    else:
        # fall back to STDIN
        yield from (line.rstrip('\r\n') for line in sys.stdin)


def configure_logging(args: Namespace, pod_config: dict):
    if 'LOGGING_CONFIG' in pod_config:
        with open(pod_config['LOGGING_CONFIG'], 'r') as logging_config_file:
            logging_options = yaml.safe_load(logging_config_file)
    else:
        logging_options = deepcopy(DEFAULT_LOGGING_OPTIONS)

    # log file configuration
    log_dirname = pod_config.get('LOG_DIR', 'logs')
    if not os.path.isdir(log_dirname):
        os.makedirs(log_dirname)
    log_filename = f'solidpod.{args.cmd_name}.{datetimestamp()}.log'
    logging_options['handlers']['file']['filename'] = os.path.join(log_dirname, log_filename)

    # manipulate console verbosity
    if args.verbose:
        logging_options['handlers']['console']['level'] = 'DEBUG'
    elif args.quiet:
        logging_options['handlers']['console']['level'] = 'WARNING'

    logging.config.dictConfig(logging_options)


def main():
    """Parse args and handle options."""

    parser = ArgumentParser(
        prog='solidpod',
        description='Manage containers and text resources in a Solid pod.'
    )
    parser.set_defaults(cmd_name=None)

    common_required = parser.add_mutually_exclusive_group(required=True)
    common_required.add_argument(
        '-c', '--config',
        help='Path to configuration file.',
        action='store',
        dest='config_file',
        type=FileType('r')
    )
    common_required.add_argument(
        '-V', '--version',
        help='Print version and exit.',
        action='version',
        version=version
    )

    parser.add_argument(
        '-v', '--verbose',
        help='increase the verbosity of the status output',
        action='store_true'
    )
    parser.add_argument(
        '-q', '--quiet',
        help='decrease the verbosity of the status output',
        action='store_true'
    )

    subparsers = parser.add_subparsers(title='commands')

    command_modules = load_commands(subparsers)

    # parse command line args
    args = parser.parse_args()

    # if no subcommand was selected, display the help
    if args.cmd_name is None:
        parser.print_help()
        sys.exit(0)

    config = envsubst(yaml.safe_load(args.config_file)) or {}
    context = PodContext(config=config, args=args)

    configure_logging(args, context.pod_config)

    command_module = command_modules[args.cmd_name]

    # dispatch to the selected subcommand
    try:
        if not hasattr(command_module, 'Command'):
            raise RuntimeError(f'Unable to execute command {args.cmd_name}')

        context.client.ua_string = f'solidpod/{context.version} ({args.cmd_name})'
        logger.debug(f'Client User-Agent set to "{context.client.ua_string}"')
        logger.info(f'Loaded pod configuration from {args.config_file.name}')

        command = command_module.Command(context=context)
        command(args)
    except PodError as e:
        if e.phase is not None:
            logger.error(f'{e.phase} failed for {e.url}: {e}')
        else:
            logger.error(str(e))
        if isinstance(e, TransportError) and e.outcome_unknown:
            logger.warning(f'The request to {e.url} may or may not have been applied')
        sys.exit(1)
    except ValueError as e:
        # invalid container or file name
        logger.error(str(e))
        sys.exit(1)
    except RuntimeError as e:
        # something failed, exit with non-zero status
        logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        # aborted due to Ctrl+C
        sys.exit(2)


if __name__ == "__main__":
    main()

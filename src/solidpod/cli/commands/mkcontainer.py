import logging
from argparse import Namespace

from solidpod.cli.commands import BaseCommand

logger = logging.getLogger(__name__)


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='mkcontainer',
        aliases=['mkdir'],
        description='Create a basic container in the pod'
    )
    parser.add_argument(
        '--description',
        help='dcterms:description of the new container; defaults to its name',
        action='store'
    )
    parser.add_argument(
        'name',
        help='name of the container to create',
        action='store'
    )
    parser.set_defaults(cmd_name='mkcontainer')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        self.result = self.context.client.create_container(args.name, description=args.description)
        print(self.result)

from argparse import Namespace

from solidpod.cli import add_values_arguments, get_values
from solidpod.cli.commands import BaseCommand


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='update',
        aliases=['append'],
        description='Append the given values to a resource, creating it if it does not exist'
    )
    parser.add_argument(
        '--conditional',
        help='only write if the resource has not changed since it was read',
        action='store_true'
    )
    parser.add_argument('container', help='name of the container holding the resource')
    parser.add_argument('file', help='name of the resource')
    add_values_arguments(parser)
    parser.set_defaults(cmd_name='update')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        self.context.client.update_data(args.container, args.file, get_values(args), conditional=args.conditional)

from argparse import Namespace

from solidpod.cli import add_values_arguments, get_values
from solidpod.cli.commands import BaseCommand


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='publish',
        description='Replace the content of a resource with the given values'
    )
    parser.add_argument('container', help='name of the container holding the resource')
    parser.add_argument('file', help='name of the resource')
    add_values_arguments(parser)
    parser.set_defaults(cmd_name='publish')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        self.context.client.publish_data(args.container, args.file, get_values(args))

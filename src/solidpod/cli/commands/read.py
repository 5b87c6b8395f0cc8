from argparse import Namespace

from solidpod.cli.commands import BaseCommand
from solidpod.client import FeedbackParam


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='read',
        aliases=['cat'],
        description='Print the values stored in a resource, one per line'
    )
    parser.add_argument('container', help='name of the container holding the resource')
    parser.add_argument('file', help='name of the resource')
    parser.set_defaults(cmd_name='read')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        feedback = FeedbackParam()
        self.context.client.read_data_into(args.container, args.file, feedback)
        self.result = feedback.get()
        for value in self.result:
            print(value)

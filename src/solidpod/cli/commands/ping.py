from solidpod.cli.commands import BaseCommand


def configure_cli(subparsers):
    parser_ping = subparsers.add_parser(
        name='ping',
        description='Check connection to the pod'
    )
    parser_ping.set_defaults(cmd_name='ping')


class Command(BaseCommand):
    def __call__(self, *args, **kwargs):
        self.context.client.test_connection()

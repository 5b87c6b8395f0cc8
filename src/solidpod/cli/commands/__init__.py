from solidpod.context import PodContext


class BaseCommand:
    def __init__(self, context: PodContext = None):
        self.context = context
        self.result = None

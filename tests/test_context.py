from argparse import Namespace

import pytest

from solidpod.client import PodClient
from solidpod.context import PodContext


def test_context_client():
    context = PodContext(config={'POD': {'URL': 'http://localhost:3000/alice/', 'TIMEOUT': '5'}}, args=Namespace())
    assert isinstance(context.client, PodClient)
    assert context.client.pod.container_url('Movies') == 'http://localhost:3000/alice/Movies/'
    assert context.client.timeout == 5.0
    assert context.client.ua_string.startswith('solidpod/')
    # cached
    assert context.client is context.client


def test_context_without_timeout():
    context = PodContext(config={'POD': {'URL': 'http://localhost:3000/alice'}})
    assert context.client.timeout is None


def test_context_missing_url():
    context = PodContext(config={'POD': {}})
    with pytest.raises(RuntimeError) as e:
        _ = context.pod
    assert str(e.value) == "Missing configuration key 'URL' in section 'POD'"


def test_context_missing_section():
    context = PodContext(config={})
    assert context.pod_config == {}
    with pytest.raises(RuntimeError):
        _ = context.client

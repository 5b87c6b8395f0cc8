"""Common test fixtures"""
import hashlib
import re

import httpretty
import pytest
import requests

from solidpod.client import Pod, PodClient

POD_URL = 'http://localhost:3000/alice'


@pytest.fixture
def pod() -> Pod:
    return Pod(POD_URL)


@pytest.fixture
def client(pod) -> PodClient:
    return PodClient(pod=pod)


@pytest.fixture
def monkeypatch_request(monkeypatch):
    def _monkeypatch_request(response):
        if isinstance(response, type):
            response = response()
        monkeypatch.setattr(requests.Session, 'request', lambda *args, **kwargs: response)
    return _monkeypatch_request


def etag_for(body: str) -> str:
    return '"' + hashlib.md5(body.encode('utf-8')).hexdigest() + '"'


@pytest.fixture
def simulate_pod():
    """Pytest fixture that uses HTTPretty to simulate the text resources of
    a pod. Returns a dictionary, keyed by path, of the stored resource bodies;
    tests may seed it before making requests. GET answers 404 for unknown
    paths, and PUT honors the If-Match and If-None-Match preconditions."""
    def _simulate_pod(resources: dict[str, str] = None) -> dict[str, str]:
        if resources is None:
            resources = {}

        def get_resource(request, uri, response_headers):
            if request.path not in resources:
                return [404, {'Content-Type': 'text/plain'}, 'Not Found']
            body = resources[request.path]
            return [200, {'Content-Type': 'text/plain; charset=utf-8', 'ETag': etag_for(body)}, body]

        def put_resource(request, uri, response_headers):
            existing = resources.get(request.path)
            if_match = request.headers.get('If-Match')
            if if_match is not None and (existing is None or etag_for(existing) != if_match):
                return [412, {}, '']
            if request.headers.get('If-None-Match') == '*' and existing is not None:
                return [412, {}, '']
            resources[request.path] = request.body.decode('utf-8')
            return [204 if existing is not None else 201, {}, '']

        pattern = re.compile(re.escape(POD_URL) + '/.+')
        httpretty.register_uri(httpretty.GET, pattern, body=get_resource)
        httpretty.register_uri(httpretty.PUT, pattern, body=put_resource)
        return resources
    return _simulate_pod

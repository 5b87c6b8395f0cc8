from solidpod.client import Client, SessionHeaderAttribute


def test_ua_string_is_session_header(pod):
    client = Client(pod=pod, ua_string='solidpod/1.0.0')
    assert client.ua_string == 'solidpod/1.0.0'

    client.ua_string = 'solidpod/1.0.0 (read)'
    assert client.session.headers['User-Agent'] == 'solidpod/1.0.0 (read)'

    # None leaves the header unchanged
    client.ua_string = None
    assert client.session.headers['User-Agent'] == 'solidpod/1.0.0 (read)'

    del client.ua_string
    assert 'User-Agent' not in client.session.headers
    assert client.ua_string is None

    # deleting again is harmless
    del client.ua_string


def test_class_attribute_is_descriptor():
    assert isinstance(Client.ua_string, SessionHeaderAttribute)
    assert Client.ua_string.header_name == 'User-Agent'

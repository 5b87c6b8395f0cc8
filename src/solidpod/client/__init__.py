import logging
from collections import namedtuple
from dataclasses import dataclass
from enum import Enum
from http import HTTPStatus
from typing import Any, Callable, Generic, Iterable, NamedTuple, Optional, TypeVar
from urllib.parse import quote

from rdflib import Graph, Literal, URIRef
from requests import Response, Session
from requests.exceptions import ConnectionError, ConnectTimeout, RequestException, Timeout
from urlobject import URLObject

from solidpod import codec
from solidpod.namespaces import dcterms, get_manager, ldp, rdf

logger = logging.getLogger(__name__)

BASIC_CONTAINER_LINK = f'<{ldp.BasicContainer}>; rel="type"'
SAFE_METHODS = frozenset({'GET', 'HEAD', 'OPTIONS'})

T = TypeVar('T')


def serialize(graph: Graph, **kwargs):
    logger.info('Including properties:')
    for _, p, o in graph:  # type: _, URIRef, URIRef | Literal
        pred = p.n3(namespace_manager=graph.namespace_manager)
        obj = o.n3(namespace_manager=graph.namespace_manager)
        logger.info(f'  {pred} {obj}')
    return graph.serialize(**kwargs)


def container_graph(name: str, description: str = None) -> Graph:
    """Description of a new basic container, using the null relative URI
    `<>` as its subject so the server resolves it to the container's own URI."""
    graph = Graph(namespace_manager=get_manager())
    subject = URIRef('')
    graph.add((subject, rdf.type, ldp.Container))
    graph.add((subject, rdf.type, ldp.BasicContainer))
    graph.add((subject, dcterms.title, Literal(name)))
    graph.add((subject, dcterms.description, Literal(description if description is not None else name)))
    return graph


def path_segment(name: str) -> str:
    """Percent-encode `name` for use as a single path segment. Raises
    `ValueError` if the name is empty, contains a "/", or is a dot-segment.

    ```pycon
    >>> path_segment('My Movies')
    'My%20Movies'
    ```
    """
    if not name:
        raise ValueError('Name must not be empty')
    if '/' in name:
        raise ValueError(f'Name must not contain "/": "{name}"')
    if name in ('.', '..'):
        raise ValueError(f'Name must not be a dot-segment: "{name}"')
    return quote(name, safe='')


def reason_phrase(response: Response) -> str:
    """The reason phrase of `response`, or the standard phrase for its status
    code if the server sent none. Nonstandard codes without a phrase give an
    empty string."""
    if response.reason:
        return response.reason
    try:
        return HTTPStatus(response.status_code).phrase
    except ValueError:
        return ''


def is_success(response: Response) -> bool:
    return 200 <= response.status_code < 300


def outcome_unknown(method: str, error: RequestException) -> bool:
    """Whether the server may have applied a request that failed in transit.
    Safe methods never change server state, and a connect timeout means the
    request was never sent. Other connection failures and timeouts on unsafe
    methods leave the outcome undetermined."""
    if method.upper() in SAFE_METHODS or isinstance(error, ConnectTimeout):
        return False
    return isinstance(error, (ConnectionError, Timeout))


class Phase(Enum):
    """The part of a pod operation in which a failure occurred."""
    CREATE = 'create'
    READ = 'read'
    PUBLISH = 'publish'

    def __str__(self):
        return self.value


class PodError(Exception):
    """Base class for failures of pod operations."""
    def __init__(self, *args, url: str = None, phase: Phase = None):
        super().__init__(*args)

        self.url: Optional[str] = url
        """The request URL, if known."""

        self.phase: Optional[Phase] = phase
        """Which phase of the operation failed, or `None` for requests made
        outside of a pod operation."""


class TransportError(PodError):
    """Raised when an HTTP exchange could not be completed (connection
    failure, timeout, or interruption)."""
    def __init__(self, *args, url: str = None, phase: Phase = None, outcome_unknown: bool = False):
        super().__init__(*args, url=url, phase=phase)

        self.outcome_unknown: bool = outcome_unknown
        """If `True`, the request may or may not have been applied by the
        server. Callers that need certainty must read the resource back."""


class ProtocolError(PodError):
    """Raised when the pod answers with a status outside of the 2xx range."""
    def __init__(self, response: Response, *args, phase: Phase = None):
        super().__init__(*args, url=getattr(response, 'url', None), phase=phase)

        self.response: Response = response
        """The Requests `Response` object from the failed request."""

        self.status_code = self.response.status_code
        """The numeric HTTP status code (e.g., 404) for the failed request."""

        self.reason = reason_phrase(self.response)
        """The reason phrase (e.g., "Not Found") for the failed request. If
        the `response` does not have a reason phrase, use the standard status
        phrase from `HTTPStatus`, or an empty string for a nonstandard
        status code."""

    def __str__(self):
        return f'{self.status_code} {self.reason}'


class ContainerCreationError(ProtocolError):
    """Raised when the pod refuses to create a container."""
    pass


class ResourceNotFound(ProtocolError):
    """Raised when a resource to be read does not exist (404 or 410)."""
    pass


class PreconditionFailed(ProtocolError):
    """Raised when a conditional write is rejected because the resource
    changed since it was read (412)."""
    pass


def protocol_error_class(phase: Phase, status_code: int) -> type[ProtocolError]:
    if phase == Phase.CREATE:
        return ContainerCreationError
    elif status_code in (HTTPStatus.NOT_FOUND, HTTPStatus.GONE):
        return ResourceNotFound
    elif status_code == HTTPStatus.PRECONDITION_FAILED:
        return PreconditionFailed
    else:
        return ProtocolError


@dataclass(frozen=True)
class Pod:
    """Base location of a Solid pod. Trailing separators are removed, so
    `Pod('http://pod/')` and `Pod('http://pod')` compose the same URIs:

    ```pycon
    >>> Pod('http://pod/').container_url('Movies')
    'http://pod/Movies/'

    >>> Pod('http://pod').resource_url('Movies', 'watchlist.txt')
    'http://pod/Movies/watchlist.txt'
    ```
    """

    url: URLObject

    def __post_init__(self):
        base = URLObject(str(self.url).rstrip('/'))
        if base.scheme not in ('http', 'https') or not base.hostname:
            raise ValueError(f'Pod URL must be an absolute HTTP or HTTPS URL: "{self.url}"')
        object.__setattr__(self, 'url', base)

    def __str__(self):
        return str(self.url)

    def container_url(self, container_name: str) -> str:
        """URL of a container; always ends with "/"."""
        return f'{self.url}/{path_segment(container_name)}/'

    def resource_url(self, container_name: str, file_name: str) -> str:
        """URL of a resource within a container."""
        return f'{self.url}/{path_segment(container_name)}/{path_segment(file_name)}'


# lightweight representation of a resource URI and URI of its description
# for RDFSources, in general the uri and description_uri will be the same
class ResourceURI(namedtuple('Resource', ['uri', 'description_uri'])):
    __slots__ = ()

    def __str__(self):
        return self.uri


class TypedText(NamedTuple):
    """Data object combining a string value and its media type,
    expressed as a MIME type string.

    Supports `str()`, `len()`, and `bool()`. Returns the string value, the
    length of the string value, and the boolean cast of the string value,
    respectively:

    ```pycon
    >>> text = TypedText('text/plain', 'one\\ntwo\\n')
    >>> len(text)
    8

    >>> bool(TypedText('text/plain', ''))
    False
    ```
    """

    media_type: str
    """MIME type, e.g. "text/plain" or "text/turtle" """

    value: str
    """string value"""

    def __str__(self):
        return self.value

    def __bool__(self):
        return bool(self.value)

    def __len__(self):
        return len(self.value)


class Representation(NamedTuple):
    """Body of a resource as read from the pod, with the entity tag the
    server reported for it (if any)."""

    text: TypedText
    etag: Optional[str] = None

    @property
    def data(self) -> list[str]:
        return codec.decode(self.text.value)


class FeedbackParam(Generic[T]):
    """Output parameter for callers that receive operation results by
    having the operation fill in an object they supply."""

    def __init__(self):
        self.value: Optional[T] = None
        self.is_set: bool = False

    def set(self, value: T):
        self.value = value
        self.is_set = True

    def get(self) -> Optional[T]:
        return self.value


class SessionHeaderAttribute:
    """Descriptor that maps an attribute to a session header name. Requires
    the instance to have a `session` attribute whose `headers` mapping
    supports `get()`, `update()`, and `del`. Setting the attribute to `None`
    leaves the header unchanged; deleting the attribute removes the header."""

    def __init__(self, header_name: str):
        self.header_name = header_name
        """The HTTP header name"""

    def __set_name__(self, owner, name):
        self.name = name

    def __get__(self, instance, owner):
        if instance is None:
            return self
        return instance.session.headers.get(self.header_name, None)

    def __set__(self, instance, value):
        if value is not None:
            instance.session.headers.update({self.header_name: str(value)})

    def __delete__(self, instance):
        try:
            del instance.session.headers[self.header_name]
        except KeyError:
            pass


class Client:
    """HTTP exchange with a Solid pod."""
    ua_string = SessionHeaderAttribute('User-Agent')
    """`User-Agent` header value"""
    session: Session
    """Underlying Requests library
    [Session object](https://requests.readthedocs.io/en/latest/user/advanced/#session-objects),
    or a subclass thereof"""

    def __init__(
        self,
        pod: Pod,
        session: Session = None,
        ua_string: str = None,
        timeout: float = None,
    ):
        self.pod: Pod = pod
        """Pod base location"""

        self.timeout: Optional[float] = timeout
        """Seconds to wait for the server, passed to every request; `None`
        waits indefinitely."""

        if session is None:
            # defaults to a basic requests.Session object
            self.session = Session()
        else:
            # otherwise, use the session object as is
            self.session = session

        self.ua_string = ua_string

    def request(self, method: str, url: str, **kwargs) -> Response:
        """Send an HTTP request using the configured `session`. Additional
        keyword arguments are passed to the underlying `session.request()`
        method.

        Raises a `TransportError` if the request could not be completed."""
        logger.debug(f'{method} {url}')
        kwargs.setdefault('timeout', self.timeout)
        try:
            response = self.session.request(method, url, **kwargs)
        except RequestException as e:
            message = ' '.join(str(arg) for arg in e.args)
            logger.error(message)
            raise TransportError(
                f'Connection error: {message}',
                url=url,
                outcome_unknown=outcome_unknown(method, e),
            ) from e
        logger.debug(f'{response.status_code} {reason_phrase(response)}')
        return response

    def post(self, url: str, **kwargs) -> Response:
        """Send an HTTP POST request using the configured session."""
        return self.request('POST', url, **kwargs)

    def put(self, url: str, **kwargs) -> Response:
        """Send an HTTP PUT request using the configured session."""
        return self.request('PUT', url, **kwargs)

    def head(self, url: str, **kwargs) -> Response:
        """Send an HTTP HEAD request using the configured session."""
        return self.request('HEAD', url, **kwargs)

    def get(self, url: str, **kwargs) -> Response:
        """Send an HTTP GET request using the configured session."""
        return self.request('GET', url, **kwargs)

    def exchange(self, phase: Phase, send: Callable[..., Response], url: str, **kwargs) -> Response:
        """Send a request with one of the verb methods (`send`) on behalf of
        one phase of a pod operation. Failures are tagged with `phase`; a
        non-2xx response raises the matching `ProtocolError` subclass."""
        try:
            response = send(url, **kwargs)
        except TransportError as e:
            e.phase = phase
            raise
        if not is_success(response):
            logger.error(f'Unable to {phase} {url}: {response.status_code} {reason_phrase(response)}')
            raise protocol_error_class(phase, response.status_code)(response, phase=phase)
        return response

    def is_reachable(self) -> bool:
        """Returns `True` if an HTTP HEAD request to the pod base yields a
        non-error response, and `False` otherwise."""
        try:
            return self.head(str(self.pod.url)).ok
        except TransportError as e:
            logger.error(str(e))
            return False

    def test_connection(self):
        """Test the connection to the pod using `is_reachable()`. If it
        returns false, raises a `TransportError`."""
        logger.info(f'Testing connection to {self.pod}')
        if self.is_reachable():
            logger.info('Connection successful.')
        else:
            raise TransportError(f'Unable to connect to {self.pod}', url=str(self.pod.url))

    def get_location(self, response: Response) -> Optional[str]:
        """Return the value of the `Location` HTTP header in `response`,
        or `None` if there is no such header."""
        try:
            return response.headers['Location']
        except KeyError:
            logger.warning('No Location header in response')
            return None


class PodClient(Client):
    """Client for the containers and line-delimited text resources of a
    Solid pod.

    Every operation raises a `PodError` on failure: a `TransportError` if
    the exchange did not complete, or a `ProtocolError` if the pod answered
    with a non-2xx status. The `phase` of the error says which step failed.

    `update_data()` is a read followed by a full rewrite. Without
    `conditional=True`, two concurrent updates of the same resource race and
    the last writer wins, dropping the other writer's values."""

    def create_container(self, container_name: str, description: str = None) -> ResourceURI:
        """Create a basic container named `container_name` directly under the
        pod base, described with a title and a description (which defaults
        to the name). Raises `ContainerCreationError` if the pod refuses."""
        url = self.pod.container_url(container_name)
        logger.info(f'Creating container {url}')
        body = serialize(container_graph(container_name, description), format='turtle')
        response = self.exchange(
            Phase.CREATE,
            self.post,
            url,
            headers={
                'Content-Type': 'text/turtle',
                'Link': BASIC_CONTAINER_LINK,
            },
            data=body.encode('utf-8'),
        )
        created_uri = self.get_location(response) or url
        try:
            description_uri = response.links['describedby']['url']
        except KeyError:
            description_uri = created_uri
        resource = ResourceURI(created_uri, description_uri)
        logger.info(f'Created {resource}')
        return resource

    def publish_data(
            self,
            container_name: str,
            file_name: str,
            data: Iterable[Any],
            if_match: str = None,
            if_none_match: str = None,
    ):
        """Replace the content of the resource with `data`, one value per
        line. `if_match` and `if_none_match` are sent as the corresponding
        precondition headers; a rejected precondition raises
        `PreconditionFailed`."""
        url = self.pod.resource_url(container_name, file_name)
        values = list(data)
        headers = {'Content-Type': 'text/plain'}
        if if_match is not None:
            headers['If-Match'] = if_match
        if if_none_match is not None:
            headers['If-None-Match'] = if_none_match
        logger.info(f'Publishing {len(values)} value(s) to {url}')
        self.exchange(Phase.PUBLISH, self.put, url, headers=headers, data=codec.encode(values).encode('utf-8'))
        logger.info(f'Published {url}')

    def read_resource(self, container_name: str, file_name: str) -> Representation:
        """Get the text content of the resource along with its `ETag`.
        Raises `ResourceNotFound` if it does not exist."""
        url = self.pod.resource_url(container_name, file_name)
        logger.info(f'Reading {url}')
        response = self.exchange(Phase.READ, self.get, url, headers={'Accept': 'text/plain'})
        content_type = response.headers.get('Content-Type', 'text/plain')
        if 'charset' not in content_type:
            # otherwise requests assumes ISO-8859-1 for text/* responses
            response.encoding = 'utf-8'
        return Representation(TypedText(content_type, response.text), response.headers.get('ETag'))

    def read_data(self, container_name: str, file_name: str) -> list[str]:
        """Values stored in the resource, in order. An existing but empty
        resource yields an empty list; a missing one raises `ResourceNotFound`."""
        values = self.read_resource(container_name, file_name).data
        logger.info(f'Read {len(values)} value(s)')
        return values

    def read_data_into(self, container_name: str, file_name: str, feedback: FeedbackParam[list[str]]):
        """Same as `read_data()`, but stores the values in `feedback`. On
        failure the exception propagates and `feedback` is left unset."""
        feedback.set(self.read_data(container_name, file_name))

    def update_data(self, container_name: str, file_name: str, data: Iterable[Any], conditional: bool = False):
        """Append `data` to the values stored in the resource. A missing
        resource is treated as empty. Any other read failure is raised
        without writing anything.

        If `conditional` is `True`, the write is only applied if the resource
        is unchanged since it was read (`If-Match` with the read `ETag`, or
        `If-None-Match: *` if it did not exist); otherwise it raises
        `PreconditionFailed`."""
        preconditions = {}
        try:
            current = self.read_resource(container_name, file_name)
        except ResourceNotFound:
            logger.info(f'{self.pod.resource_url(container_name, file_name)} does not exist yet')
            old_values = []
            preconditions['if_none_match'] = '*'
        else:
            old_values = current.data
            if conditional and current.etag is None:
                raise PodError(
                    'Cannot update conditionally: the pod did not return an ETag',
                    url=self.pod.resource_url(container_name, file_name),
                    phase=Phase.READ,
                )
            preconditions['if_match'] = current.etag

        new_values = list(data)
        logger.info(f'Appending {len(new_values)} value(s) to {len(old_values)} existing value(s)')
        self.publish_data(
            container_name,
            file_name,
            old_values + new_values,
            **(preconditions if conditional else {}),
        )

"""Namespaces used when describing pod containers with `rdflib`."""

import sys
from typing import Optional

from rdflib import Namespace, Graph
from rdflib.namespace import NamespaceManager

dcterms = Namespace('http://purl.org/dc/terms/')
"""[Dublin Core Terms](https://www.dublincore.org/specifications/dublin-core/dcmi-terms/#section-2)"""

ldp = Namespace('http://www.w3.org/ns/ldp#')
"""[Linked Data Platform](https://www.w3.org/TR/ldp/)"""

rdf = Namespace('http://www.w3.org/1999/02/22-rdf-syntax-ns#')
"""[RDF](https://www.w3.org/TR/rdf11-schema/)"""


def get_manager(graph: Optional[Graph] = None) -> NamespaceManager:
    """Scan this module's attributes for `Namespace` objects, and bind them
    to a prefix corresponding to their attribute name defined above."""
    if graph is None:
        graph = Graph()
    nsm = NamespaceManager(graph)
    prefixes = {attr: value for attr, value in sys.modules[__name__].__dict__.items() if isinstance(value, Namespace)}
    for prefix, ns in prefixes.items():
        nsm.bind(prefix, ns)
    return nsm

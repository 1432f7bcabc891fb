"""
SAX event source.

Bridges ``xml.sax`` to a ``DispatchEngine``: each SAX callback becomes one
engine event. Namespace-aware parsing is on by default, so elements arrive
as ``(uri, local name)`` pairs and attributes are keyed by local name.

Known entities (public IDs of DTDs and similar) are looked up in a
caller-owned ``EntityCatalog`` rather than in any global registry.
"""

from __future__ import annotations

import io
import os
import xml.sax
from typing import IO, Any
from xml.sax.handler import ContentHandler, EntityResolver, feature_namespaces
from xml.sax.xmlreader import AttributesImpl

from treebind.core.errors import DocumentParseError, TreebindError
from treebind.engine.dispatcher import DispatchEngine
from treebind.logging import get_logger

log = get_logger(__name__)

Source = str | bytes | os.PathLike | IO[Any]


class EntityCatalog(EntityResolver):
    """
    Public ID to URL registry, consulted by the SAX parser.

    Example:
        catalog = EntityCatalog()
        catalog.register("-//Example//DTD Config 1.0//EN", "file:///opt/dtd/config.dtd")
    """

    def __init__(self, entities: dict[str, str] | None = None) -> None:
        self._entities: dict[str, str] = dict(entities or {})

    def register(self, public_id: str, url: str) -> None:
        log.debug("catalog.registered", public_id=public_id, url=url)
        self._entities[public_id] = url

    def resolve(self, public_id: str | None) -> str | None:
        if public_id is None:
            return None
        return self._entities.get(public_id)

    def known_entities(self) -> dict[str, str]:
        return dict(self._entities)

    def resolveEntity(self, publicId, systemId):  # noqa: N802 - SAX API
        url = self.resolve(publicId)
        if url is not None:
            log.debug("catalog.resolved", public_id=publicId, url=url)
            return url
        return systemId

    def __len__(self) -> int:
        return len(self._entities)


class SaxEventSource(ContentHandler):
    """Forward SAX callbacks to a dispatch engine."""

    def __init__(self, engine: DispatchEngine, *, namespace_aware: bool = True) -> None:
        super().__init__()
        self.engine = engine
        self.namespace_aware = namespace_aware
        self.locator = None

    def setDocumentLocator(self, locator):  # noqa: N802
        self.locator = locator

    def position(self) -> tuple[int | None, int | None]:
        if self.locator is None:
            return None, None
        return self.locator.getLineNumber(), self.locator.getColumnNumber()

    def startDocument(self):  # noqa: N802
        self.engine.start_document()

    def endDocument(self):  # noqa: N802
        self.engine.end_document()

    def startElementNS(self, name, qname, attrs):  # noqa: N802
        uri, local = name
        attributes = {}
        for (attr_uri, attr_local), value in attrs.items():
            # namespaced attributes keep their uri so xml:lang and lang stay distinct
            key = f"{{{attr_uri}}}{attr_local}" if attr_uri else attr_local
            attributes[key] = value
        self.engine.open_element(uri or None, local or qname, attributes)

    def endElementNS(self, name, qname):  # noqa: N802
        self.engine.close_element()

    def startElement(self, name, attrs: AttributesImpl):  # noqa: N802
        self.engine.open_element(None, name, dict(attrs.items()))

    def endElement(self, name):  # noqa: N802
        self.engine.close_element()

    def characters(self, content):
        self.engine.text(content)

    def ignorableWhitespace(self, whitespace):  # noqa: N802
        self.engine.text(whitespace)


def _input(source: Source) -> Any:
    if isinstance(source, bytes):
        return io.BytesIO(source)
    if isinstance(source, os.PathLike):
        return os.fspath(source)
    return source


def parse_into(
    engine: DispatchEngine,
    source: Source,
    catalog: EntityCatalog | None = None,
    namespace_aware: bool = True,
) -> Any:
    """
    Parse ``source`` and drive ``engine`` with its events.

    ``source`` is a file name, path, binary/text file object, or raw bytes.
    Returns the engine's root object.

    Raises:
        DocumentParseError: Malformed document (line/column attached)
        TreebindError: Anything raised by the engine or its rules
    """
    handler = SaxEventSource(engine, namespace_aware=namespace_aware)
    parser = xml.sax.make_parser()
    parser.setFeature(feature_namespaces, namespace_aware)
    parser.setContentHandler(handler)
    parser.setEntityResolver(catalog or EntityCatalog())

    try:
        parser.parse(_input(source))
    except xml.sax.SAXParseException as e:
        error = DocumentParseError(
            f"Malformed document: {e.getMessage()}",
            line=e.getLineNumber(),
            column=e.getColumnNumber(),
            cause=e,
        ).with_context(document=engine.document)
        raise engine.abort(error) from e
    except TreebindError as e:
        line, column = handler.position()
        if line is not None:
            e.with_context(line=line, column=column)
        raise

    return engine.root

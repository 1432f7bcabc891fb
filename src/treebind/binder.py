"""
Binder - the one-stop facade.

Manifesto:
    Most callers want "register some rules, parse a file, get an object
    back". The Binder owns a rule table, builds a fresh DispatchEngine for
    every parse, wires the SAX event source to it and returns the root
    object. Everything underneath stays usable on its own.

Tags:
    treebind, binder, facade, sax
"""

from __future__ import annotations

import io
from typing import Any

from treebind.core.settings import BinderSettings
from treebind.engine.dispatcher import DispatchEngine, DispatchRecord
from treebind.engine.rule import Rule
from treebind.engine.table import RuleTable
from treebind.logging import get_logger, log_step, new_parse_id, push_context
from treebind.properties import PropertySetter
from treebind.sax import EntityCatalog, Source, parse_into

log = get_logger(__name__)


class Binder:
    """
    Rule registration plus parsing.

    Example:
        binder = Binder()
        binder.add_rule("config", ObjectCreateAction(Config))
        binder.add_rule("config/server", ObjectCreateAction(Server))
        binder.add_rule("config/server", SetPropertiesAction())
        binder.add_rule("config/server", SetNextAction("add_server"))
        config = binder.parse("config.xml")

    Args:
        settings: Binder settings; loaded from ``TREEBIND_*`` env vars if omitted
        property_setter: Override how property actions write to objects
        trace: Record every rule callback in ``Binder.trace_records``
    """

    def __init__(
        self,
        settings: BinderSettings | None = None,
        *,
        property_setter: PropertySetter | None = None,
        trace: bool = False,
    ) -> None:
        self.settings = settings or BinderSettings()
        self.property_setter = property_setter
        self.table = RuleTable()
        self.catalog = EntityCatalog()
        self.trace = trace
        self.trace_records: list[DispatchRecord] = []
        self._pushed: list[Any] = []
        self.last_engine: DispatchEngine | None = None

    # ── Configuration ─────────────────────────────────────────────

    def add_rule(self, pattern: str, rule: Rule, namespace: str | None = None) -> "Binder":
        self.table.register(pattern, rule, namespace=namespace)
        return self

    def add_rules(self, pattern: str, *rules: Rule, namespace: str | None = None) -> "Binder":
        for rule in rules:
            self.table.register(pattern, rule, namespace=namespace)
        return self

    def push(self, obj: Any) -> "Binder":
        """Pre-push an object; the first one pushed becomes the root."""
        self._pushed.append(obj)
        return self

    def register_known_entity(self, public_id: str, url: str) -> None:
        self.catalog.register(public_id, url)

    def known_entities(self) -> dict[str, str]:
        return self.catalog.known_entities()

    # ── Parsing ───────────────────────────────────────────────────

    def new_engine(self, document: str | None = None) -> DispatchEngine:
        engine = DispatchEngine(
            self.table,
            settings=self.settings,
            property_setter=self.property_setter,
            document=document,
            listener=self.trace_records.append if self.trace else None,
        )
        for obj in self._pushed:
            engine.push_object(obj)
        return engine

    def parse(self, source: Source) -> Any:
        """
        Parse a document and return the root object.

        ``source`` is a file name or path, a file object, raw bytes, or a
        ``str`` that starts with ``<`` (treated as document text).
        """
        if isinstance(source, str) and source.lstrip().startswith("<"):
            return self.parse_string(source)
        return self._parse(source, _describe(source))

    def parse_string(self, text: str | bytes) -> Any:
        data = text.encode("utf-8") if isinstance(text, str) else text
        return self._parse(io.BytesIO(data), "<string>")

    def _parse(self, source: Source, document: str) -> Any:
        if self.trace:
            self.trace_records.clear()
        engine = self.new_engine(document)
        self.last_engine = engine

        token = push_context(parse_id=new_parse_id(), document=document)
        try:
            with log_step("binder.parse", document=document) as timer:
                root = parse_into(
                    engine,
                    source,
                    catalog=self.catalog,
                    namespace_aware=self.settings.namespace_aware,
                )
                timer.add_metric("elements", engine.element_count)
                timer.add_metric("activations", engine.activation_count)
        finally:
            token.restore()
        return root


def _describe(source: Any) -> str:
    if isinstance(source, bytes):
        return "<bytes>"
    name = getattr(source, "name", None)
    if isinstance(name, str):
        return name
    return str(source)

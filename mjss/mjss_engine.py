"""
The MJSS script engine.

An engine owns one PropertyTree, a persistence key and a render container.
Property scripts sent to `update` are parsed, combined with the current tree,
rendered onto the managed element and then saved, so that a new engine over
the same store and key comes back in the same state:

    engine = ScriptEngine("app", document=doc, store=store, on_error=ErrorLog())
    engine.update('text = "Hello"\\ncolor = "red"')
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

from mjss.mjss_config import DEFAULT_STORAGE_KEY, dbg
from mjss.mjss_datatypes import ErrorSink, MergePolicy, PropertyTree, TargetNotFound, merge
from mjss.mjss_parser import PropertyParser
from mjss.mjss_printer import Printer
from mjss.mjss_serialize import export_tree
from mjss.mjss_store import MemoryStore, Store

# Property keys the renderer understands
ID_KEY = "buttonID"
STYLE_KEYS = {
    "color": "background-color",
    "width": "width",
    "height": "height",
}
DEFAULT_FADE_DURATION = "1s"


# ===================================================================
# Render target contract
# ===================================================================

class RenderTarget(ABC):
    """The element an engine configures on every render pass."""

    @abstractmethod
    def set_text(self, text: str): raise NotImplementedError

    @abstractmethod
    def set_style(self, name: str, value: str): raise NotImplementedError


class RenderContainer(ABC):
    """Where an engine creates its element the first time it renders."""

    @abstractmethod
    def create_element(self, element_id: Optional[str] = None) -> RenderTarget: raise NotImplementedError


class Element(RenderContainer, RenderTarget):
    """A minimal in-memory element: id, text, inline style and children."""

    def __init__(self, tag: str = "div", element_id: Optional[str] = None, document: Optional['Document'] = None):
        self.tag = tag
        self.id = element_id
        self.text = ""
        self.style: Dict[str, str] = {}
        self.children: List['Element'] = []
        self.document = document

    def set_text(self, text: str):
        self.text = text

    def set_style(self, name: str, value: str):
        self.style[name] = value

    def create_element(self, element_id: Optional[str] = None, tag: str = "button") -> 'Element':
        child = Element(tag, element_id, self.document)
        self.children.append(child)
        return child

    def iter(self):
        yield self
        for child in self.children:
            yield from child.iter()

    def __repr__(self) -> str:
        ident = f" id={self.id!r}" if self.id else ""
        return f"<Element {self.tag}{ident} text={self.text!r} style={self.style!r}>"


class Document:
    """An in-memory element tree with id lookup."""

    def __init__(self):
        self.body = Element("body", document=self)

    def create_element(self, tag: str = "div", element_id: Optional[str] = None, parent: Optional[Element] = None) -> Element:
        return (parent or self.body).create_element(element_id, tag=tag)

    def get_element_by_id(self, element_id: str) -> Optional[Element]:
        for elem in self.body.iter():
            if elem.id == element_id:
                return elem
        return None


# ===================================================================
# Engine
# ===================================================================

class ScriptEngine:
    """Parses, merges, renders and persists property scripts."""

    def __init__(self,
                 container: Union[str, RenderContainer],
                 *,
                 on_error: ErrorSink,
                 document: Optional[Any] = None,
                 storage_key: Optional[str] = None,
                 store: Optional[Store] = None,
                 strict: bool = False):
        if not callable(on_error):
            raise TypeError("ScriptEngine requires an on_error sink")
        self.container = self._resolve_container(container, document)
        self.storage_key = storage_key or DEFAULT_STORAGE_KEY
        self.store = store if store is not None else MemoryStore()
        self.on_error = on_error
        self.parser = PropertyParser(strict=strict)
        self.printer = Printer()
        self.current_props = PropertyTree()
        self.element: Optional[RenderTarget] = None

        self._initialize()

    @staticmethod
    def _resolve_container(container, document) -> RenderContainer:
        if isinstance(container, str):
            lookup = getattr(document, "get_element_by_id", None)
            elem = lookup(container) if callable(lookup) else None
            if elem is None:
                raise TargetNotFound(container)
            return elem
        if container is None:
            raise TargetNotFound(str(container))
        return container

    def _initialize(self):
        """Loads the saved script (if any), then renders it."""
        try:
            saved = self.store.get(self.storage_key) or ""
            if saved:
                self.current_props = self.parser.parse(saved)
            self._render()
        except Exception as e:
            self._handle_error("Initialization", e)

    # ---- public API ----

    @property
    def properties(self) -> PropertyTree:
        return self.current_props.copy()

    @property
    def script(self) -> str:
        return self.printer.pformat(self.current_props)

    def update(self, script: str, mode: MergePolicy = MergePolicy.MERGE) -> bool:
        """Applies script to the current tree, re-renders and persists.

        A parse failure leaves the tree untouched. A render or persist
        failure keeps the merged tree; the saved script then lags behind
        until the next successful update. Returns True on full success.
        """
        try:
            if isinstance(mode, bool):
                mode = MergePolicy.REPLACE if mode else MergePolicy.MERGE
            elif isinstance(mode, str):
                mode = MergePolicy(mode.lower())
            new_props = self.parser.parse(script)
            self.current_props = merge(self.current_props, new_props, mode)
            self._render()
            self.store.set(self.storage_key, self.printer.pformat(self.current_props))
        except Exception as e:
            self._handle_error("UpdateMJSS", e)
            return False
        dbg("update", mode, "keys", list(self.current_props))
        return True

    def export(self, fmt: str) -> str:
        return export_tree(self.current_props, fmt)

    # ---- rendering ----

    def _render(self):
        props = self.current_props
        if self.element is None:
            element_id = props.get(ID_KEY)
            self.element = self.container.create_element(element_id if isinstance(element_id, str) and element_id else None)

        text = props.get("text")
        if isinstance(text, str) and text:
            self.element.set_text(text)
        for key, style_name in STYLE_KEYS.items():
            value = props.get(key)
            if isinstance(value, str) and value:
                self.element.set_style(style_name, value)

        animation = props.get("animation")
        if isinstance(animation, PropertyTree):
            # Other animation types are accepted and ignored
            if animation.get("type") == "fade":
                duration = animation.get("duration")
                if not isinstance(duration, str) or not duration:
                    duration = DEFAULT_FADE_DURATION
                self.element.set_style("transition", f"opacity {duration} ease-in-out")

    def _handle_error(self, context: str, error: BaseException):
        dbg("engine error", context, type(error).__name__)
        self.on_error(context, error)


__all__ = [
    "ScriptEngine",
    "RenderTarget",
    "RenderContainer",
    "Element",
    "Document",
    "ID_KEY",
]

"""Forward-only token stream over one JSON document.

The reader walks a parsed document one token at a time and never moves
backwards. Parsing keeps object members as ordered pairs, so duplicate keys
reach the decoder in input order instead of being collapsed by the parser.
"""

import json
from collections.abc import Mapping
from enum import Enum
from typing import Any, Iterator, List, Tuple, Union


class JsonToken(str, Enum):
    """Kinds of token produced by JsonReader.peek()."""
    BEGIN_OBJECT = "BEGIN_OBJECT"
    END_OBJECT = "END_OBJECT"
    BEGIN_ARRAY = "BEGIN_ARRAY"
    END_ARRAY = "END_ARRAY"
    NAME = "NAME"
    STRING = "STRING"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"
    NULL = "NULL"
    END_DOCUMENT = "END_DOCUMENT"


_SCALARS = frozenset({JsonToken.STRING, JsonToken.NUMBER, JsonToken.BOOLEAN, JsonToken.NULL})


class JsonStreamError(ValueError):
    """Raised when the document does not have the structure the caller expects."""

    def __init__(self, message: str, path: str):
        self.path = path
        super().__init__(f"{message} at path {path}")


class _Pairs(list):
    """Members of one JSON object as (name, value) pairs in input order."""


def _events(value: Any) -> Iterator[Tuple[JsonToken, Any]]:
    if isinstance(value, (_Pairs, Mapping)):
        yield JsonToken.BEGIN_OBJECT, None
        members = value if isinstance(value, _Pairs) else value.items()
        for name, member in members:
            if not isinstance(name, str):
                raise TypeError(f"object key {name!r} is not a string")
            yield JsonToken.NAME, name
            yield from _events(member)
        yield JsonToken.END_OBJECT, None
    elif isinstance(value, (list, tuple)):
        yield JsonToken.BEGIN_ARRAY, None
        for element in value:
            yield from _events(element)
        yield JsonToken.END_ARRAY, None
    elif value is None:
        yield JsonToken.NULL, None
    elif isinstance(value, bool):
        yield JsonToken.BOOLEAN, value
    elif isinstance(value, (int, float)):
        yield JsonToken.NUMBER, value
    elif isinstance(value, str):
        yield JsonToken.STRING, value
    else:
        raise TypeError(f"{type(value).__name__} is not a JSON value")


class JsonReader:
    """Token cursor over one JSON document.

    Build one with ``from_json`` (text or bytes) or ``from_value`` (an already
    parsed tree of dicts, lists and scalars).
    """

    def __init__(self, document: Any, root: str = "$"):
        self._root = root  # path of the document within an enclosing one
        self._events = _events(document)
        self._stack: List[List[Any]] = []  # [kind, member name or element index]
        self._token: JsonToken = JsonToken.END_DOCUMENT
        self._payload: Any = None
        self._advance()

    @classmethod
    def from_json(cls, data: Union[str, bytes, bytearray]) -> "JsonReader":
        """Parse JSON text; raises JsonStreamError if it is not well-formed."""
        try:
            document = json.loads(data, object_pairs_hook=_Pairs)
        except json.JSONDecodeError as e:
            raise JsonStreamError(f"{e.msg} (line {e.lineno} column {e.colno})", "$") from e
        except UnicodeDecodeError as e:
            raise JsonStreamError(f"invalid encoding ({e.reason})", "$") from e
        return cls(document)

    @classmethod
    def from_value(cls, value: Any, root: str = "$") -> "JsonReader":
        """Stream over an already-parsed Python tree located at root."""
        return cls(value, root)

    @property
    def path(self) -> str:
        """JSONPath-style location of the cursor, e.g. ``$.items[2].name``."""
        parts = [self._root]
        for kind, position in self._stack:
            if kind == "array":
                parts.append(f"[{position}]")
            elif position is not None:
                parts.append(f".{position}")
        return "".join(parts)

    def _advance(self) -> None:
        try:
            self._token, self._payload = next(self._events)
        except StopIteration:
            self._token, self._payload = JsonToken.END_DOCUMENT, None
        except TypeError as e:
            raise JsonStreamError(str(e), self.path) from e

    def _expect(self, token: JsonToken) -> Any:
        if self._token is not token:
            raise JsonStreamError(f"Expected {token.value} but was {self._token.value}", self.path)
        payload = self._payload
        self._advance()
        return payload

    def _value_done(self) -> None:
        if self._stack and self._stack[-1][0] == "array":
            self._stack[-1][1] += 1

    def peek(self) -> JsonToken:
        return self._token

    def has_next(self) -> bool:
        """True while the current object or array has more members."""
        return self._token not in (JsonToken.END_OBJECT, JsonToken.END_ARRAY, JsonToken.END_DOCUMENT)

    def begin_object(self) -> None:
        self._expect(JsonToken.BEGIN_OBJECT)
        self._stack.append(["object", None])

    def end_object(self) -> None:
        self._expect(JsonToken.END_OBJECT)
        self._stack.pop()
        self._value_done()

    def begin_array(self) -> None:
        self._expect(JsonToken.BEGIN_ARRAY)
        self._stack.append(["array", 0])

    def end_array(self) -> None:
        self._expect(JsonToken.END_ARRAY)
        self._stack.pop()
        self._value_done()

    def next_name(self) -> str:
        name = self._expect(JsonToken.NAME)
        self._stack[-1][1] = name
        return name

    def next_null(self) -> None:
        self._expect(JsonToken.NULL)
        self._value_done()

    def next_scalar(self) -> Any:
        """Consume a string, number, boolean or null and return it."""
        if self._token not in _SCALARS:
            raise JsonStreamError(f"Expected a scalar but was {self._token.value}", self.path)
        payload = self._payload
        self._advance()
        self._value_done()
        return payload

    def read_value(self) -> Any:
        """Consume one complete value and return it as a Python tree.

        Objects become dicts; for duplicate keys the last value wins.
        """
        token = self._token
        if token is JsonToken.BEGIN_OBJECT:
            self.begin_object()
            obj = {}
            while self.has_next():
                name = self.next_name()
                obj[name] = self.read_value()
            self.end_object()
            return obj
        if token is JsonToken.BEGIN_ARRAY:
            self.begin_array()
            array = []
            while self.has_next():
                array.append(self.read_value())
            self.end_array()
            return array
        return self.next_scalar()

    def skip_value(self) -> None:
        """Consume one complete value, including everything nested in it."""
        depth = 0
        while True:
            token = self._token
            if token is JsonToken.BEGIN_OBJECT:
                self.begin_object()
                depth += 1
            elif token is JsonToken.BEGIN_ARRAY:
                self.begin_array()
                depth += 1
            elif token in (JsonToken.END_OBJECT, JsonToken.END_ARRAY, JsonToken.NAME) and depth == 0:
                raise JsonStreamError(f"Expected a value but was {token.value}", self.path)
            elif token is JsonToken.END_OBJECT:
                self.end_object()
                depth -= 1
            elif token is JsonToken.END_ARRAY:
                self.end_array()
                depth -= 1
            elif token is JsonToken.NAME:
                self.next_name()
                continue
            else:
                self.next_scalar()
            if depth == 0:
                return

    def end_document(self) -> None:
        """Assert that the whole document has been consumed."""
        if self._token is not JsonToken.END_DOCUMENT:
            raise JsonStreamError(f"Expected END_DOCUMENT but was {self._token.value}", self.path)

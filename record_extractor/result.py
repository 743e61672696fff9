"""
ExtractionResult: the typed bag every extractor returns.

Each requested output key maps to a raw value: str, int, float, bool, a list
of raw values, a dict, or the NotFound sentinel. Accessors reinterpret the raw
value on read and never change what is stored.
"""

from collections.abc import Mapping, Set
from typing import Any, Callable, Iterator, Optional

from .exceptions import CoercionError, TypeMismatchError, UnknownKeyError


class NotFoundType:
    """Type of the NotFound sentinel: the selector matched nothing."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NotFound"

    def __str__(self) -> str:
        return "NotFound"

    def __reduce__(self):
        return (NotFoundType, ())


NotFound = NotFoundType()


def to_text(value: Any) -> str:
    """Textual form of a raw value, as used by string() and str(result)."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(to_text(element) for element in value) + "]"
    if isinstance(value, dict):
        return "{" + ", ".join(f"{key}={to_text(item)}" for key, item in value.items()) + "}"
    return str(value)


def _is_instance(element: Any, element_type: type) -> bool:
    # bool is a subclass of int but never counts as a number here
    if isinstance(element, bool) and element_type in (int, float):
        return False
    return isinstance(element, element_type)


class ExtractionResult(Mapping):
    """
    Named outputs of one extraction pass over one document.

    Read-only mapping of output key to raw value. A key requested in the
    selection is always present, holding NotFound if its selector matched
    nothing.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values = dict(values or {})

    # --- Mapping interface ---

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other) -> bool:
        if isinstance(other, ExtractionResult):
            return self._values == other._values
        if isinstance(other, Mapping):
            return self._values == dict(other)
        return NotImplemented

    __hash__ = None

    def __repr__(self) -> str:
        return f"ExtractionResult({self._values!r})"

    def __str__(self) -> str:
        return "\n".join(f"{key} => {to_text(value)}" for key, value in self._values.items())

    def to_dict(self) -> dict:
        """Plain dict copy with NotFound replaced by None, ready for json.dumps()."""
        return {key: self._plain(value) for key, value in self._values.items()}

    @classmethod
    def _plain(cls, value: Any) -> Any:
        if value is NotFound:
            return None
        if isinstance(value, (list, tuple, Set)):
            return [cls._plain(element) for element in value]
        if isinstance(value, dict):
            return {key: cls._plain(item) for key, item in value.items()}
        return value

    # --- accessors ---

    def _raw(self, key: str) -> Any:
        if key not in self._values:
            raise UnknownKeyError(key)
        return self._values[key]

    def _scalar(self, key: str) -> Any:
        """Raw value with a single-element list unwrapped to its element."""
        value = self._raw(key)
        if isinstance(value, (list, tuple)) and len(value) == 1:
            return value[0]
        return value

    def not_found(self, key: str) -> bool:
        """True if the key is absent or its selector matched nothing."""
        return self._values.get(key, NotFound) is NotFound

    def is_of_type(self, key: str, cls: type) -> bool:
        """
        True only if the stored value's type is exactly cls.

        Subclasses don't count. Pass NotFound or NotFoundType to test for the
        sentinel.

        Raises:
            UnknownKeyError: If the key is absent.
        """
        value = self._raw(key)
        if cls is NotFound:
            cls = NotFoundType
        return type(value) is cls

    def string(self, key: str) -> str:
        return to_text(self._scalar(key))

    def string_or_default(self, key: str, default: str = "") -> str:
        if self._raw(key) is NotFound:
            return default
        return self.string(key)

    def double(self, key: str) -> float:
        """
        Value as float.

        Raises:
            UnknownKeyError: If the key is absent.
            CoercionError: If the value cannot be read as float.
        """
        value = self._scalar(key)

        if isinstance(value, bool):
            raise CoercionError(f"Unable to return value [{to_text(value)}] as double.", value=value)
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError as e:
                raise CoercionError(f"Unable to return value [{value}] as double.", value=value) from e

        raise CoercionError(f"Unable to return value [{to_text(value)}] as double.", value=value)

    def double_or_default(self, key: str, default: float = 0.0) -> float:
        if self._raw(key) is NotFound:
            return default
        return self.double(key)

    def list_not_null(
        self,
        key: str,
        element_type: type = object,
        transform: Optional[Callable[[Any], Any]] = None
    ) -> list:
        """
        Value as a list without None entries.

        Lists are copied, sets converted, and any other value is wrapped in a
        one-element list.

        Args:
            key: Output key
            element_type: Type every element must have (ignored if transform is given)
            transform: Applied to each element instead of the type check

        Raises:
            UnknownKeyError: If the key is absent.
            TypeMismatchError: If an element is not an element_type.
        """
        value = self._raw(key)

        if isinstance(value, (list, tuple, Set)):
            elements = [element for element in value if element is not None]
        else:
            elements = [value]

        if transform is not None:
            return [transform(element) for element in elements]

        mismatched = [element for element in elements if not _is_instance(element, element_type)]
        if mismatched:
            raise TypeMismatchError(
                f"Not all elements of [{to_text(value)}] are of type [{element_type.__name__}], "
                f"offending value [{to_text(mismatched[0])}].",
                value=mismatched[0]
            )

        return elements

    def int_or_default(self, key: str, default: int = 0) -> int:
        if self._raw(key) is NotFound:
            return default
        return self.int(key)

    def int(self, key: str) -> int:
        """
        Value as int.

        ints are returned unchanged, floats are truncated toward zero and
        strings are parsed after trimming ("054" gives 54).

        Raises:
            UnknownKeyError: If the key is absent.
            CoercionError: If the value cannot be read as int.
        """
        value = self._scalar(key)

        if isinstance(value, bool):
            raise CoercionError(f"Unable to return value [{to_text(value)}] as int.", value=value)
        if isinstance(value, (int, float)):
            try:
                return int(value)
            except (OverflowError, ValueError) as e:
                raise CoercionError(f"Unable to return value [{value}] as int.", value=value) from e
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError as e:
                raise CoercionError(f"Unable to return value [{value}] as int.", value=value) from e

        raise CoercionError(f"Unable to return value [{to_text(value)}] as int.", value=value)


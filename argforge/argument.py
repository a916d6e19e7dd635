import collections.abc
import typing
from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any, get_args, get_origin

from attrs import field

from argforge._convert import Converter
from argforge.annotations import get_hint_name, is_union, resolve, resolve_annotated
from argforge.utils import UNSET, frozen, to_tuple_converter


class Arity(Enum):
    """How many values an argument accepts."""

    SCALAR = "scalar"
    """Exactly one value."""

    MULTI = "multi"
    """Any number of values, collected in first-seen order."""

    DICTIONARY = "dictionary"
    """Any number of ``key=value`` pairs, collected into a mapping."""


# Declared collection type -> concrete container that is handed to the holder.
_MULTI_CONTAINERS: dict[Any, type] = {
    list: list,
    tuple: tuple,
    set: set,
    frozenset: frozenset,
    collections.abc.Iterable: list,
    collections.abc.Collection: list,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Set: frozenset,
    collections.abc.MutableSet: set,
    typing.Sequence: list,
    typing.Iterable: list,
    typing.List: list,  # noqa: UP006
    typing.Tuple: tuple,  # noqa: UP006
    typing.Set: set,  # noqa: UP006
}

_DICTIONARY_CONTAINERS: dict[Any, type] = {
    dict: dict,
    collections.abc.Mapping: dict,
    collections.abc.MutableMapping: dict,
    typing.Dict: dict,  # noqa: UP006
    typing.Mapping: dict,
}


@frozen
class HintShape:
    """Result of classifying a declared type hint."""

    arity: Arity
    container: type | None
    value_type: Any
    key_type: Any = None


def classify_hint(hint: Any) -> HintShape:
    """Classify a declared type into scalar, multi-value or dictionary arity.

    Raises
    ------
    TypeError
        ``hint`` is a collection shape argforge cannot bind (e.g. a fixed-length tuple).
    """
    hint = resolve(hint)
    origin = get_origin(hint) or hint
    args = get_args(hint)

    if origin in _DICTIONARY_CONTAINERS:
        if not args:
            key_type, value_type = str, str
        else:
            key_type, value_type = args
        return HintShape(Arity.DICTIONARY, _DICTIONARY_CONTAINERS[origin], resolve(value_type), resolve(key_type))

    if origin in _MULTI_CONTAINERS:
        container = _MULTI_CONTAINERS[origin]
        if not args:
            value_type = str
        elif container is tuple:
            if len(args) != 2 or args[1] is not Ellipsis:
                raise TypeError(f"Fixed-length tuple {get_hint_name(hint)} is not supported; use tuple[T, ...].")
            value_type = args[0]
        else:
            value_type = args[0]
        return HintShape(Arity.MULTI, container, resolve(value_type))

    return HintShape(Arity.SCALAR, None, hint)


def _default_value_description(shape: HintShape) -> str:
    if shape.arity is Arity.DICTIONARY:
        return f"{get_hint_name(shape.key_type)}={get_hint_name(shape.value_type)}"
    return get_hint_name(shape.value_type)


@frozen(kw_only=True)
class Argument:
    """Specification of one accepted command line argument.

    Instances are immutable and shared across every parse of their :class:`~argforge.SpecSet`.
    """

    name: str
    """Primary matching key; unique within a specification set."""

    aliases: tuple[str, ...] = field(default=(), converter=to_tuple_converter)
    """Additional matching keys, in declaration order."""

    position: int | None = None
    """Index for positional binding; :obj:`None` for named-only arguments."""

    hint: Any = str
    """Declared type, e.g. ``list[int]``."""

    required: bool = False

    default: Any = field(default=UNSET, hash=False)
    """Value bound when the argument is omitted. Assigned as-is, never converted."""

    default_factory: Callable[[], Any] | None = field(default=None, hash=False)
    """Produces a fresh default per parse; used for mutable defaults."""

    converter: Converter | None = field(default=None, hash=False)
    """Per-argument converter override."""

    help: str = ""
    """Description shown in usage text."""

    separator: str | None = None
    """Multi-value arguments: split each supplied value on this separator."""

    allow_duplicate_keys: bool = False
    """Dictionary arguments: repeated key overwrites instead of raising."""

    key_value_separator: str = "="

    field_name: str | None = None
    """Keyword the value is passed to the holder's factory under. Defaults to :attr:`name`."""

    _value_description: str | None = field(default=None, alias="value_description")

    arity: Arity = field(init=False)
    container: type | None = field(init=False)
    value_type: Any = field(init=False)
    """Type each single raw value is converted into (element type for multi-value, value type for dictionary)."""
    key_type: Any = field(init=False)

    def __attrs_post_init__(self):
        shape = classify_hint(self.hint)
        # Circumvent frozen protection.
        object.__setattr__(self, "arity", shape.arity)
        object.__setattr__(self, "container", shape.container)
        object.__setattr__(self, "value_type", shape.value_type)
        object.__setattr__(self, "key_type", shape.key_type)

    @property
    def names(self) -> tuple[str, ...]:
        """Primary name followed by every alias."""
        return (self.name,) + self.aliases

    @property
    def is_positional(self) -> bool:
        return self.position is not None

    @property
    def is_multi_value(self) -> bool:
        """Accepts repeated occurrences (multi-value and dictionary arities)."""
        return self.arity is not Arity.SCALAR

    @property
    def is_dictionary(self) -> bool:
        return self.arity is Arity.DICTIONARY

    @property
    def is_remainder(self) -> bool:
        """Positional multi-value argument that absorbs every trailing positional value."""
        return self.is_positional and self.is_multi_value

    @property
    def is_switch(self) -> bool:
        """Named boolean argument; its presence alone supplies ``True``."""
        return not self.is_positional and not self.is_dictionary and self.value_type is bool

    @property
    def has_default(self) -> bool:
        return self.default is not UNSET or self.default_factory is not None

    @property
    def value_description(self) -> str:
        if self._value_description:
            return self._value_description
        shape = HintShape(self.arity, self.container, self.value_type, self.key_type)
        return _default_value_description(shape)

    @property
    def keyword(self) -> str:
        return self.field_name or self.name

    def zero_value(self) -> Any:
        """Value of an omitted optional argument that declares no default."""
        if self.arity is Arity.DICTIONARY:
            return {}
        if self.arity is Arity.MULTI:
            assert self.container is not None
            return self.container()
        if self.value_type is bool and not is_union(resolve_annotated(self.hint)):
            return False
        return None

    def resolve_default(self) -> Any:
        """The value bound when this argument is not supplied."""
        if self.default_factory is not None:
            return self.default_factory()
        if self.default is not UNSET:
            return self.default
        return self.zero_value()

    def collect(self, values: Iterable[Any]) -> Any:
        """Pack converted multi-value elements into the declared container."""
        assert self.container is not None
        return self.container(values)

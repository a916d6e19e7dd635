import dataclasses
import inspect
import typing
from collections.abc import Callable
from typing import Any, ClassVar

import attrs
from attrs import field

from argforge.annotations import is_attrs, is_dataclass


@attrs.define
class FieldInfo:
    """One constructor input of an argument-holder, independent of how the holder was declared."""

    name: str
    """Keyword the holder's factory accepts the value under."""

    kind: inspect._ParameterKind

    required: bool = field(kw_only=True)
    default: Any = field(default=inspect.Parameter.empty, kw_only=True)
    default_factory: Callable[[], Any] | None = field(default=None, kw_only=True)
    annotation: Any = field(default=inspect.Parameter.empty, kw_only=True)

    ###################
    # Class Variables #
    ###################
    empty: ClassVar = inspect.Parameter.empty
    POSITIONAL_ONLY: ClassVar = inspect.Parameter.POSITIONAL_ONLY
    POSITIONAL_OR_KEYWORD: ClassVar = inspect.Parameter.POSITIONAL_OR_KEYWORD
    KEYWORD_ONLY: ClassVar = inspect.Parameter.KEYWORD_ONLY

    @property
    def hint(self):
        """Annotation, inferring ``str`` (or the default's type) when absent."""
        if self.annotation is inspect.Parameter.empty:
            if self.default is inspect.Parameter.empty or self.default is None:
                return str
            return type(self.default)
        return self.annotation

    @property
    def is_positional_only(self) -> bool:
        return self.kind is self.POSITIONAL_ONLY


def _type_hints(hint) -> dict[str, Any]:
    try:
        return typing.get_type_hints(hint, include_extras=True)
    except (NameError, TypeError):
        # Unresolvable forward references; fall back to the raw annotations.
        return dict(getattr(hint, "__annotations__", {}))


def _dataclass_field_infos(hint) -> list[FieldInfo]:
    type_hints = _type_hints(hint)
    out = []
    for dfield in dataclasses.fields(hint):
        if not dfield.init:
            continue
        default = inspect.Parameter.empty if dfield.default is dataclasses.MISSING else dfield.default
        default_factory = None if dfield.default_factory is dataclasses.MISSING else dfield.default_factory
        out.append(
            FieldInfo(
                dfield.name,
                FieldInfo.KEYWORD_ONLY if dfield.kw_only is True else FieldInfo.POSITIONAL_OR_KEYWORD,
                annotation=type_hints.get(dfield.name, dfield.type),
                default=default,
                default_factory=default_factory,
                required=default is inspect.Parameter.empty and default_factory is None,
            )
        )
    return out


def _attrs_field_infos(hint) -> list[FieldInfo]:
    type_hints = _type_hints(hint)
    out = []
    for attribute in attrs.fields(hint):
        if not attribute.init:
            continue

        default = inspect.Parameter.empty
        default_factory = None
        if isinstance(attribute.default, attrs.Factory):  # pyright: ignore
            if attribute.default.takes_self:
                raise TypeError(f"Field {attribute.name!r} uses a self-referencing factory, which cannot be a default.")
            default_factory = attribute.default.factory
        elif attribute.default is not attrs.NOTHING:
            default = attribute.default

        out.append(
            FieldInfo(
                attribute.alias,
                FieldInfo.KEYWORD_ONLY if attribute.kw_only else FieldInfo.POSITIONAL_OR_KEYWORD,
                annotation=type_hints.get(attribute.name, attribute.type or inspect.Parameter.empty),
                default=default,
                default_factory=default_factory,
                required=default is inspect.Parameter.empty and default_factory is None,
            )
        )
    return out


def _signature_field_infos(f) -> list[FieldInfo]:
    signature = inspect.signature(f)
    try:
        type_hints = typing.get_type_hints(f if not inspect.isclass(f) else f.__init__, include_extras=True)
    except (NameError, TypeError):
        type_hints = {}
    out = []
    for name, iparam in signature.parameters.items():
        if iparam.kind in (iparam.VAR_POSITIONAL, iparam.VAR_KEYWORD):
            continue
        out.append(
            FieldInfo(
                name,
                iparam.kind,
                annotation=type_hints.get(name, iparam.annotation),
                default=iparam.default,
                required=iparam.default is iparam.empty,
            )
        )
    return out


def get_field_infos(hint) -> list[FieldInfo]:
    """Constructor inputs of ``hint`` in declaration order.

    Supports dataclasses, attrs classes, and any other callable via its signature.
    """
    if is_dataclass(hint):
        return _dataclass_field_infos(hint)
    elif is_attrs(hint):
        return _attrs_field_infos(hint)
    else:
        return _signature_field_infos(hint)

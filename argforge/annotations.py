import inspect
from types import UnionType
from typing import Annotated, Any, Literal, Union, get_args, get_origin

import attrs

# from types import NoneType is available >=3.10
NoneType = type(None)
AnnotatedType = type(Annotated[int, 0])


def is_nonetype(hint):
    return hint is NoneType


def is_union(type_: type | None) -> bool:
    """Checks if a type is a union."""
    # Direct checks are faster than checking if the type is in a set that contains the union-types.
    if type_ is Union or type_ is UnionType:
        return True

    # The ``get_origin`` call is relatively expensive, so we'll check common types
    # that are passed in here to see if we can avoid calling ``get_origin``.
    if type_ is str or type_ is int or type_ is float or type_ is bool or is_annotated(type_):
        return False
    origin = get_origin(type_)
    return origin is Union or origin is UnionType


def is_dataclass(hint) -> bool:
    return hasattr(hint, "__dataclass_fields__")


def is_attrs(hint) -> bool:
    return attrs.has(hint)


def is_annotated(hint) -> bool:
    return type(hint) is AnnotatedType


def is_class_and_subclass(hint, target_class) -> bool:
    """Safely check if a type is both a class and a subclass of ``target_class``."""
    try:
        return inspect.isclass(hint) and issubclass(hint, target_class)
    except TypeError:
        # issubclass() raises TypeError for non-class arguments like Union types
        return False


def resolve(type_: Any) -> Any:
    """Perform all simplifying resolutions."""
    if type_ is inspect.Parameter.empty:
        return str

    type_prev = None
    while type_ != type_prev:
        type_prev = type_
        type_ = resolve_annotated(type_)
        type_ = resolve_optional(type_)
        type_ = resolve_new_type(type_)
    return type_


def resolve_optional(type_: Any) -> Any:
    """Only resolves Union's of None + one other type (i.e. Optional)."""
    # Python will automatically flatten out nested unions when possible.
    # So we don't need to loop over resolution.
    if not is_union(type_):
        return type_

    non_none_types = [t for t in get_args(type_) if t is not NoneType]
    if not non_none_types:  # pragma: no cover
        raise ValueError("Union type cannot be all NoneType")
    elif len(non_none_types) == 1:
        type_ = non_none_types[0]
    else:
        return Union[tuple(resolve_optional(x) for x in non_none_types)]  # pyright: ignore  # noqa: UP007

    return type_


def resolve_annotated(type_: Any) -> Any:
    if type(type_) is AnnotatedType:
        type_ = get_args(type_)[0]
    return type_


def resolve_new_type(type_: Any) -> Any:
    try:
        return resolve_new_type(type_.__supertype__)
    except AttributeError:
        return type_


def get_annotated_metadata(type_: Any) -> tuple[Any, ...]:
    """Metadata objects of an :obj:`~typing.Annotated` hint, looking through ``Optional``."""
    if is_union(type_):
        for arg in get_args(type_):
            if metadata := get_annotated_metadata(arg):
                return metadata
        return ()
    if is_annotated(type_):
        return get_args(type_)[1:]
    return ()


def get_hint_name(hint) -> str:
    if isinstance(hint, str):
        return hint
    if is_nonetype(hint):
        return "None"
    if hint is Any:
        return "Any"
    if is_union(hint):
        return "|".join(get_hint_name(arg) for arg in get_args(hint))
    if get_origin(hint) is Literal:
        return "|".join(str(arg) for arg in get_args(hint))
    if origin := get_origin(hint):
        out = get_hint_name(origin)
        if args := get_args(hint):
            out += "[" + ", ".join(get_hint_name(arg) for arg in args) + "]"
        return out
    if hasattr(hint, "__name__"):
        return hint.__name__
    if getattr(hint, "_name", None) is not None:
        return hint._name
    return str(hint)


def is_instance_of_hint(value: Any, hint: Any) -> bool:
    """Checks, without any conversion, if ``value`` already satisfies ``hint``."""
    hint = resolve_new_type(resolve_annotated(hint))
    if hint is Any:
        return True
    if is_nonetype(hint):
        return value is None
    if is_union(hint):
        return any(is_instance_of_hint(value, arg) for arg in get_args(hint))
    origin = get_origin(hint)
    if origin is Literal:
        return value in get_args(hint)
    if origin is not None:
        return isinstance(value, origin) if inspect.isclass(origin) else True
    if hint is float:
        # PEP 484 numeric tower.
        return isinstance(value, int | float) and not isinstance(value, bool)
    if inspect.isclass(hint):
        return isinstance(value, hint)
    return True

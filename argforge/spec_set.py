"""Argument specification sets and the builder that discovers them from argument-holder types."""

import inspect
import threading
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from attrs import define, field

from argforge.annotations import is_instance_of_hint
from argforge.argument import Argument, Arity
from argforge.exceptions import SpecificationError
from argforge.field_info import FieldInfo, get_field_infos
from argforge.parameter import Parameter
from argforge.utils import UNSET, to_tuple_converter

if TYPE_CHECKING:
    from argforge._convert import ConverterRegistry
    from argforge.options import ParseOptions

# Characters that can never appear in an argument name.
_FORBIDDEN_NAME_CHARACTERS = frozenset(" \t\r\n=:")


def _normalize(name: str, case_sensitive: bool) -> str:
    return name if case_sensitive else name.casefold()


def _check_default(argument: Argument):
    if argument.default is UNSET:
        return
    default = argument.default
    if argument.arity is Arity.SCALAR:
        valid = is_instance_of_hint(default, argument.hint)
    elif default is None:
        valid = is_instance_of_hint(default, argument.hint)
    elif argument.arity is Arity.MULTI:
        valid = (
            isinstance(default, Iterable)
            and not isinstance(default, str | bytes)
            and all(is_instance_of_hint(x, argument.value_type) for x in default)
        )
    else:
        valid = isinstance(default, Mapping) and all(
            is_instance_of_hint(k, argument.key_type) and is_instance_of_hint(v, argument.value_type)
            for k, v in default.items()
        )
    if not valid:
        raise SpecificationError(
            f'Default value {default!r} of argument "{argument.name}" does not match its type {argument.hint!r}.'
        )


@define(frozen=True, eq=False)
class SpecSet:
    """Validated, immutable collection of :class:`Argument` for one argument-holder type or shell command.

    Parsing never mutates a :class:`SpecSet`; one instance may serve any number of
    concurrent parses.

    Raises
    ------
    SpecificationError
        On construction, if the arguments are inconsistent.
    """

    arguments: tuple[Argument, ...] = field(converter=to_tuple_converter)
    """Arguments in declaration order."""

    factory: Callable[..., Any] = dict
    """Called with the bound values (keyed by :attr:`Argument.keyword`) to create the result."""

    description: str = ""
    """Human-readable description of the holder, shown above the usage synopsis."""

    case_sensitive: bool = False

    positional_only: tuple[str, ...] = field(default=(), converter=to_tuple_converter)
    """Keywords the :attr:`factory` only accepts positionally, in order."""

    _lookup: dict[str, Argument] = field(init=False, factory=dict)
    _positionals: tuple[Argument, ...] = field(init=False, default=())

    def __attrs_post_init__(self):
        lookup: dict[str, Argument] = {}
        for argument in self.arguments:
            for name in argument.names:
                if not name:
                    raise SpecificationError(f'Argument "{argument.keyword}" has an empty name or alias.')
                if _FORBIDDEN_NAME_CHARACTERS.intersection(name):
                    raise SpecificationError(f'Argument name "{name}" contains whitespace, "=" or ":".')
                key = _normalize(name, self.case_sensitive)
                if key in lookup:
                    raise SpecificationError(
                        f'Name "{name}" of argument "{argument.name}" is already used by argument "{lookup[key].name}".'
                    )
                lookup[key] = argument
            if argument.required and argument.has_default:
                raise SpecificationError(f'Required argument "{argument.name}" cannot have a default value.')
            _check_default(argument)

        keywords = [argument.keyword for argument in self.arguments]
        if len(set(keywords)) != len(keywords):
            raise SpecificationError(f"Argument keywords must be unique; got {keywords}.")

        positionals = sorted((x for x in self.arguments if x.is_positional), key=lambda x: x.position)
        for index, argument in enumerate(positionals):
            if argument.position != index:
                raise SpecificationError(
                    f"Positional indices must be contiguous from 0; "
                    f'argument "{argument.name}" has position {argument.position}, expected {index}.'
                )

        has_optional = False
        for index, argument in enumerate(positionals):
            if argument.is_multi_value and index != len(positionals) - 1:
                raise SpecificationError(
                    f'Multi-value positional argument "{argument.name}" must be the last positional argument.'
                )
            if argument.required and has_optional:
                raise SpecificationError(
                    f'Required positional argument "{argument.name}" cannot follow an optional positional argument.'
                )
            has_optional = has_optional or not argument.required

        # Circumvent frozen protection.
        object.__setattr__(self, "_lookup", lookup)
        object.__setattr__(self, "_positionals", tuple(positionals))

    def __iter__(self):
        return iter(self.arguments)

    def __len__(self):
        return len(self.arguments)

    def __getitem__(self, name: str) -> Argument:
        argument = self.match(name)
        if argument is None:
            raise KeyError(name)
        return argument

    def match(self, name: str) -> Argument | None:
        """Find the argument with the primary name or alias ``name`` (without prefix)."""
        return self._lookup.get(_normalize(name, self.case_sensitive))

    @property
    def names(self) -> tuple[str, ...]:
        """Every primary name and alias, in declaration order."""
        return tuple(name for argument in self.arguments for name in argument.names)

    @property
    def positionals(self) -> tuple[Argument, ...]:
        """Positional arguments, ordered by index."""
        return self._positionals

    @property
    def remainder(self) -> Argument | None:
        """The trailing multi-value positional argument, if any."""
        if self._positionals and self._positionals[-1].is_remainder:
            return self._positionals[-1]
        return None

    @property
    def usage_order(self) -> tuple[Argument, ...]:
        """Positionals by index, then required named arguments, then the rest; each in declaration order."""
        named = [x for x in self.arguments if not x.is_positional]
        return self._positionals + tuple(x for x in named if x.required) + tuple(x for x in named if not x.required)

    def check_converters(self, registry: "ConverterRegistry"):
        """Ensure every argument without an override converter has a registered conversion.

        Raises
        ------
        SpecificationError
        """
        for argument in self.arguments:
            if argument.converter is not None:
                continue
            types = [argument.value_type]
            if argument.is_dictionary:
                types.append(argument.key_type)
            for type_ in types:
                if not registry.can_convert(type_):
                    raise SpecificationError(f'No converter for type {type_!r} of argument "{argument.name}".')

    def create(self, values: dict[str, Any]) -> Any:
        """Invoke :attr:`factory` with the bound ``values``."""
        if not self.positional_only:
            return self.factory(**values)
        values = dict(values)
        args = [values.pop(keyword) for keyword in self.positional_only]
        return self.factory(*args, **values)


def _holder_docstring(holder) -> str | None:
    doc = getattr(holder, "__doc__", None)
    if not doc:
        return None
    name = getattr(holder, "__name__", "")
    if name and doc.startswith(name + "("):
        # Auto-generated by ``dataclasses``; not a description.
        return None
    return inspect.cleandoc(doc)


def _docstring_help(holder) -> tuple[str, dict[str, str]]:
    """Holder description and per-field help text from the holder's docstring."""
    doc = _holder_docstring(holder)
    if doc is None:
        return "", {}

    import docstring_parser

    try:
        parsed = docstring_parser.parse(doc)
    except docstring_parser.ParseError:
        return doc, {}

    description = "\n\n".join(x for x in (parsed.short_description, parsed.long_description) if x)
    params = {dparam.arg_name: dparam.description or "" for dparam in parsed.params}
    return description, params


def _argument_from_field(
    field_info: FieldInfo,
    parameter: Parameter,
    options: "ParseOptions",
    field_help: str,
    position: int | None,
) -> Argument:
    required = parameter.required if parameter.required is not None else field_info.required
    default = UNSET if field_info.default is FieldInfo.empty else field_info.default
    if parameter.required and default is not UNSET:
        # Explicitly required; the declared default is unreachable.
        default = UNSET

    name = parameter.name or options.name_transform(field_info.name)
    for candidate in (name, *parameter.alias):
        for prefix in options.prefixes:
            if candidate.startswith(prefix):
                raise SpecificationError(
                    f'Argument name "{candidate}" of field "{field_info.name}" must not start with prefix "{prefix}".'
                )

    try:
        return Argument(
            name=name,
            aliases=parameter.alias,
            position=position,
            hint=field_info.hint,
            required=required,
            default=default,
            default_factory=field_info.default_factory if not parameter.required else None,
            converter=parameter.converter,
            help=parameter.help if parameter.help is not None else field_help,
            separator=parameter.separator,
            allow_duplicate_keys=parameter.allow_duplicate_keys,
            key_value_separator=parameter.key_value_separator,
            field_name=field_info.name,
            value_description=parameter.value_description,
        )
    except TypeError as e:
        raise SpecificationError(f'Field "{field_info.name}": {e}') from e


def _assign_positions(entries: list[tuple[FieldInfo, Parameter]]) -> list[int | None]:
    explicit = {parameter.position for _, parameter in entries if parameter.position is not None}
    positions: list[int | None] = []
    next_index = 0
    for field_info, parameter in entries:
        if parameter.position is not None:
            positions.append(parameter.position)
        elif parameter.positional or field_info.is_positional_only:
            while next_index in explicit:
                next_index += 1
            positions.append(next_index)
            next_index += 1
        else:
            positions.append(None)
    return positions


def spec_set_from_holder(holder: Any, options: "ParseOptions") -> SpecSet:
    """Discover and validate the :class:`SpecSet` of an argument-holder.

    ``holder`` may be a dataclass, an attrs class, or any callable with a signature.
    Each field is described by the :class:`Parameter` in its :obj:`~typing.Annotated` hint.

    Raises
    ------
    SpecificationError
    """
    try:
        field_infos = get_field_infos(holder)
    except (TypeError, ValueError) as e:
        raise SpecificationError(f"Cannot discover arguments of {holder!r}: {e}") from e

    entries = []
    for field_info in field_infos:
        parameter = Parameter.from_annotation(field_info.annotation)
        if not parameter.parse:
            if field_info.required:
                raise SpecificationError(f'Field "{field_info.name}" is not parsed, so it must have a default.')
            continue
        entries.append((field_info, parameter))

    description, docstring_params = _docstring_help(holder)
    positions = _assign_positions(entries)
    arguments = [
        _argument_from_field(field_info, parameter, options, docstring_params.get(field_info.name, ""), position)
        for (field_info, parameter), position in zip(entries, positions, strict=True)
    ]

    spec_set = SpecSet(
        arguments,
        factory=holder,
        description=description,
        case_sensitive=options.case_sensitive,
        positional_only=tuple(f.name for f, _ in entries if f.is_positional_only),
    )
    spec_set.check_converters(options.converters)
    return spec_set


_spec_set_cache: dict[tuple, SpecSet] = {}
_spec_set_lock = threading.Lock()


def _cache_key(holder: Any, options: "ParseOptions") -> tuple:
    return (holder, options.case_sensitive, options.name_transform, options.prefixes, options.converters)


def build_spec_set(holder: Any, options: "ParseOptions | None" = None) -> SpecSet:
    """Memoized :func:`spec_set_from_holder`.

    Safe to call from multiple threads; every holder/options combination is built exactly once.
    """
    if options is None:
        from argforge.options import ParseOptions

        options = ParseOptions()

    key = _cache_key(holder, options)
    spec_set = _spec_set_cache.get(key)
    if spec_set is not None:
        return spec_set

    with _spec_set_lock:
        spec_set = _spec_set_cache.get(key)
        if spec_set is None:
            spec_set = spec_set_from_holder(holder, options)
            _spec_set_cache[key] = spec_set
    return spec_set


build_spec_set.cache_clear = _spec_set_cache.clear  # type: ignore[attr-defined]

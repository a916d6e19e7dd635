import shlex
import sys
from collections.abc import Iterable, Sequence
from typing import Any

from attrs import define, field

from argforge.argument import Argument
from argforge.exceptions import (
    ConversionError,
    CreateInstanceError,
    DuplicateArgumentError,
    InvalidDictionaryValueError,
    MissingNamedArgumentValueError,
    MissingRequiredArgumentError,
    TooManyArgumentsError,
    UnknownArgumentError,
)
from argforge.options import ParseOptions
from argforge.spec_set import SpecSet
from argforge.token import Token
from argforge.utils import frozen, is_option_like


@frozen(kw_only=True)
class HelpRequested:
    """Successful parse outcome that asks the caller to render usage instead of returning an instance."""

    spec_set: SpecSet | None = field(default=None, eq=False)
    """Specification set whose usage was requested; :obj:`None` for the command list."""

    command: str | None = None
    """Shell command whose help was requested, if any."""


def normalize_tokens(tokens: None | str | Iterable[str]) -> list[str]:
    if tokens is None:
        tokens = sys.argv[1:]  # Remove the executable
    elif isinstance(tokens, str):
        tokens = shlex.split(tokens)
    else:
        tokens = list(tokens)
    return tokens


def is_help_flag(name: str, options: ParseOptions) -> bool:
    normalized = options.normalize_name(name)
    return any(normalized == options.normalize_name(flag) for flag in options.help_flags)


@define
class _Binding:
    """Mutable state of a single parse; never shared between parses."""

    spec_set: SpecSet
    options: ParseOptions

    scalars: dict[str, Any] = field(factory=dict)
    sequences: dict[str, list[Any]] = field(factory=dict)
    mappings: dict[str, dict[Any, Any]] = field(factory=dict)
    next_positional: int = 0

    def is_bound(self, argument: Argument) -> bool:
        keyword = argument.keyword
        return keyword in self.scalars or keyword in self.sequences or keyword in self.mappings

    def convert(self, argument: Argument, raw: str, type_: Any, token: Token, *, override: bool = True) -> Any:
        try:
            return self.options.converters.convert(
                raw,
                type_,
                self.options.locale,
                converter=argument.converter if override else None,
                argument_name=argument.name,
                name_transform=self.options.name_transform,
            )
        except ConversionError as e:
            e.token = token
            raise

    def split(self, argument: Argument, raw: str) -> list[str]:
        separator = argument.separator or self.options.multi_value_separator
        if separator and argument.is_multi_value:
            return raw.split(separator)
        return [raw]

    def bind(self, argument: Argument, token: Token):
        """Convert the token's value and store it for ``argument``."""
        if argument.is_dictionary:
            mapping = self.mappings.setdefault(argument.keyword, {})
            for raw in self.split(argument, token.value):
                self._bind_pair(argument, mapping, raw, token)
        elif argument.is_multi_value:
            sequence = self.sequences.setdefault(argument.keyword, [])
            for raw in self.split(argument, token.value):
                sequence.append(self.convert(argument, raw, argument.value_type, token))
        else:
            self._check_duplicate(argument, token)
            self.scalars[argument.keyword] = self.convert(argument, token.value, argument.hint, token)

    def bind_switch(self, argument: Argument, token: Token):
        """Record the presence of a switch, which needs no value."""
        if argument.is_multi_value:
            self.sequences.setdefault(argument.keyword, []).append(True)
        else:
            self._check_duplicate(argument, token)
            self.scalars[argument.keyword] = True

    def _check_duplicate(self, argument: Argument, token: Token):
        if argument.keyword in self.scalars and self.options.duplicate_arguments == "error":
            raise DuplicateArgumentError(argument_name=argument.name, token=token)

    def _bind_pair(self, argument: Argument, mapping: dict, raw: str, token: Token):
        separator = argument.key_value_separator
        if separator not in raw:
            raise InvalidDictionaryValueError(
                argument_name=argument.name,
                raw_value=raw,
                reason=f'Expected a value of the form "key{separator}value".',
            )
        raw_key, raw_value = raw.split(separator, 1)
        key = self.convert(argument, raw_key, argument.key_type, token, override=False)
        if key in mapping and not argument.allow_duplicate_keys:
            raise InvalidDictionaryValueError(
                argument_name=argument.name,
                raw_value=raw,
                reason=f'The key "{raw_key}" was already supplied.',
            )
        mapping[key] = self.convert(argument, raw_value, argument.value_type, token)

    def bind_positional(self, token: Token):
        positionals = self.spec_set.positionals
        while self.next_positional < len(positionals):
            argument = positionals[self.next_positional]
            if argument.is_remainder:
                self.bind(argument, token)
                return
            self.next_positional += 1
            if self.is_bound(argument):
                # Already supplied by name.
                continue
            self.bind(argument, token)
            return
        raise TooManyArgumentsError(token=token)

    def value_of(self, argument: Argument) -> Any:
        keyword = argument.keyword
        if keyword in self.scalars:
            return self.scalars[keyword]
        if keyword in self.sequences:
            return argument.collect(self.sequences[keyword])
        if keyword in self.mappings:
            return self.mappings[keyword]
        return argument.resolve_default()


def _split_inline_value(body: str, spec_set: SpecSet, options: ParseOptions) -> tuple[str, str | None]:
    """Split ``name=value``, but only if the part before the separator names an argument."""
    for separator in options.name_value_separators:
        if separator in body:
            name, value = body.split(separator, 1)
            if spec_set.match(name) is not None:
                return name, value
    return body, None


def _split_delimiter(tokens: Sequence[str], delimiter: str) -> tuple[Sequence[str], Sequence[str]]:
    if delimiter:
        try:
            index = tokens.index(delimiter)
        except ValueError:
            pass  # delimiter not in token stream
        else:
            return tokens[:index], tokens[index + 1 :]
    return tokens, ()


def bind_tokens(tokens: Sequence[str], spec_set: SpecSet, options: ParseOptions) -> dict[str, Any] | HelpRequested:
    """Match ``tokens`` against ``spec_set``, producing the converted value of every argument.

    Returns
    -------
    dict[str, Any] | HelpRequested
        Values keyed by :attr:`Argument.keyword`, or :class:`HelpRequested` if a help flag was encountered.

    Raises
    ------
    ParseError
    """
    binding = _Binding(spec_set, options)
    tokens = list(tokens)
    named_tokens, trailing_tokens = _split_delimiter(tokens, options.end_of_options_delimiter)

    skip_next = False
    for i, token in enumerate(named_tokens):
        if skip_next:
            skip_next = False
            continue

        prefix = is_option_like(token, options.prefixes)
        if prefix is None:
            binding.bind_positional(Token(value=token, index=i))
            continue

        name, inline_value = _split_inline_value(token[len(prefix) :], spec_set, options)
        argument = spec_set.match(name)
        if argument is None:
            if is_help_flag(name, options):
                return HelpRequested(spec_set=spec_set)
            raise UnknownArgumentError(argument_name=name, candidates=spec_set.names)

        keyword = prefix + name
        if inline_value is not None:
            binding.bind(argument, Token(keyword=keyword, value=inline_value, index=i))
        elif argument.is_switch:
            binding.bind_switch(argument, Token(keyword=keyword, value="", index=i))
        elif (
            options.allow_whitespace_value_separator
            and i + 1 < len(named_tokens)
            and is_option_like(named_tokens[i + 1], options.prefixes) is None
        ):
            binding.bind(argument, Token(keyword=keyword, value=named_tokens[i + 1], index=i + 1))
            skip_next = True
        else:
            raise MissingNamedArgumentValueError(argument_name=argument.name)

    offset = len(tokens) - len(trailing_tokens)
    for i, token in enumerate(trailing_tokens, start=offset):
        binding.bind_positional(Token(value=token, index=i))

    missing = tuple(x.name for x in spec_set.usage_order if x.required and not binding.is_bound(x))
    if missing:
        raise MissingRequiredArgumentError(argument_names=missing)

    return {argument.keyword: binding.value_of(argument) for argument in spec_set.arguments}


def parse_tokens(tokens: Sequence[str], spec_set: SpecSet, options: ParseOptions) -> Any:
    """Parse ``tokens`` into a new instance of the ``spec_set``'s argument-holder.

    Returns
    -------
    Any
        The populated instance, or :class:`HelpRequested`.

    Raises
    ------
    ParseError
    """
    values = bind_tokens(tokens, spec_set, options)
    if isinstance(values, HelpRequested):
        return values
    try:
        return spec_set.create(values)
    except (ValueError, TypeError) as e:
        raise CreateInstanceError(exception_message=str(e)) from e

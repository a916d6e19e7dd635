from typing import Any

from attrs import field, validators

from argforge._convert import Converter
from argforge.annotations import get_annotated_metadata
from argforge.utils import frozen, to_tuple_converter


def _position_validator(instance, attribute, value):
    if value is not None and value < 0:
        raise ValueError(f"{attribute.alias} must be non-negative.")


@frozen
class Parameter:
    """Declarative metadata for one field of an argument-holder, attached with :obj:`~typing.Annotated`.

    Example usage:

    .. code-block:: python

        from dataclasses import dataclass, field
        from typing import Annotated

        from argforge import Parameter, Parser


        @dataclass
        class Arguments:
            source: Annotated[str, Parameter(positional=True, help="File to read.")]
            tags: Annotated[list[str], Parameter(alias="t")] = field(default_factory=list)


        Parser(Arguments).parse(["file.txt", "-t", "a", "--tags", "b"])

    Fields without a :class:`Parameter` are named arguments with default settings.
    """

    name: str | None = None
    """Primary argument name. Defaults to the field name passed through :attr:`ParseOptions.name_transform`."""

    alias: None | str | tuple[str, ...] = field(default=None, converter=to_tuple_converter, kw_only=True)
    """Additional names the argument may be supplied under."""

    position: int | None = field(default=None, validator=_position_validator, kw_only=True)
    """Explicit positional index. Implies :attr:`positional`."""

    positional: bool = field(default=False, kw_only=True)
    """Bind by position when no name is present. Without an explicit :attr:`position`, indices follow declaration order."""

    required: bool | None = field(default=None, kw_only=True)
    """Overrides the required-ness inferred from the field's default."""

    help: str | None = field(default=None, kw_only=True)
    """Description shown in usage text."""

    value_description: str | None = field(default=None, kw_only=True)
    """Placeholder for the value in usage text; defaults to the type's name."""

    converter: Converter | None = field(default=None, kw_only=True, hash=False)
    """Per-argument converter; takes precedence over the type-based converter."""

    separator: str | None = field(default=None, kw_only=True)
    """Multi-value arguments: split every supplied value on this separator."""

    allow_duplicate_keys: bool = field(default=False, kw_only=True)
    """Dictionary arguments: a repeated key overwrites the earlier value instead of raising."""

    key_value_separator: str = field(default="=", kw_only=True, validator=validators.min_len(1))
    """Dictionary arguments: separator between key and value."""

    parse: bool = field(default=True, kw_only=True)
    """If :obj:`False`, the field is not a command line argument."""

    @classmethod
    def from_annotation(cls, annotation: Any) -> "Parameter":
        """Merge every :class:`Parameter` found in an :obj:`~typing.Annotated` hint; later ones win."""
        parameters = [x for x in get_annotated_metadata(annotation) if isinstance(x, cls)]
        if not parameters:
            return cls()
        if len(parameters) == 1:
            return parameters[0]
        merged: dict[str, Any] = {}
        defaults = cls()
        for parameter in parameters:
            for attribute in parameter.__attrs_attrs__:  # pyright: ignore[reportAttributeAccessIssue]
                value = getattr(parameter, attribute.name)
                if value != getattr(defaults, attribute.name):
                    merged[attribute.alias] = value
        return cls(**merged)

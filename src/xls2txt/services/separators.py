"""Parsing of field and record separator options."""

from xls2txt.utils.exceptions import InvalidSeparatorError, MissingSeparatorError

# highest code point UTF-8 output writes as a single byte
MAX_SEPARATOR_CODE_POINT = 0x7F


def separator_to_byte(value: str | None, option: str | None = None) -> int:
    """Convert a separator option to the single byte it stands for.

    Only the first character is considered, so ``";;"`` is accepted as
    ``";"`` and the rest is ignored.

    Args:
        value: Raw option value, or None when the option was not given and
            the command has no default for it.
        option: Option name used in error details.

    Returns:
        The byte value (0-127) of the first character.

    Raises:
        MissingSeparatorError: If value is None.
        InvalidSeparatorError: If value is empty or its first character
            is not ASCII.
    """
    if value is None:
        raise MissingSeparatorError(option=option)
    if not value:
        raise InvalidSeparatorError(separator=value)

    code_point = ord(value[0])
    if code_point > MAX_SEPARATOR_CODE_POINT:
        raise InvalidSeparatorError(separator=value)
    return code_point

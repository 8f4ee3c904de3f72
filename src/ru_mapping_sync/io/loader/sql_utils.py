def quote_ident(name: str) -> str:
    """
    Quote an SQL identifier with double quotes and escape internal quotes.

    Args:
        name: Identifier to quote (table, column name)

    Returns:
        Properly quoted identifier

    Raises:
        ValueError: If name is empty or not a string

    Examples:
        >>> quote_ident("ru_mapping")
        '"ru_mapping"'
        >>> quote_ident('odd"name')
        '"odd""name"'
    """
    if not name or not isinstance(name, str):
        raise ValueError("Identifier name must be non-empty string")

    # Escape internal double quotes by doubling them
    escaped = name.replace('"', '""')
    return f'"{escaped}"'


def bind_param(name: str) -> str:
    """Named bind placeholder for ``sqlalchemy.text`` statements."""
    if not name.isidentifier():
        raise ValueError(f"Bind parameter name must be an identifier: {name!r}")
    return f":{name}"

"""Conversion between a sequence of values and the line-delimited text stored
in a pod resource.

```pycon
>>> encode(['one', 2, True])
'one\\n2\\nTrue\\n'

>>> decode('one\\n2\\nTrue\\n')
['one', '2', 'True']
```

Values are not escaped, so a value containing a newline will not survive a
round trip.
"""
from typing import Any, Iterable

SEPARATOR = '\n'


def encode(data: Iterable[Any]) -> str:
    """Each value's string form followed by a newline. An empty sequence
    encodes to the empty string."""
    return ''.join(f'{value}{SEPARATOR}' for value in data)


def decode(text: str) -> list[str]:
    """Split `text` into its lines. The empty string decodes to an empty
    list, and a single trailing separator does not produce a trailing empty
    value."""
    if text == '':
        return []
    values = text.split(SEPARATOR)
    if values[-1] == '':
        values.pop()
    return values

#!/usr/bin/env python3
"""
Argument Grouping - Join delimited words back into single arguments.

The shell splits a command line on whitespace. A delimiter character
(a double quote by default) lets one argument span several words:

    s "White Rabbit" Rabbit   ->   ["White Rabbit", "Rabbit"]

Usage:
    from grepshell_lib.arguments import group_arguments

    group_arguments(['"White', 'Rabbit"', 'Rabbit'])
"""

DEFAULT_DELIMITER = '"'


class DelimiterImbalanceError(ValueError):
    """An opening delimiter has no closing partner."""

    def __init__(self, delimiter: str, count: int):
        self.delimiter = delimiter
        self.count = count
        super().__init__(
            f"Odd number of delimiter characters ({count} x {delimiter}). "
            "Maybe you haven't spaced your terms correctly?"
        )


def count_delimiters(tokens: list[str], delimiter: str = DEFAULT_DELIMITER) -> int:
    return sum(token.count(delimiter) for token in tokens)


def group_arguments(tokens: list[str], delimiter: str = DEFAULT_DELIMITER) -> list[str]:
    """
    Merge runs of tokens enclosed by ``delimiter`` into single arguments.

    Args:
        tokens: Whitespace-split words
        delimiter: Single grouping character

    Returns:
        Grouped arguments, delimiters removed

    Raises:
        DelimiterImbalanceError: If the total delimiter count is odd
    """
    total = count_delimiters(tokens, delimiter)
    if total % 2:
        raise DelimiterImbalanceError(delimiter, total)

    grouped = []
    position = 0
    while position < len(tokens):
        token = tokens[position]
        position += 1
        if delimiter not in token:
            grouped.append(token)
            continue

        # Self-contained group: "word" or "a"b"
        if token.count(delimiter) >= 2:
            grouped.append(token.replace(delimiter, ""))
            continue

        words = [token.replace(delimiter, "", 1)]
        while position < len(tokens):
            word = tokens[position]
            position += 1
            if delimiter in word:
                words.append(word.replace(delimiter, "", 1))
                break
            words.append(word)
        grouped.append(" ".join(words))

    return grouped

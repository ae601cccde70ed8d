"""
File parsers module.
"""

from parsers.csv_tokenizer import (
    tokenize,
    tokenize_line,
    TokenizedCSV,
)

__all__ = [
    "tokenize",
    "tokenize_line",
    "TokenizedCSV",
]

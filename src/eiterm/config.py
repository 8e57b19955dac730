"""Decoder configuration.

This module provides the configuration dataclass shared by a session and
the decode engine.
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass


@dataclass(frozen=True)
class DecoderConfig:
    """Configuration for a decode session.

    Attributes:
        text_encoding: Codec used to reinterpret String term bytes as text
            (default "latin-1", which maps every byte to one character).
            Decoding uses the "surrogateescape" error handler, so content is
            never rejected.
        accept_string_lists: Allow a STRING_EXT term where a list of integers
            is declared (default True). Erlang's term_to_binary encodes lists
            of small integers (0-255) this way.

    Examples:
        ```python
        from eiterm import DecoderConfig, open_session

        config = DecoderConfig(text_encoding="utf-8")
        session, valid = open_session(data, config)
        ```
    """

    text_encoding: str = "latin-1"
    accept_string_lists: bool = True

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        try:
            codecs.lookup(self.text_encoding)
        except LookupError as e:
            raise ValueError(f"Unknown text_encoding: {self.text_encoding!r}") from e

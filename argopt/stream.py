"""
Forward-only token stream consumed by a parse pass.

A TokenStream is shared between a parser and the child parser of a matched
command: the child keeps reading where the parent stopped.
"""
from collections import deque
from collections.abc import Iterable


class TokenStream:
    __slots__ = ("_tokens",)

    def __init__(self, tokens=(), /):
        if isinstance(tokens, str) or not isinstance(tokens, Iterable):
            raise TypeError("TokenStream() argument must be an iterable of strings")
        self._tokens = deque(tokens)
        if not all(isinstance(token, str) for token in self._tokens):
            raise TypeError("TokenStream() argument must be an iterable of strings")

    def has_next(self):
        return bool(self._tokens)

    def next(self):
        """
        consume and return the next token.

        raises IndexError when the stream is exhausted; callers check has_next() first.
        """
        try:
            return self._tokens.popleft()
        except IndexError:
            raise IndexError("token stream is exhausted") from None

    def __iter__(self):
        while self._tokens:
            yield self._tokens.popleft()

    def __len__(self):
        return len(self._tokens)

    def __repr__(self):
        return f"{type(self).__name__}({list(self._tokens)!r})"


__all__ = ("TokenStream",)

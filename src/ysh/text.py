"""
Borrowed views into an input line.

Tokenizers never cut new strings out of the line they scan. They hand out
Spans: offsets into the original source, so every token and every remainder
still points back at the buffer it came from.
"""

from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True, eq=False)
class Span:
    """A window ``source[start:end]`` over an immutable line."""
    source: str
    start: int = 0
    end: int | None = None

    def __post_init__(self):
        end = len(self.source) if self.end is None else self.end
        if not 0 <= self.start <= end <= len(self.source):
            raise ValueError(
                f"span [{self.start}:{end}] is outside a {len(self.source)}-char source"
            )
        object.__setattr__(self, "end", end)

    @classmethod
    def of(cls, text: "str | Span") -> "Span":
        """Wrap a string, or pass an existing Span through untouched."""
        if isinstance(text, Span):
            return text
        return cls(text)

    def __str__(self) -> str:
        return self.source[self.start:self.end]

    def __repr__(self) -> str:
        return f"Span({str(self)!r})"

    def __len__(self) -> int:
        return self.end - self.start

    def __bool__(self) -> bool:
        return self.end > self.start

    def __eq__(self, other) -> bool:
        if isinstance(other, Span):
            return str(self) == str(other)
        if isinstance(other, str):
            return str(self) == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(str(self))

    def peek(self, offset: int = 0) -> str | None:
        """Return the character at ``offset``, or None past the end."""
        i = self.start + offset
        if i < self.end:
            return self.source[i]
        return None

    def startswith(self, prefix: str) -> bool:
        return self.source.startswith(prefix, self.start, self.end)

    def find(self, sub: str, offset: int = 0) -> int:
        """Like ``str.find`` but relative to this window."""
        i = self.source.find(sub, self.start + offset, self.end)
        return -1 if i < 0 else i - self.start

    def advance(self, n: int) -> "Span":
        """Drop ``n`` characters from the front. The result is a suffix."""
        return Span(self.source, min(self.start + n, self.end), self.end)

    def take(self, n: int) -> "Span":
        """Keep only the first ``n`` characters."""
        return Span(self.source, self.start, min(self.start + n, self.end))

    def between(self, i: int, j: int) -> "Span":
        return Span(self.source, self.start + i, self.start + j)

    def trim_start(self) -> "Span":
        i = self.start
        while i < self.end and self.source[i].isspace():
            i += 1
        return Span(self.source, i, self.end)

    def is_blank(self) -> bool:
        return not self.trim_start()

    def chars(self) -> Iterator[tuple[int, str]]:
        """Yield ``(offset, char)`` pairs, offsets relative to the window."""
        for i in range(self.start, self.end):
            yield i - self.start, self.source[i]

    def is_suffix_of(self, other: "Span") -> bool:
        return (
            self.source is other.source
            and self.end == other.end
            and self.start >= other.start
        )

"""
Tokenizers for ysh command lines.

Each tokenizer recognizes exactly one lexical form at the very front of its
input and returns ``(remainder, token)``, both Spans over the caller's line.
None of them trim whitespace; wrap a tokenizer in ``trim_start`` for that.

Quoted strings and shell meta-sequences nest into each other to any depth:

    "top $(high "middle $(low ${bottom} low) middle" high) top"

is a single double-quoted token. The double-quote scanner hands every ``$``
to ``shell_meta``, and ``shell_meta`` skips over whole quoted and meta spans
while it looks for its closing bracket.
"""

from typing import Callable, TypeVar

from .errors import Incomplete, NoInput, ParseError, Unrecognized
from .text import Span

T = TypeVar("T")

TokenResult = tuple[Span, T]
Tokenizer = Callable[["str | Span"], TokenResult]

BRACKETS = {"(": ")", "{": "}"}


def compose(modifier: Callable, tokenizer: Tokenizer) -> Tokenizer:
    """
    Run ``modifier`` over the input before handing it to ``tokenizer``.

    Examples:
        >>> rem, tok = compose(lambda t: Span.of(t).trim_start(), squote)("  'atom'  ")
        >>> str(tok), str(rem)
        ('atom', '  ')
    """
    def composed(text):
        return tokenizer(modifier(text))
    return composed


def _lstrip(text: "str | Span") -> Span:
    return Span.of(text).trim_start()


def trim_start(tokenizer: Tokenizer) -> Tokenizer:
    """Make ``tokenizer`` skip leading whitespace."""
    return compose(_lstrip, tokenizer)


def any_of(*tokenizers: Tokenizer) -> Tokenizer:
    """
    Try each tokenizer in order and return the first success.

    An alternative that fails with NoInput or Unrecognized is skipped. An
    Incomplete failure means the alternative saw its opening delimiter and ran
    out of text, so it is raised as-is rather than letting a looser form
    (a bare word) swallow the opener.
    """
    def alternative(text):
        for tokenizer in tokenizers:
            try:
                return tokenizer(text)
            except Incomplete:
                raise
            except ParseError:
                continue
        raise Unrecognized("no token form matched", at=Span.of(text))
    return alternative


def word(text: "str | Span") -> TokenResult:
    """
    Find a bare word: the maximal run of non-whitespace characters.

    Punctuation is not special, so ``"hello world"`` is two words, ``"hello``
    and ``world"``. Running into the end of the text ends the word.

    Examples:
        >>> rem, tok = word("hello world")
        >>> str(tok), str(rem)
        ('hello', ' world')
    """
    text = Span.of(text)
    if not text:
        raise Incomplete("a word needs at least one character", at=text)
    if text.peek().isspace():
        raise Unrecognized("a word cannot start with whitespace", at=text)

    for offset, char in text.chars():
        if char.isspace():
            return text.advance(offset), text.take(offset)
    return text.advance(len(text)), text


def squote(text: "str | Span") -> TokenResult:
    """
    Find a single-quoted string, ``'...'``.

    Backslashes mean nothing here; the string ends at the next ``'``. The
    token excludes both quotes.
    """
    text = Span.of(text)
    if not text:
        raise NoInput(at=text)
    if not text.startswith("'"):
        raise Unrecognized("expected `'`", at=text)

    close = text.find("'", 1)
    if close < 0:
        raise Incomplete("unterminated single-quoted string", at=text)
    return text.advance(close + 1), text.between(1, close)


def dquote(text: "str | Span") -> TokenResult:
    """
    Find a double-quoted string, ``"..."``.

    A backslash skips the character after it, and both are kept in the token
    as written. A ``$`` starts a shell meta-sequence, which is skipped whole
    so quotes inside it do not end the string.

    Examples:
        >>> rem, tok = dquote('"dquotes \\\\"may nest\\\\" and $(even "nest shells")"excluded')
        >>> str(rem)
        'excluded'
    """
    return _dquote(Span.of(text), {})


def shell_meta(text: "str | Span") -> TokenResult:
    """
    Find a shell meta-sequence introduced by ``$``.

    - ``$(...)``: subshell, the token is ``(...)``
    - ``${...}``: variable expansion, the token is ``{...}``
    - ``$word``: variable expansion, the token is ``word``

    Inside brackets, quoted strings and nested meta-sequences are jumped over
    in one step, so only a closer that sits outside all of them counts.

    Examples:
        >>> rem, tok = shell_meta("$(cmd $(inner))")
        >>> str(tok), str(rem)
        ('(cmd $(inner))', '')
    """
    return _shell_meta(Span.of(text), {})


def _nested(tokenizer: Callable, text: Span, memo: dict) -> TokenResult:
    """
    Run a nested tokenizer at most once per start offset within one scan.

    Every text seen during a scan is a suffix of the same input, so the start
    offset identifies it. Failures are remembered too; without that an
    unterminated line is rescanned once per enclosing opener.
    """
    key = (tokenizer, text.start)
    if key not in memo:
        try:
            memo[key] = tokenizer(text, memo)
        except ParseError as err:
            memo[key] = err
    result = memo[key]
    if isinstance(result, ParseError):
        raise result
    return result


def _squote(text: Span, memo: dict) -> TokenResult:
    return squote(text)


def _dquote(text: Span, memo: dict) -> TokenResult:
    if text.is_blank():
        raise Incomplete("a double-quoted string needs two quotes", at=text)
    if not text.startswith('"'):
        raise Unrecognized('expected `"`', at=text)

    body = text.advance(1)
    i = 0
    while i < len(body):
        char = body.peek(i)
        if char == '"':
            return body.advance(i + 1), body.take(i)
        if char == "\\":
            i += 2
        elif char == "$":
            _, meta = _nested(_shell_meta, body.advance(i), memo)
            i += 1 + len(meta)
        else:
            i += 1

    raise Incomplete("unterminated double-quoted string", at=text)


def _shell_meta(text: Span, memo: dict) -> TokenResult:
    if not text:
        raise NoInput(at=text)
    if not text.startswith("$"):
        raise Unrecognized("expected `$`", at=text)

    body = text.advance(1)
    opener = body.peek()
    if opener is None:
        raise Incomplete("nothing follows `$`", at=text)
    closer = BRACKETS.get(opener)
    if closer is None:
        return word(body)

    rem = body.advance(1)
    depth = 0
    # Every branch shortens rem, so the scan always terminates.
    while True:
        if rem.is_blank():
            raise Incomplete(f"no closing `{closer}`", at=text)

        for nested in NESTED:
            try:
                rem, _ = _nested(nested, rem.trim_start(), memo)
                break
            except ParseError:
                continue
        else:
            char = rem.peek()
            if char == closer:
                if depth == 0:
                    length = len(body) - len(rem) + 1
                    return body.advance(length), body.take(length)
                depth -= 1
            elif char == opener:
                depth += 1
            rem = rem.advance(1)


NESTED = (_dquote, _squote, _shell_meta)


_span = any_of(squote, dquote, word)
_atom = any_of(shell_meta, dquote, squote, word)


def span(text: "str | Span") -> TokenResult:
    """
    Find one argument or value: a quoted string, or else a bare word.

    Text that opens with a quote is read as that quoted form; anything else
    is a word. Shell meta-sequences are not a form of their own here; they
    only appear nested inside double quotes, e.g. ``"$(date)"``.
    """
    return _span(text)


def atom(text: "str | Span") -> TokenResult:
    """Find any token: shell meta, double quote, single quote, then word."""
    return _atom(text)


def keyval(text: "str | Span") -> TokenResult:
    """
    Find a ``key=value`` pair and split it.

    The key is one bare word running right up to the first ``=``. If there is
    whitespace before that ``=``, the ``=`` belongs to some later token and
    this is not an assignment. The value is a ``span``.

    Examples:
        >>> rem, (key, value) = keyval('hello="dear reader" rest')
        >>> str(key), str(value), str(rem)
        ('hello', 'dear reader', ' rest')
    """
    text = Span.of(text)
    equals = text.find("=")
    if equals < 0:
        raise Unrecognized("no `=` in text", at=text)
    if equals == 0:
        raise Unrecognized("empty key", at=text)

    _, key = word(text.take(equals))
    if len(key) != equals:
        raise Unrecognized("key contains whitespace", at=text)

    rem, value = span(text.advance(equals + 1))
    return rem, (key, value)

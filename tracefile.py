# tracefile.py
"""
Reader/writer for access traces.

A trace is a stream of whitespace-separated tokens: an operation
(`r` or `w`, any case) followed by an address, or a switch such as
`-t`. Line breaks carry no meaning beyond error reporting.
"""
import re
from collections import namedtuple

from cache import READ, WRITE

Access = namedtuple("Access", ["op", "address", "line_no", "text"], defaults=[0, None])
Switch = namedtuple("Switch", ["flag", "line_no"], defaults=[0])

VERSION_FLAG = "v"
ECHO_FLAG = "t"
DEBUG_FLAG = "d"

_OPS = {"r": READ, "w": WRITE}

_HEX = re.compile(r"\+?0x([0-9a-f]+)")
_OCT = re.compile(r"\+?0([0-7]+)")
_DEC = re.compile(r"\+?(0|[1-9][0-9]*)")


class TraceError(ValueError):
    def __init__(self, message, line_no=None):
        self.line_no = line_no
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)


def parse_address(token):
    """Parse an address literal the way C's strtol(..., 0) does, truncated to 32 bits."""
    text = token.strip().lower()
    for pattern, base in ((_HEX, 16), (_OCT, 8), (_DEC, 10)):
        m = pattern.fullmatch(text)
        if m:
            value = int(m.group(1), base)
            break
    else:
        raise TraceError(f"bad address {token!r}")
    return value & 0xFFFFFFFF


def _tokens(lines):
    for line_no, line in enumerate(lines, start=1):
        for tok in line.split():
            yield line_no, tok


def parse_trace(lines):
    """
    Yield Switch and Access events from an iterable of text lines.
    Unknown switch letters are skipped.
    """
    tokens = _tokens(lines)
    for line_no, tok in tokens:
        if tok.startswith("-"):
            flag = tok[1:2].lower()
            if flag in (VERSION_FLAG, ECHO_FLAG, DEBUG_FLAG):
                yield Switch(flag, line_no)
            continue
        op = _OPS.get(tok.lower())
        if op is None:
            raise TraceError(f"unknown operation {tok!r}", line_no)
        nxt = next(tokens, None)
        if nxt is None:
            raise TraceError(f"operation {tok!r} has no address", line_no)
        addr_line, addr_tok = nxt
        try:
            address = parse_address(addr_tok)
        except TraceError as e:
            raise TraceError(str(e), addr_line) from None
        yield Access(op, address, line_no, f"{tok} {addr_tok}")


def read_trace(path):
    """Parse the trace file at `path` into a list of events."""
    with open(path, "r") as f:
        return list(parse_trace(f))


def format_access(access):
    """Canonical trace syntax; ignores the raw text an access was parsed from."""
    return f"{access.op} 0x{access.address:08x}"


def write_trace(path, accesses):
    with open(path, "w") as f:
        for a in accesses:
            f.write(format_access(a) + "\n")
    return path

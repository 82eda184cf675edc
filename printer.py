# printer.py
import os
from typing import Protocol


class Printer(Protocol):
    def __call__(self, *values: object, sep: str | None = " ", end: str | None = "\n"): ...


class TeePrinter:
    """
    Prints to the console and mirrors everything into a log file.
    Use as a context manager, or call close() when done.
    """

    def __init__(self, path):
        self.path = path
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        self._file = open(path, "w")

    def __call__(self, *values, sep=" ", end="\n"):
        print(*values, sep=sep, end=end)
        print(*values, sep=sep, end=end, file=self._file)

    def close(self):
        if not self._file.closed:
            self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

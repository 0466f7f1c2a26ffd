"""Tabular record reader.

Each entity type points at a directory of delimited text files. Every
regular file directly inside that directory is read, in name order, and
every non-blank line becomes one `Record`: the positional field values of
that line plus where it came from.

How a line is split is controlled by a `RecordProfile`. The default profile
splits on tabs with no quoting, which is the layout the loader has always
used. Profiles with a text qualifier hand the line to the `csv` module so a
quoted field may contain the separator.
"""

import csv
from pathlib import Path
from typing import Iterator

from pydantic import BaseModel, Field


class RecordProfile(BaseModel):
    """How to split the lines of a data file into fields.

    Attributes:
        field_separator: Single character separating fields.
        text_qualifier: Optional quote character. When None, lines are split
            on the separator verbatim.
        encoding: Text encoding of the data files.
    """

    model_config = {"frozen": True}

    field_separator: str = Field("\t", min_length=1, max_length=1)
    text_qualifier: str | None = Field(None, min_length=1, max_length=1)
    encoding: str = "utf-8"

    def split(self, line: str) -> list[str]:
        """Split one line (without its line terminator) into field values."""
        if self.text_qualifier is None:
            return line.split(self.field_separator)
        return next(csv.reader([line], delimiter=self.field_separator, quotechar=self.text_qualifier))


TAB = RecordProfile()
COMMA_DOUBLE_QUOTE = RecordProfile(field_separator=",", text_qualifier='"')
SEMICOLON_DOUBLE_QUOTE = RecordProfile(field_separator=";", text_qualifier='"')


class Record(BaseModel):
    """Field values read from one line of one data file."""

    model_config = {"frozen": True}

    values: tuple[str, ...]
    source: Path | None = None
    line_number: int = Field(0, ge=0)

    def __len__(self) -> int:
        return len(self.values)


class TabularRecordReader:
    """Enumerates data files and yields one `Record` per line.

    Example:
        ```python
        reader = TabularRecordReader(profile=COMMA_DOUBLE_QUOTE)
        for path in reader.list_files(node.data_directory):
            for record in reader.read_file(path):
                ...
        ```
    """

    def __init__(self, profile: RecordProfile | None = None):
        self.profile = profile or TAB

    def list_files(self, directory: Path) -> list[Path]:
        """Return the regular files directly inside `directory`, sorted by name.

        Raises:
            FileNotFoundError: If the directory does not exist.
            NotADirectoryError: If the path is not a directory.
        """
        directory = Path(directory)
        if not directory.exists():
            raise FileNotFoundError(f"data directory not found: {directory}")
        if not directory.is_dir():
            raise NotADirectoryError(f"not a directory: {directory}")
        return sorted(p for p in directory.iterdir() if p.is_file())

    def read_file(self, path: Path) -> Iterator[Record]:
        """Yield the records of one file in line order. Blank lines are skipped."""
        with open(path, "r", encoding=self.profile.encoding, newline="") as fh:
            for line_number, line in enumerate(fh, start=1):
                line = line.rstrip("\r\n")
                if not line:
                    continue
                yield Record(values=tuple(self.profile.split(line)), source=path, line_number=line_number)

    def read_directory(self, directory: Path) -> Iterator[Record]:
        """Yield every record of every file under `directory`, file by file."""
        for path in self.list_files(directory):
            yield from self.read_file(path)

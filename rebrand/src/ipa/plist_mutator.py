import plistlib
import re
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union
from xml.parsers.expat import ExpatError

from rich.markup import escape

from rebrand.logger import get_console
from rebrand.src.core.errors import ExternalToolError


class PlistFormat(Enum):
    XML = plistlib.FMT_XML  # Text-editable
    BINARY = plistlib.FMT_BINARY  # Distributable


# Old-style .strings files ("key" = "value";) aren't readable by plistlib
_STRINGS_TOKEN = re.compile(
    r"""
    (?P<comment>/\*.*?\*/|//[^\n]*)
    | (?P<string>"(?:\\.|[^"\\])*")
    | (?P<word>[A-Za-z0-9_.$:/-]+)
    | (?P<punct>[=;])
    | (?P<space>\s+)
    """,
    re.VERBOSE | re.DOTALL,
)
_ESCAPE = re.compile(r"\\([Uu][0-9a-fA-F]{4}|.)", re.DOTALL)
_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "v": "\v",
}


def _unescape(text: str) -> str:
    def replace(match: "re.Match") -> str:
        seq = match.group(1)
        if len(seq) == 5:
            return chr(int(seq[1:], 16))
        return _SIMPLE_ESCAPES.get(seq, seq)

    return _ESCAPE.sub(replace, text)


def _decode_strings_text(raw: bytes) -> str:
    if raw.startswith((b"\xff\xfe", b"\xfe\xff")):
        return raw.decode("utf-16")
    return raw.decode("utf-8-sig")


def parse_strings(text: str) -> Dict[str, str]:
    """Parse an old-style localized strings table into a dict"""
    tokens: List[Union[str, Tuple[str, str]]] = []
    pos = 0
    while pos < len(text):
        match = _STRINGS_TOKEN.match(text, pos)
        if not match:
            raise ValueError(f"Unexpected character {text[pos]!r} at offset {pos}")
        pos = match.end()
        kind = match.lastgroup
        if kind in ("comment", "space"):
            continue
        value = match.group(kind)
        if kind == "string":
            tokens.append(_unescape(value[1:-1]))
        elif kind == "word":
            tokens.append(value)
        else:
            # Keep punctuation distinguishable from quoted "=" or ";"
            tokens.append(("punct", value))

    entries: Dict[str, str] = {}
    i = 0
    while i < len(tokens):
        key = tokens[i]
        if isinstance(key, tuple):
            raise ValueError(f"Expected a key, got {key[1]!r}")
        nxt = tokens[i + 1] if i + 1 < len(tokens) else None
        if nxt == ("punct", ";"):
            entries[key] = key
            i += 2
            continue
        if nxt != ("punct", "="):
            raise ValueError(f"Expected '=' after key {key!r}")
        value = tokens[i + 2] if i + 2 < len(tokens) else None
        end = tokens[i + 3] if i + 3 < len(tokens) else None
        if value is None or isinstance(value, tuple) or end != ("punct", ";"):
            raise ValueError(f"Malformed entry for key {key!r}")
        entries[key] = value
        i += 4
    return entries


class PlistMutator:
    """Get, set and re-encode keys in property-list documents"""

    def __init__(self):
        self.console = get_console()

    def _read(self, path: Path) -> Tuple[Any, Optional[PlistFormat]]:
        """Load a document, returning its data and plist format (None for .strings text)"""
        try:
            raw = path.read_bytes()
        except OSError as e:
            raise ExternalToolError(("read", str(path)), None, str(e)) from e

        if raw.startswith(b"bplist00"):
            fmt = PlistFormat.BINARY
        else:
            fmt = PlistFormat.XML

        try:
            return plistlib.loads(raw, dict_type=dict), fmt
        except (plistlib.InvalidFileException, ExpatError, ValueError) as plist_error:
            if fmt is PlistFormat.BINARY:
                raise ExternalToolError(
                    ("read", str(path)), None, str(plist_error)
                ) from plist_error

        try:
            return parse_strings(_decode_strings_text(raw)), None
        except (ValueError, UnicodeDecodeError) as e:
            raise ExternalToolError(
                ("read", str(path)), None, f"Not a property list or strings file: {e}"
            ) from e

    def _write(self, path: Path, data: Any, fmt: PlistFormat) -> None:
        try:
            payload = plistlib.dumps(data, fmt=fmt.value, sort_keys=False)
        except (TypeError, OverflowError) as e:
            raise ExternalToolError(
                ("write", str(path), fmt.name.lower()), None, str(e)
            ) from e
        with open(path, "wb") as f:
            f.write(payload)

    def get_value(self, plist_path: Union[str, Path], key: str, default: Any = None) -> Any:
        data, _ = self._read(Path(plist_path))
        return data.get(key, default)

    def read(self, plist_path: Union[str, Path]) -> Any:
        """Decoded contents of a plist or .strings document"""
        data, _ = self._read(Path(plist_path))
        return data

    def set_value(self, plist_path: Union[str, Path], key: str, value: Any) -> None:
        """Write one key, keeping the document's current encoding"""
        plist_path = Path(plist_path)
        data, fmt = self._read(plist_path)
        if not isinstance(data, dict):
            raise ExternalToolError(
                ("set", str(plist_path), key), None, "Top-level object is not a dictionary"
            )
        data[key] = value
        self._write(plist_path, data, fmt or PlistFormat.XML)
        self.console.log(f"[green]Set {key}:[/] {escape(repr(value))} in {plist_path.name}")

    def convert_format(
        self,
        path: Union[str, Path],
        target_format: PlistFormat,
        pattern: Optional[str] = None,
    ) -> List[Path]:
        """Re-encode documents in place.

        Without ``pattern`` ``path`` is the one document to convert. With it,
        every document under the directory ``path`` matching the glob
        ``pattern`` is converted. ``path`` itself is never treated as a glob.
        """
        path = Path(path)
        if pattern is None:
            paths = [path]
        else:
            paths = sorted(path.glob(pattern))

        for document in paths:
            data, fmt = self._read(document)
            if fmt is target_format:
                continue
            self._write(document, data, target_format)

        label = path / pattern if pattern else path
        self.console.log(
            f"[blue]Converted {len(paths)} document(s) to {target_format.name.lower()}:[/] "
            f"{escape(str(label))}"
        )
        return paths

    @contextmanager
    def editing(self, plist_path: Union[str, Path]) -> Iterator[Path]:
        """Bracket a batch of writes: text format while editing, binary when done"""
        plist_path = Path(plist_path)
        self.convert_format(plist_path, PlistFormat.XML)
        yield plist_path
        self.convert_format(plist_path, PlistFormat.BINARY)

# envbind/builder.py
"""
envbind.builder
---------------

The config store: a flat, case-insensitive key/value map filled from one or
more sources and then bound onto dataclass records.

Typical use::

    from envbind.builder import from_file

    cfg = from_file("defaults.env").from_env().to(AppConfig)

Sources merge left to right and later values override earlier ones key by
key. Supported sources:

- ``from_file``: line-delimited ``KEY=VALUE`` files.
- ``from_env``: the process environment (or any mapping passed in).
- ``from_dotenv``: ``.env`` files parsed by python-dotenv (quotes, comments,
  ``export`` prefixes).
- ``from_toml``: TOML documents; nested tables become ``parent__child`` keys
  and arrays become delimited strings.
- ``from_mapping``: in-memory dictionaries.

Nested records are addressed with the struct delimiter (default ``__``),
sequence elements are separated by the slice delimiter (default a space).
"""

import logging
import os
from typing import Any, Dict, Iterator, Mapping, Optional, TypeVar, Union

# Use tomli for reading TOML, tomllib on 3.11+
try:
    import tomli
except ImportError:
    try: import tomllib as tomli
    except ImportError: tomli = None

from dotenv import dotenv_values, find_dotenv

from .normalize import normalize_mapping, strings_to_map
from .populate import DEFAULT_SLICE_DELIM, DEFAULT_STRUCT_DELIM, populate
from .preprocess import ValuePreProcessor
from .provenance import ProvenanceStore
from .utils import expand_path, flatten_mapping

log = logging.getLogger(__name__)

T = TypeVar("T")


class Builder:
    """
    Holds the merged configuration state.

    Args:
        struct_delim: Separator between a nested record's key and its fields.
        slice_delim: Separator between sequence elements.
        value_pre_processor: Called as ``pre_process_value(key, value)`` for
            every merged entry; its return value is stored.
        track_provenance: Record the source of every write in ``provenance``.

    Raises:
        ValueError: If a delimiter is empty.
    """

    def __init__(self,
                 struct_delim: str = DEFAULT_STRUCT_DELIM,
                 slice_delim: str = DEFAULT_SLICE_DELIM,
                 value_pre_processor: Optional[ValuePreProcessor] = None,
                 track_provenance: bool = False):
        if not struct_delim:
            raise ValueError("struct_delim must not be empty")
        if not slice_delim:
            raise ValueError("slice_delim must not be empty")
        self.struct_delim = struct_delim
        self.slice_delim = slice_delim
        self.value_pre_processor = value_pre_processor
        self.config_map: Dict[str, str] = {}
        self.provenance: Optional[ProvenanceStore] = ProvenanceStore() if track_provenance else None

    def with_value_pre_processor(self, pre_processor: ValuePreProcessor) -> "Builder":
        """
        Set the pre-processor used by later merges (e.g. an
        ``envbind.aws.AWSValuePreProcessor``). Already merged values are not
        re-processed.
        """
        self.value_pre_processor = pre_processor
        return self

    # --- Merging ---

    def merge(self, entries: Mapping[str, str], source: str = "mapping") -> None:
        """
        Merge ``entries`` into the store, overriding existing keys.

        Each value is passed through the pre-processor, if one is set, before
        it is stored. A pre-processor error propagates and aborts the merge;
        entries written before the failure stay written.
        """
        for key, raw_value in entries.items():
            value = raw_value
            if self.value_pre_processor is not None:
                value = self.value_pre_processor.pre_process_value(key, raw_value)
            key = key.lower()
            self.config_map[key] = value
            if self.provenance is not None:
                self.provenance.record(key, value, source, raw_value)
        log.debug("Merged %d entr%s from %s.", len(entries), "y" if len(entries) == 1 else "ies", source)

    # --- Sources ---

    def from_file(self, path: Union[str, os.PathLike]) -> "Builder":
        """
        Merge ``KEY=VALUE`` lines from a text file.

        Raises:
            FileNotFoundError: If the file does not exist.
            OSError: If the file cannot be read.
        """
        file_path = expand_path(path)
        if not os.path.exists(file_path):
            raise FileNotFoundError(f"Config file not found: {file_path}")
        # split on "\n" only; other line-break characters may appear in values
        with open(file_path, mode="r", encoding="utf-8", newline="") as f:
            lines = [line.rstrip("\r") for line in f.read().split("\n")]
        self.merge(strings_to_map(lines), source=f"file:{file_path}")
        return self

    def from_env(self, environ: Optional[Mapping[str, str]] = None) -> "Builder":
        """Merge the process environment, or ``environ`` if given."""
        environ = os.environ if environ is None else environ
        self.merge(strings_to_map(f"{k}={v}" for k, v in environ.items()), source="env")
        return self

    def from_dotenv(self, path: Optional[Union[str, os.PathLike]] = None) -> "Builder":
        """
        Merge a ``.env`` file without touching ``os.environ``.

        Without ``path`` the file is searched for from the current directory
        upwards; finding none is not an error.

        Raises:
            FileNotFoundError: If an explicit ``path`` does not exist.
        """
        if path is None:
            dotenv_path = find_dotenv(usecwd=True)
            if not dotenv_path:
                log.warning("Warning: no .env file found from %s, nothing merged.", os.getcwd())
                return self
        else:
            dotenv_path = expand_path(path)
            if not os.path.exists(dotenv_path):
                raise FileNotFoundError(f".env file not found: {dotenv_path}")
        values = dotenv_values(dotenv_path=dotenv_path)
        self.merge(normalize_mapping(values), source=f"dotenv:{dotenv_path}")
        return self

    def from_toml(self, path: Union[str, os.PathLike]) -> "Builder":
        """
        Merge a TOML file, flattening tables with the struct delimiter and
        joining arrays with the slice delimiter.

        Raises:
            FileNotFoundError: If the file does not exist.
            RuntimeError: If the file cannot be parsed or flattened.
        """
        if not tomli:
            raise RuntimeError("tomli (or tomllib) is required for TOML support.")
        file_path = expand_path(path)
        if not os.path.exists(file_path):
            raise FileNotFoundError(f"Config file not found: {file_path}")
        try:
            with open(file_path, mode="rb") as f:
                document = tomli.load(f)
            flat = flatten_mapping(document, self.struct_delim, self.slice_delim)
        except (tomli.TOMLDecodeError, ValueError) as e:
            raise RuntimeError(f"Error loading/parsing file {file_path}: {e}") from e
        self.merge(normalize_mapping(flat), source=f"toml:{file_path}")
        return self

    def from_mapping(self, mapping: Mapping[str, Any]) -> "Builder":
        """
        Merge an in-memory mapping. Non-string values are rendered as text,
        nested mappings and lists are flattened as in ``from_toml`` and
        ``None`` values are skipped.

        Raises:
            ValueError: If the mapping holds nested lists or lists of mappings.
        """
        flat = flatten_mapping(mapping, self.struct_delim, self.slice_delim)
        self.merge(normalize_mapping(flat), source="mapping")
        return self

    # --- Binding ---

    def to(self, target: Union[T, type]) -> T:
        """
        Populate a dataclass record from the current state.

        ``target`` may be a dataclass type (a new instance is returned) or an
        instance (filled in place and returned). See ``envbind.populate``.

        Supported field types: ``str``, ``bool``, ``int``, ``float``,
        ``datetime.timedelta``, the fixed-width aliases in ``envbind.convert``,
        nested dataclasses, and ``list`` of any scalar type.

        Raises:
            UnsupportedFieldError: If the record declares an unsupported field.
        """
        return populate(target, self.config_map, self.struct_delim, self.slice_delim)

    # --- Inspection ---

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Return the stored value for ``key`` (case-insensitive)."""
        return self.config_map.get(key.lower(), default)

    def as_dict(self) -> Dict[str, str]:
        return dict(self.config_map)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self.config_map

    def __iter__(self) -> Iterator[str]:
        return iter(self.config_map)

    def __len__(self) -> int:
        return len(self.config_map)

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(keys={len(self.config_map)}, "
                f"struct_delim={self.struct_delim!r}, slice_delim={self.slice_delim!r})")


# --- Shortcuts returning a fresh Builder ---

def with_value_pre_processor(pre_processor: ValuePreProcessor, **options: Any) -> Builder:
    return Builder(value_pre_processor=pre_processor, **options)


def from_file(path: Union[str, os.PathLike], **options: Any) -> Builder:
    return Builder(**options).from_file(path)


def from_env(environ: Optional[Mapping[str, str]] = None, **options: Any) -> Builder:
    return Builder(**options).from_env(environ)


def from_dotenv(path: Optional[Union[str, os.PathLike]] = None, **options: Any) -> Builder:
    return Builder(**options).from_dotenv(path)


def from_toml(path: Union[str, os.PathLike], **options: Any) -> Builder:
    return Builder(**options).from_toml(path)


def from_mapping(mapping: Mapping[str, Any], **options: Any) -> Builder:
    return Builder(**options).from_mapping(mapping)

"""In-memory registry of loaded block schemas.

- load once at startup (``reload``)
- ``get`` returns an immutable FormSchema per block type
- reload validates every document first, then swaps one reference, so
  concurrent readers see either the old or the new set, never a mix
"""

import logging
import threading
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from form_engine.config import get_settings
from form_engine.engine import compile_form
from form_engine.errors import SchemaError
from form_engine.runtime.schema_loader import find_schema_files, load_schema_file
from form_engine.schemas.compile_result import CompileResult
from form_engine.schemas.form_schema import FormSchema

logger = logging.getLogger(__name__)

# Repo default block schemas
BLOCKS_DIR = Path(__file__).resolve().parent.parent / "blocks"


def load_directories(directories: Sequence[Union[str, Path]]) -> Dict[str, FormSchema]:
    """Load every schema file from the given directories.

    Later directories override earlier ones per block type, so a workspace
    directory listed after the repo defaults replaces bundled blocks.

    Raises:
        SchemaError: Listing the problems of every invalid file
    """
    schemas: Dict[str, FormSchema] = {}
    sources: Dict[str, Path] = {}
    problems: List[str] = []

    for directory in directories:
        files = find_schema_files(directory)
        if not files:
            logger.debug(f"No schema files in {directory}")
        for path in files:
            try:
                schema = load_schema_file(path)
            except SchemaError as e:
                problems.extend(f"{path.name}: {problem}" for problem in e.problems)
                continue
            if schema.block_type in sources:
                logger.debug(
                    f"Schema '{schema.block_type}' from {path} overrides {sources[schema.block_type]}"
                )
            schemas[schema.block_type] = schema
            sources[schema.block_type] = path

    if problems:
        raise SchemaError(problems)
    return schemas


class SchemaRegistry:
    """Block type -> FormSchema, swapped atomically on reload."""

    def __init__(self, schemas: Optional[Mapping[str, FormSchema]] = None):
        self._schemas: Mapping[str, FormSchema] = MappingProxyType(dict(schemas or {}))
        self._write_lock = threading.Lock()

    # ---------- LOAD ----------

    def reload(self, directories: Sequence[Union[str, Path]]) -> List[str]:
        """Load all schemas from directories and replace the current set.

        Nothing is replaced if any file is invalid.

        Returns:
            Sorted block types now registered
        """
        schemas = load_directories(directories)
        with self._write_lock:
            self._schemas = MappingProxyType(schemas)
        logger.info(f"Loaded {len(schemas)} block schema(s): {', '.join(sorted(schemas))}")
        return sorted(schemas)

    def register(self, schema: FormSchema) -> None:
        """Add or replace one schema."""
        with self._write_lock:
            updated = dict(self._schemas)
            updated[schema.block_type] = schema
            self._schemas = MappingProxyType(updated)

    # ---------- LOOKUP ----------

    def get(self, block_type: str) -> FormSchema:
        schemas = self._schemas
        if block_type not in schemas:
            raise KeyError(f"Unknown block type: {block_type}")
        return schemas[block_type]

    def block_types(self) -> List[str]:
        return sorted(self._schemas)

    def __contains__(self, block_type: object) -> bool:
        return block_type in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    # ---------- COMPILE ----------

    def compile(self, block_type: str, values: Mapping[str, Any]) -> CompileResult:
        """Compile values against a registered block schema."""
        return compile_form(self.get(block_type), values)


_default_registry: Optional[SchemaRegistry] = None
_default_lock = threading.Lock()


def default_directories(schemas_dir: Optional[Path] = None, include_bundled: bool = True) -> List[Path]:
    """Repo defaults first, then the configured schemas directory."""
    directories = []
    if include_bundled:
        directories.append(BLOCKS_DIR)
    if schemas_dir is not None:
        directories.append(Path(schemas_dir))
    return directories


def get_registry() -> SchemaRegistry:
    """Process-wide registry, loaded on first use from configured directories."""
    global _default_registry
    if _default_registry is not None:
        return _default_registry

    with _default_lock:
        if _default_registry is None:
            settings = get_settings()
            registry = SchemaRegistry()
            registry.reload(default_directories(settings.schemas_dir, settings.include_bundled_blocks))
            _default_registry = registry
    return _default_registry


def reset_registry() -> None:
    """Drop the process-wide registry (next get_registry() reloads)."""
    global _default_registry
    with _default_lock:
        _default_registry = None

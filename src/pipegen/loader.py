# loader.py
from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .errors import DuplicateKey, MalformedDescriptor


STR_TAG = "tag:yaml.org,2002:str"
NUMBER_TAGS = ("tag:yaml.org,2002:int", "tag:yaml.org,2002:float")

# values read as written: `version: 3.10` must not become the float 3.1
VERBATIM_KEYS = frozenset({"version"})


class UniqueKeyLoader(yaml.SafeLoader):
    """
    SafeLoader that refuses mappings with repeated keys instead of keeping the
    last one, and keeps unquoted numbers under VERBATIM_KEYS as strings.
    """

    def construct_mapping(self, node, deep=False):
        seen = set()
        for i, (key_node, value_node) in enumerate(node.value):
            key = self.construct_object(key_node, deep=deep)
            if key in seen:
                raise DuplicateKey(str(key), key_node.start_mark.line + 1)
            seen.add(key)
            if key in VERBATIM_KEYS and isinstance(value_node, yaml.ScalarNode) and value_node.tag in NUMBER_TAGS:
                node.value[i] = (
                    key_node,
                    yaml.ScalarNode(STR_TAG, value_node.value, value_node.start_mark, value_node.end_mark),
                )
        return super().construct_mapping(node, deep=deep)


def loads_descriptor(text: str) -> Any:
    """Parse descriptor text. YAML is a superset of JSON, so both are accepted."""
    try:
        return yaml.load(text, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise MalformedDescriptor("payload", f"Could not parse descriptor: {exc}") from exc


def load_descriptor(path: str | Path) -> Any:
    """
    Load a raw descriptor document from a YAML or JSON file.

    Returns the raw payload; validation happens in parse_descriptor.
    """
    doc_path = Path(path).expanduser().resolve()
    if not doc_path.exists():
        raise FileNotFoundError(f"Descriptor file not found: {doc_path}")
    return loads_descriptor(doc_path.read_text(encoding="utf-8"))

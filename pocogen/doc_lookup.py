"""Lookup of .NET XML documentation comments"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


def trim_indents(text: str) -> Optional[list[str]]:
    """Split doc text into lines without indentation or blank edges"""
    lines = [line.strip() for line in text.splitlines()]
    while lines and not lines[0]:
        lines.pop(0)
    while lines and not lines[-1]:
        lines.pop()
    return lines or None


class DocCommentLookup:
    """Summaries keyed by member signature such as 'T:Ns.Type' or 'P:Ns.Type.Name'"""

    def __init__(self, summaries: Optional[dict[str, list[str]]] = None):
        self.summaries = dict(summaries or {})

    @classmethod
    def from_string(cls, content: str) -> "DocCommentLookup":
        return cls._from_root(ET.fromstring(content))

    @classmethod
    def load(cls, path: Union[str, Path]) -> "DocCommentLookup":
        logger.debug("Loading doc comments from %s", path)
        return cls._from_root(ET.parse(str(path)).getroot())

    @classmethod
    def _from_root(cls, root: ET.Element) -> "DocCommentLookup":
        summaries = {}
        for member in root.iter('member'):
            key = member.get('name')
            summary = member.find('summary')
            if not key or summary is None:
                continue
            lines = trim_indents(''.join(summary.itertext()))
            if lines:
                summaries[key] = lines
        return cls(summaries)

    def lookup(self, key: str) -> Optional[list[str]]:
        """Summary lines for a signature key, or None when undocumented"""
        lines = self.summaries.get(key)
        return list(lines) if lines else None

    def merge(self, other: "DocCommentLookup") -> "DocCommentLookup":
        self.summaries.update(other.summaries)
        return self

    def __len__(self) -> int:
        return len(self.summaries)

"""
Shared reader machinery for ReaxPot input files.

``BaseHandler`` is the parent of ``FFieldHandler`` (force-field parameters)
and ``XyzHandler`` (atom snapshots). A handler only remembers its path
when created; the file is read the first time a table or the metadata is
requested, and the result is kept for later calls.
"""


from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import pandas as pd


class BaseHandler(ABC):
    """
    Lazily parsed view of one input file.

    Subclasses implement ``_parse()``, which reads ``self.path`` and returns
    the main table together with a metadata dictionary.

    Attributes
    ----------
    path : pathlib.Path
        File the handler reads from.
    """

    def __init__(self, file_path: str | Path):
        self.path = Path(file_path)
        self._parsed = False
        self._df: pd.DataFrame | None = None
        self._meta: dict[str, Any] = {}

    def parse(self) -> None:
        """Read the file, unless that already happened."""
        if self._parsed:
            return
        table, meta = self._parse()
        self._df, self._meta = table, dict(meta or {})
        self._parsed = True

    def reload(self) -> None:
        """Forget the cached result and read the file again."""
        self._parsed = False
        self._df, self._meta = None, {}
        self.parse()

    def dataframe(self) -> pd.DataFrame:
        """
        Main table of the file; columns depend on the handler.

        Examples
        --------
        >>> h = XyzHandler("snapshot.xyz")
        >>> df = h.dataframe()
        """
        self.parse()
        assert self._df is not None
        return self._df

    def metadata(self) -> dict[str, Any]:
        """Copy of the metadata gathered while parsing."""
        self.parse()
        return dict(self._meta)

    @abstractmethod
    def _parse(self) -> tuple[pd.DataFrame, dict[str, Any]]:
        """Read ``self.path`` and return ``(table, metadata)``."""

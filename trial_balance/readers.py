"""
Table Readers.

Decode the supported upload formats into the engine's input shape: a list
of rows, each a list of cell values, header first.

Supported inputs
----------------
* CSV file or CSV text (``.csv`` / ``.txt``)
* Excel workbook (``.xlsx`` / ``.xlsm``): first sheet or a named one
* JSON: persisted ledger records ``[{"Particulars": ..., ...}]`` or a raw
  array of arrays
* pandas DataFrame
"""

from __future__ import annotations

import csv
import json
from io import StringIO
from pathlib import Path
from typing import Any, List, Optional, Union

import openpyxl

from trial_balance.logging_setup import get_logger

logger = get_logger("readers")

ALLOWED_EXTENSIONS = {"csv", "txt", "xlsx", "xlsm", "json"}


class TableReader:
    """Readers producing ``[[header...], [cell, ...], ...]``."""

    @staticmethod
    def read_csv(source: Union[str, Path]) -> List[List[str]]:
        """Read from a CSV file path or raw CSV text."""
        if isinstance(source, Path) or (
            isinstance(source, str) and "\n" not in source and Path(source).exists()
        ):
            with open(Path(source), encoding="utf-8-sig", newline="") as fh:
                rows = list(csv.reader(fh))
        else:
            rows = list(csv.reader(StringIO(source.lstrip("\ufeff"))))

        logger.info("Read %d CSV rows", len(rows))
        return rows

    @staticmethod
    def read_excel(
        source: Union[str, Path, Any], sheet_name: Optional[str] = None
    ) -> List[List[Any]]:
        """Read one worksheet of an ``.xlsx`` workbook.

        Parameters
        ----------
        source:
            Path or binary file-like object.
        sheet_name:
            Worksheet to read; the first sheet when omitted.
        """
        wb = openpyxl.load_workbook(source, data_only=True, read_only=True)
        try:
            if sheet_name is None:
                ws = wb.worksheets[0]
            elif sheet_name in wb.sheetnames:
                ws = wb[sheet_name]
            else:
                raise ValueError(
                    f"Sheet {sheet_name!r} not found; available: {wb.sheetnames}"
                )
            rows = [list(r) for r in ws.iter_rows(values_only=True)]
            logger.info("Read %d rows from sheet %r", len(rows), ws.title)
        finally:
            wb.close()
        return rows

    @staticmethod
    def read_json(source: Union[str, Path, list, dict]) -> List[List[Any]]:
        """Read persisted ledger records or an array of arrays.

        Supports three shapes:
        * Array of objects ``[{"Particulars": "Sales", "Debit": "", ...}]``
        * Array of arrays ``[["Particulars", "Debit", "Credit"], [...]]``
        * Object ``{"rows": <either of the above>}``
        """
        if isinstance(source, (list, dict)):
            data = source
        elif isinstance(source, Path) or not source.lstrip().startswith(("{", "[")):
            with open(Path(source), encoding="utf-8") as fh:
                data = json.load(fh)
        else:
            data = json.loads(source)

        if isinstance(data, dict):
            if "rows" not in data:
                raise ValueError("JSON object must contain a 'rows' array")
            data = data["rows"]

        if not isinstance(data, list):
            raise ValueError(f"Unsupported JSON root type: {type(data).__name__}")

        if data and all(isinstance(item, dict) for item in data):
            header: List[str] = []
            for item in data:
                for key in item:
                    if key not in header:
                        header.append(key)
            return [header] + [[item.get(k) for k in header] for item in data]

        if all(isinstance(item, list) for item in data):
            return [list(item) for item in data]

        raise ValueError("JSON array must hold only objects or only arrays")

    @staticmethod
    def read_dataframe(df: Any) -> List[List[Any]]:
        """Read from a pandas DataFrame; column names become the header."""
        try:
            import pandas as pd  # noqa: F811
        except ImportError as exc:
            raise ImportError(
                "pandas is required to use read_dataframe"
            ) from exc

        if not isinstance(df, pd.DataFrame):
            raise TypeError(f"Expected pandas DataFrame, got {type(df).__name__}")

        header = [str(c) for c in df.columns]
        body = df.astype(object).where(df.notna(), None).values.tolist()
        return [header] + body

    @classmethod
    def read_file(cls, path: Union[str, Path]) -> List[List[Any]]:
        """Dispatch on the file extension.

        Raises
        ------
        ValueError
            For extensions outside ``ALLOWED_EXTENSIONS``.
        """
        path = Path(path)
        ext = path.suffix.lower().lstrip(".")
        if ext not in ALLOWED_EXTENSIONS:
            raise ValueError(
                f"Unsupported file type {path.suffix!r}. "
                f"Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
            )
        if ext in ("csv", "txt"):
            return cls.read_csv(path)
        if ext == "json":
            return cls.read_json(path)
        return cls.read_excel(path)

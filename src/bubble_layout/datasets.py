"""
Item datasets for the bubble chart.

An Item is one purchased product with two metrics: how often it was bought
(frequency) and how much was spent on it in total (spending). Items arrive as
plain records, as tables (CSV/Excel) or as a receipts JSON export whose line
items are aggregated per product.
"""

import json
import math
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Mapping, Union

import pandas as pd

from .exceptions import InvalidItemDataError, UnknownMetricModeError, UnsupportedFileTypeError
from .utils.logger.logger import Logger


class MetricMode(Enum):
    """Which metric drives bubble size."""
    FREQUENCY = "frequency"
    SPENDING = "spending"

    @classmethod
    def parse(cls, value: Union[str, "MetricMode"]) -> "MetricMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise UnknownMetricModeError(f"Unknown metric mode: {value!r}")


@dataclass(frozen=True)
class Item:
    """
    One purchased item.

    Attributes:
        name: Unique (per dataset) item name.
        frequency_count: Number of purchases (>= 0).
        total_spent: Total amount spent (>= 0).
    """
    name: str
    frequency_count: float
    total_spent: float

    def metric(self, mode: MetricMode) -> float:
        """Raw metric value for the given mode."""
        if mode is MetricMode.FREQUENCY:
            return float(self.frequency_count)
        return float(self.total_spent)

    @property
    def average_price(self) -> float:
        """Average spent per purchase (0 when never purchased)."""
        if self.frequency_count <= 0:
            return 0.0
        return self.total_spent / self.frequency_count


SAMPLE_ITEMS: List[Item] = [
    Item("milk", 15, 65.50),
    Item("eggs", 12, 48.00),
    Item("bread", 10, 35.00),
    Item("chicken", 8, 95.20),
    Item("apples", 9, 42.30),
    Item("carrots", 7, 28.70),
    Item("tomatoes", 11, 55.80),
    Item("lettuce", 6, 24.50),
    Item("potatoes", 5, 18.90),
    Item("onions", 4, 15.60),
    Item("coffee", 13, 78.00),
    Item("pasta", 6, 32.40),
    Item("rice", 4, 22.80),
    Item("bananas", 8, 35.20),
    Item("beer", 3, 45.60),
]

_FREQUENCY_KEYS = ("frequencyCount", "frequency", "frequency_count")
_SPENT_KEYS = ("totalSpent", "total_spent")


def _pick(record: Mapping, keys, name: str, label: str) -> float:
    for key in keys:
        if key in record and record[key] is not None:
            value = record[key]
            break
    else:
        raise InvalidItemDataError(f"Item {name!r} is missing {label} (expected one of {list(keys)})")
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise InvalidItemDataError(f"Item {name!r} has non-numeric {label}: {value!r}")
    if not math.isfinite(value) or value < 0:
        raise InvalidItemDataError(f"Item {name!r} has invalid {label}: {value!r}")
    return value


def items_from_records(records: Iterable[Union[Item, Mapping]]) -> List[Item]:
    """
    Validate and convert records into Items.

    Args:
        records: Items or mappings with a name, a frequency key and a spent key.

    Returns:
        List of Items in input order.

    Raises:
        InvalidItemDataError: Missing/negative/non-finite metric or duplicate name.
    """
    items: List[Item] = []
    seen = set()
    for record in records:
        if isinstance(record, Item):
            record = {
                "name": record.name,
                "frequency_count": record.frequency_count,
                "total_spent": record.total_spent,
            }
        name = record.get("name")
        if name is None or (isinstance(name, float) and math.isnan(name)) or str(name).strip() == "":
            raise InvalidItemDataError("Item record without a name")
        name = str(name)
        if name in seen:
            raise InvalidItemDataError(f"Duplicate item name: {name!r}")
        seen.add(name)
        items.append(Item(
            name=name,
            frequency_count=_pick(record, _FREQUENCY_KEYS, name, "frequency"),
            total_spent=_pick(record, _SPENT_KEYS, name, "total spent"),
        ))
    return items


def aggregate_receipt_items(receipts: Mapping[str, Mapping]) -> List[Item]:
    """
    Aggregate receipt line items into per-item purchase counts and spend.

    Each receipt holds an ``Items`` list whose entries carry ``CasualName`` or
    ``ProductName`` and ``Price``. Entries without a name count as "Unknown".

    Args:
        receipts: Mapping of receipt key to receipt info.

    Returns:
        Items sorted by descending frequency, then name.
    """
    rows = []
    for receipt in receipts.values():
        for line in receipt.get("Items") or []:
            name = line.get("CasualName") or line.get("ProductName") or "Unknown"
            rows.append({"name": name, "price": line.get("Price") or 0.0})

    if not rows:
        return []

    df = pd.DataFrame(rows)
    df["price"] = pd.to_numeric(df["price"], errors="coerce").fillna(0.0).clip(lower=0.0)
    stats = (
        df.groupby("name", sort=False)
        .agg(frequency_count=("price", "size"), total_spent=("price", "sum"))
        .reset_index()
        .sort_values(["frequency_count", "name"], ascending=[False, True])
    )
    return [
        Item(str(row.name), float(row.frequency_count), round(float(row.total_spent), 2))
        for row in stats.itertuples(index=False)
    ]


def load_items(path: Union[str, Path]) -> List[Item]:
    """
    Load items from a dataset file.

    Supported:
        - .csv / .xlsx: table with name, frequency and total spent columns.
        - .json: list of item records, or a receipts export (mapping).

    Raises:
        UnsupportedFileTypeError: For any other suffix.
        InvalidItemDataError: If the content does not validate.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    Logger.log(f"start load_items({path})")

    if suffix == ".csv":
        records = pd.read_csv(path).to_dict(orient="records")
        items = items_from_records(records)
    elif suffix in (".xlsx", ".xls"):
        records = pd.read_excel(path).to_dict(orient="records")
        items = items_from_records(records)
    elif suffix == ".json":
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        if isinstance(data, list):
            items = items_from_records(data)
        elif isinstance(data, dict):
            items = aggregate_receipt_items(data)
        else:
            raise InvalidItemDataError("JSON dataset must be a list of items or a mapping of receipts")
    else:
        raise UnsupportedFileTypeError(f"File type not supported: {suffix or path.name}")

    Logger.log(f"end load_items: {len(items)} items")
    return items

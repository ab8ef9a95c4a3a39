# scan_hub/services/export.py
from __future__ import annotations
from typing import List

import pandas as pd

from scan_hub.models import ParseType, ScanList, plain_decimal

TOTAL_LABEL = "TOTAL"


def summary_frame(scan_list: ScanList, parse_type: ParseType) -> pd.DataFrame:
    """One row per aggregate (newest first) plus a closing total row; sums as plain decimal strings."""
    sum_fields = parse_type.sum_fields
    columns: List[str] = ["group_key", "product", "count"] + [f.title for f in sum_fields]

    rows = []
    for agg in scan_list.aggregates:
        row = [agg.group_key, agg.product_name or "", agg.count]
        row += [plain_decimal(agg.sum_values[f.id]) if f.id in agg.sum_values else "0" for f in sum_fields]
        rows.append(row)

    total = [TOTAL_LABEL, "", scan_list.total_count]
    total += [plain_decimal(scan_list.total_sum_values[f.id]) if f.id in scan_list.total_sum_values else "0"
              for f in sum_fields]
    rows.append(total)
    return pd.DataFrame(rows, columns=columns)


def summary_csv(scan_list: ScanList, parse_type: ParseType) -> bytes:
    df = summary_frame(scan_list, parse_type)
    return df.to_csv(index=False).encode("utf-8-sig")

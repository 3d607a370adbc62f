# domain/ranking.py
import re
from typing import Dict, List, Optional

_leading_int = re.compile(r"^\s*([+-]?\d+)")

def parse_numeric_query(query: str) -> Optional[int]:
    """Leading integer of the query, the way a form field would read it ("42abc" -> 42)."""
    m = _leading_int.match(query or "")
    return int(m.group(1)) if m else None

def _is_exact_id(hit: Dict, numeric_query: Optional[int]) -> bool:
    if numeric_query is None or hit.get("type") != "data":
        return False
    data_id = hit.get("dataId")
    return isinstance(data_id, int) and not isinstance(data_id, bool) and data_id == numeric_query

def categorize_results(hits: List[Dict], query: str) -> Dict[str, List[Dict]]:
    """Split ranked hits into topMatches / tables / relevantData.

    The best hit and any data row whose id equals the numeric query are top
    matches. Top matches are removed from the other buckets and empty
    buckets are left out of the result.
    """
    numeric_query = parse_numeric_query(query)
    top: List[Dict] = []
    tables: List[Dict] = []
    data: List[Dict] = []

    for i, hit in enumerate(hits):
        if i == 0 or _is_exact_id(hit, numeric_query):
            top.append(hit)
        if hit.get("type") == "table":
            tables.append(hit)
        elif hit.get("type") == "data":
            data.append(hit)

    top_ids = {h["id"] for h in top}
    buckets = {
        "topMatches": top,
        "tables": [h for h in tables if h["id"] not in top_ids],
        "relevantData": [h for h in data if h["id"] not in top_ids],
    }
    return {k: v for k, v in buckets.items() if v}

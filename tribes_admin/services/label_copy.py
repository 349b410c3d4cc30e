"""
Controlled label copy.

Format:
    © {year} {Publisher1 (PRO)} / {Publisher2 (PRO)} (adm. at TribesRightsManagement.com). All rights reserved.

Only tribes-administered publishers are listed, once per name, in the order
they first appear.
"""
from typing import Iterable, Mapping, Optional

MISSING_YEAR = "—"
ADMIN_SUFFIX = "(adm. at TribesRightsManagement.com). All rights reserved."


def _format_publisher(name: str, pro: Optional[str]) -> str:
    return f"{name} ({pro})" if pro else name


def generate_label_copy(year, publishers: Iterable[Mapping]) -> Optional[str]:
    """
    Build label copy from publisher mappings with name, pro and
    tribes_administered keys. Returns None if none is tribes-administered.
    """
    seen = []
    parts = []
    for pub in publishers:
        if not pub.get("tribes_administered"):
            continue
        name = (pub.get("name") or "").strip()
        if not name or name in seen:
            continue
        seen.append(name)
        parts.append(_format_publisher(name, pub.get("pro")))

    if not parts:
        return None

    year_str = str(year).strip() if year not in (None, "") else MISSING_YEAR
    return f"© {year_str} {' / '.join(parts)} {ADMIN_SUFFIX}"

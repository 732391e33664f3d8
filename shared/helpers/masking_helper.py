from typing import Any, Dict, Optional

# Attribute names that never leave the store in clear text
SENSITIVE_FIELDS = frozenset({"tax_id", "id_license_number"})

MASK_PREFIX = "****"


def mask_sensitive(value: Optional[str]) -> Optional[str]:
    """Keep only the last 4 characters: "123456789" -> "****6789"."""
    if value is None or value == "":
        return None
    if isinstance(value, str) and value.startswith(MASK_PREFIX):
        return value
    return f"{MASK_PREFIX}{str(value)[-4:]}"


def mask_field_changes(field_changes: Dict[str, Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    return {
        field: (
            {"old": mask_sensitive(change["old"]), "new": mask_sensitive(change["new"])}
            if field in SENSITIVE_FIELDS else change
        )
        for field, change in field_changes.items()
    }

"""DevCamper API: small helpers shared by the services."""

import re
import unicodedata
import uuid

from devcamper.exceptions import NotFoundError

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """
    URL-friendly form of a name.

    "Devworks Bootcamp" → "devworks-bootcamp"
    "ModernTech Bootcamp!" → "moderntech-bootcamp"
    """
    ascii_value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return _NON_ALNUM.sub("-", ascii_value.lower()).strip("-")


def parse_id(raw: str, resource: str = "Resource") -> uuid.UUID:
    # An id that cannot be parsed can never match a record
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        raise NotFoundError(resource=resource, resource_id=str(raw))

# =============================================================================
# core/filters.py  -  Filter-expression parser
# =============================================================================
#
# The dashboard API filters lists with query keys of the form
# "field(operator)", e.g.  GET /charts?description(like)=Sales
#
# Agents type the compact form and we translate:
#
#     "description(eq)=Marketing&id(gt)=10"
#         -> {"description(eq)": "Marketing", "id(gt)": "10"}
#
# PARSING IS PERMISSIVE ON PURPOSE:
#   A segment that doesn't match is dropped, not reported.  The operator is
#   not checked against KNOWN_OPERATORS either; the API rejects bad ones with
#   a 400, which reaches the agent as an ApiError.
#
# Values run to the end of their segment, so a value cannot contain "&".
# =============================================================================

import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)

KNOWN_OPERATORS = ("eq", "ne", "gt", "lt", "ge", "le", "like", "nlike")

_SEGMENT = re.compile(r"^([A-Za-z]+)\(([A-Za-z]+)\)=(.+)$")


def parse_filters(text: Optional[str]) -> dict[str, str]:
    """Translate a filter expression into query parameters.

    Args:
        text: Expression like "description(eq)=Marketing", optionally chained
              with "&".  None or "" yields an empty mapping.

    Returns:
        A dict mapping "field(operator)" to the raw value string.
    """
    params: dict[str, str] = {}
    if not text:
        return params

    for segment in text.split("&"):
        match = _SEGMENT.match(segment.strip())
        if match is None:
            logger.debug("Ignoring unparseable filter segment %r", segment)
            continue
        field, operator, value = match.groups()
        params[f"{field}({operator})"] = value

    return params

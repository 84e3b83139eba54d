"""
Parameter validation for filter_contigs.
Parameters are checked before any file or remote call is touched.
"""

from dataclasses import replace
from numbers import Integral

from src.filter_contigs.core.errors import InvalidParameter
from src.filter_contigs.core.models import FilterRequest

def _not_set(name: str) -> InvalidParameter:
    return InvalidParameter(name, f"Parameter {name} is not set in input arguments")

def _as_int(value) -> int:
    """
    Coerce min_length to an int. Integral strings are accepted, bools and
    fractional numbers are not.

    :param value: Raw min_length value from the request.
    :return: The integer value.
    """
    if isinstance(value, bool):
        raise InvalidParameter("min_length", f"min_length parameter must be an integer ({value!r})")
    if isinstance(value, Integral):
        return int(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise InvalidParameter("min_length", f"min_length parameter must be an integer ({value!r})")

def validate_request(request: FilterRequest) -> FilterRequest:
    """
    Check a FilterRequest. The first failing rule wins.

    :param request: Request as built from the caller's params.
    :return: The request with min_length normalised to an int.
    :raises InvalidParameter: naming the offending field.
    """
    if not request.workspace_name:
        raise _not_set("workspace_name")
    if not request.assembly_input_ref:
        raise _not_set("assembly_input_ref")
    if request.min_length is None:
        raise _not_set("min_length")

    min_length = _as_int(request.min_length)
    if min_length < 0:
        raise InvalidParameter(
            "min_length", f"min_length parameter cannot be negative ({min_length})"
        )
    return replace(request, min_length=min_length)

"""
Maps WebDAV methods to the CRUD permissions they need.
"""

from typing import List, Optional, Tuple

from webdav_gateway.core.exceptions.base import MethodNotAllowedError

ALLOWED_METHODS = (
    "OPTIONS",
    "GET", "HEAD", "POST", "PUT", "DELETE",
    "PROPFIND", "PROPPATCH",
    "MKCOL", "COPY", "MOVE",
    "LOCK", "UNLOCK",
)

_SINGLE_PERMISSION = {
    "OPTIONS": "R",
    "GET": "R",
    "HEAD": "R",
    "PROPFIND": "R",
    "MKCOL": "C",
    "POST": "C",
    "PROPPATCH": "U",
    "LOCK": "U",
    "UNLOCK": "U",
    "DELETE": "D",
}

# method -> (permission on source, permission on destination)
_TRANSFER_PERMISSIONS = {
    "COPY": ("R", "C"),
    "MOVE": ("D", "C"),
}


def required_permissions(
    method: str,
    path: str,
    destination: Optional[str] = None,
    resource_exists: bool = True
) -> List[Tuple[str, str]]:
    """
    Return the (permission, path) pairs a request must satisfy.

    PUT needs Create for a new resource and Update for an existing one.
    COPY and MOVE also need Create on the destination when one is given.
    """
    method = method.upper()

    if method == "PUT":
        return [("U" if resource_exists else "C", path)]

    if method in _SINGLE_PERMISSION:
        return [(_SINGLE_PERMISSION[method], path)]

    if method in _TRANSFER_PERMISSIONS:
        source_permission, destination_permission = _TRANSFER_PERMISSIONS[method]
        checks = [(source_permission, path)]
        if destination:
            checks.append((destination_permission, destination))
        return checks

    raise MethodNotAllowedError(details={"method": method, "allowed": list(ALLOWED_METHODS)})

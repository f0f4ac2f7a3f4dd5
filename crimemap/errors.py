"""Error taxonomy for the crime map pipeline."""


class CrimeMapError(Exception):
    """Base class for pipeline failures."""

    error_code = "CRIMEMAP_ERROR"


class DataNotFoundError(CrimeMapError):
    """Raised when an input path does not resolve to a readable dataset."""

    error_code = "DATA_NOT_FOUND"

    def __init__(self, path, reason: str = "no such file or directory"):
        self.path = path
        super().__init__(f"{path}: {reason}")


class FormatError(CrimeMapError):
    """Raised when an input cannot be parsed into geometries/attributes."""

    error_code = "FORMAT_ERROR"

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class TypeCoercionError(CrimeMapError):
    """Raised when field values cannot be reparsed as the target type."""

    error_code = "TYPE_COERCION_ERROR"

    def __init__(self, field: str, target: str, indices: list[int]):
        self.field = field
        self.target = target
        self.indices = indices
        shown = indices[:20]
        more = f" (+{len(indices) - len(shown)} more)" if len(indices) > len(shown) else ""
        super().__init__(
            f"field {field!r}: {len(indices)} value(s) not parseable as {target} "
            f"at record indices {shown}{more}"
        )


class JoinKeyCollisionError(CrimeMapError):
    """Raised when duplicate join keys point at conflicting attribute records."""

    error_code = "JOIN_KEY_COLLISION"

    def __init__(self, field: str, keys: list):
        self.field = field
        self.keys = keys
        super().__init__(f"ambiguous join target: {field!r} values {keys} map to different records")


class ProjectionError(CrimeMapError):
    """Raised when a CRS is missing or cannot be parsed."""

    error_code = "PROJECTION_ERROR"


class CRSMismatchError(CrimeMapError):
    """Raised when two datasets are compared without sharing a CRS."""

    error_code = "CRS_MISMATCH"

    def __init__(self, left, right):
        self.left = left
        self.right = right
        super().__init__(f"CRS mismatch: {left} vs {right}; reproject before comparing")

"""Exception classes for the imcdatasets core module."""


class DatasetError(Exception):
    """Base exception for all dataset preparation errors."""


class AcquisitionError(DatasetError):
    """Raised when a source file cannot be downloaded, extracted or found."""

    def __init__(self, source: str | None = None, reason: str | None = None) -> None:
        if source and reason:
            msg = f"Could not acquire {source}: {reason}"
        elif source:
            msg = f"Could not acquire {source}"
        else:
            msg = "Acquisition failed"
        super().__init__(msg)
        self.source = source
        self.reason = reason


class JoinCardinalityError(DatasetError):
    """Raised when a key expected to be unique or matched is not."""


class DuplicateIdentifierError(JoinCardinalityError):
    """Raised when an identifier column contains duplicated values."""

    def __init__(self, column: str | None = None, values: list[str] | None = None) -> None:
        values = list(values or [])
        if column and values:
            shown = ", ".join(str(v) for v in values[:5])
            more = f" (+{len(values) - 5} more)" if len(values) > 5 else ""
            msg = f"Duplicate {column} values: {shown}{more}"
        elif column:
            msg = f"Duplicate {column} values"
        else:
            msg = "Duplicate identifiers"
        super().__init__(msg)
        self.column = column
        self.values = values


class ChannelMassMismatchError(JoinCardinalityError):
    """Raised when a channel-mass entry does not match exactly one panel row."""

    def __init__(self, missing: list[str] | None = None, ambiguous: list[str] | None = None) -> None:
        self.missing = list(missing or [])
        self.ambiguous = list(ambiguous or [])
        parts = []
        if self.missing:
            parts.append(f"no panel row for {', '.join(self.missing)}")
        if self.ambiguous:
            parts.append(f"several panel rows for {', '.join(self.ambiguous)}")
        detail = "; ".join(parts) if parts else "lookup does not match panel"
        super().__init__(f"Channel-mass lookup mismatch: {detail}")


class NameMismatchError(JoinCardinalityError):
    """Raised when two name sequences that must be aligned are not."""

    def __init__(
        self,
        expected: list[str] | None = None,
        actual: list[str] | None = None,
        what: str = "Image names",
    ) -> None:
        self.expected = list(expected or [])
        self.actual = list(actual or [])
        self.what = what
        first = next(
            (
                (i, e, a)
                for i, (e, a) in enumerate(zip(self.expected, self.actual))
                if e != a
            ),
            None,
        )
        if first is not None:
            i, e, a = first
            msg = f"{what} differ at position {i}: expected {e!r}, got {a!r}"
        else:
            msg = (
                f"{what} count mismatch: expected {len(self.expected)}, "
                f"got {len(self.actual)}"
            )
        super().__init__(msg)


class ShapeMismatchError(DatasetError):
    """Raised when an array shape disagrees with its metadata."""

    def __init__(self, what: str, expected: int, actual: int) -> None:
        super().__init__(f"{what}: expected {expected}, got {actual}")
        self.what = what
        self.expected = expected
        self.actual = actual


class StageError(DatasetError):
    """Raised by the pipeline when a stage or its validation fails."""

    def __init__(self, stage: str, cause: BaseException | None = None) -> None:
        msg = f"Stage '{stage}' failed"
        if cause is not None:
            msg = f"{msg}: {cause}"
        super().__init__(msg)
        self.stage = stage
        self.cause = cause

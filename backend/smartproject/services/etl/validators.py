from dataclasses import dataclass

from pydantic import ValidationError as SchemaError


@dataclass
class ValidationError:
    message: str
    row_num: int | None = None
    column: str | None = None

    def __str__(self) -> str:
        if self.row_num is None:
            return self.message
        return f"Row {self.row_num}: {self.message}"


def schema_errors(exc: SchemaError, row_num: int) -> list[ValidationError]:
    """One entry per failed column, keyed by the CSV header name."""
    out = []
    for err in exc.errors():
        column = ".".join(str(p) for p in err.get("loc", ()))
        msg = err.get("msg", "invalid value")
        out.append(ValidationError(f"{column}: {msg}" if column else msg, row_num=row_num, column=column or None))
    return out

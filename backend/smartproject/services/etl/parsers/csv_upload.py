import pandas as pd
from fastapi import UploadFile

from smartproject.core.errors import RuleViolation


def read_csv_upload(file: UploadFile, required: tuple[str, ...] = ()) -> list[dict]:
    """Read an uploaded CSV into row dicts keyed by the (stripped) header names.

    Every cell is kept as a string; blank cells come through as ``""`` and are
    turned into ``None`` by the row schemas.
    """
    name = (file.filename or "").lower()
    if not name.endswith(".csv"):
        raise RuleViolation("Only .csv files can be imported")
    try:
        df = pd.read_csv(file.file, dtype=str, keep_default_na=False, skipinitialspace=True)
    except pd.errors.EmptyDataError:
        raise RuleViolation("The CSV file is empty")
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise RuleViolation("Could not parse the CSV file", errors=[str(e)])

    df.columns = [str(c).strip() for c in df.columns]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise RuleViolation(f"Missing required columns: {', '.join(missing)}")

    df = df.apply(lambda col: col.str.strip())
    # drop rows that are blank in every column
    df = df[(df != "").any(axis=1)]
    return df.to_dict(orient="records")

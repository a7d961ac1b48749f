import typing

import pandas as pd


def _cell_to_str(value) -> str:
    # Excel hands back numbers for cells like "12"; keep integers integral
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def load_template_matrix(workbook_path: str, sheet_name: typing.Union[int, str] = 0) -> list[list[str]]:
    """
    Read one worksheet of a curation template as a matrix of strings:
      - no header inference (the two header rows are data here)
      - no NA coercion ("na" and "NA" stay strings, blank cells become "")
      - every row padded to the same width
    """
    df = pd.read_excel(
        workbook_path,
        sheet_name=sheet_name,
        header=None,
        dtype=object,
        keep_default_na=False,
        na_values=[],
        engine="openpyxl",
    )
    matrix = [[_cell_to_str(v) for v in row] for row in df.itertuples(index=False, name=None)]
    width = max((len(r) for r in matrix), default=0)
    return [r + [""] * (width - len(r)) for r in matrix]


def write_template_matrix(matrix: typing.Sequence[typing.Sequence[str]], workbook_path: str) -> None:
    """Write a string matrix to the first sheet of a new workbook, cell for cell."""
    df = pd.DataFrame([list(r) for r in matrix])
    df.to_excel(workbook_path, header=False, index=False, engine="openpyxl")

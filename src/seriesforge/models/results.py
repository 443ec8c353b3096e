"""The dense result table a report run produces.

one row per dimension value, one column per day. rows only ever get
appended - the result managers decide what goes in them, this model just
holds them and knows how to print itself.
"""

import csv
from typing import TextIO

from pydantic import BaseModel, Field

from seriesforge.dates import list_of_dates
from seriesforge.models.query import ReportQuery

SAMPLED_DISCLAIMER = "These results are based on sampled data"


class Results(BaseModel):
    """Row labels x dates matrix of metric values."""

    dimension_name: str = ""
    column_dates: list[str] = Field(default_factory=list)  # YYYY-MM-DD, ascending
    dimension_values: list[str] = Field(default_factory=list)  # as discovered
    row_labels: list[str] = Field(default_factory=list)
    rows: list[list[float]] = Field(default_factory=list)
    is_sampled: bool = False

    def init_table(self, query: ReportQuery, dimension_values: list[str]) -> "Results":
        """Reset the table for a query's date range and discovered values."""
        self.dimension_name = query.dimension_name
        self.column_dates = list_of_dates(query.start_date, query.end_date)
        self.dimension_values = list(dimension_values)
        self.row_labels = []
        self.rows = []
        self.is_sampled = False
        return self

    @property
    def num_rows(self) -> int:
        """Number of rows we expect, i.e. the discovered dimension values."""
        return len(self.dimension_values)

    @property
    def num_cols(self) -> int:
        return len(self.column_dates)

    def add_row(self, row: list[float], label: str | None = None) -> None:
        """Append a row.

        without a label the row is matched to the discovered values by
        position - the first unlabelled row gets the first value, and so on.
        """
        if label is None:
            label = self.dimension_values[len(self.rows)]
        self.row_labels.append(label)
        self.rows.append(row)

    def mark_sampled(self, sampled: bool) -> None:
        """Flag the table as sampled. once set it stays set."""
        self.is_sampled = self.is_sampled or sampled

    def row_total(self, index: int) -> float:
        return sum(self.rows[index])

    def to_records(self) -> list[dict]:
        """Rows as dicts keyed by date, handy for json output."""
        records = []
        for i, (label, row) in enumerate(zip(self.row_labels, self.rows)):
            record: dict = {self.dimension_name or "dimension": label}
            record.update(zip(self.column_dates, row))
            record["Total"] = self.row_total(i)
            records.append(record)
        return records

    def output_delimited(self, stream: TextIO, delimiter: str = ",") -> None:
        """Write the table as delimited text, one line per row plus a total.

        using the csv module so landing page paths with commas in them don't
        shift every column to the right.
        """
        if self.is_sampled:
            stream.write(f"{SAMPLED_DISCLAIMER}\n")

        writer = csv.writer(stream, delimiter=delimiter, lineterminator="\n")
        writer.writerow([self.dimension_name, *self.column_dates, "Total"])
        for i, (label, row) in enumerate(zip(self.row_labels, self.rows)):
            writer.writerow([label, *(str(v) for v in row), str(self.row_total(i))])

"""Basic usage example for SeriesForge."""

import io
import sys
from datetime import date
from pathlib import Path

# Add parent to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent / "data"))

from generate_sample_data import generate_sample_data

from seriesforge.config import Settings
from seriesforge.models.query import ReportQuery
from seriesforge.runner import ReportRunner
from seriesforge.transport import DuckDBReportBackend


def main():
    """Run the same report with both strategies against local sample data."""
    data_dir = Path(__file__).parent.parent / "data"
    generate_sample_data(data_dir).close()

    backend = DuckDBReportBackend("sessions")
    backend.load_parquet(data_dir / "sessions.parquet")

    query = ReportQuery(
        ids="ga:12345",
        metrics=["ga:visits"],
        dimensions=["ga:landingPagePath"],
        sort=["-ga:visits"],
        start_date=date(2010, 1, 1),
        end_date=date(2010, 1, 14),
    )
    # a tiny url budget so the group strategy has to split the values up
    settings = Settings(max_url_length=420)

    print("=" * 60)
    print("SeriesForge Landing Page Demo")
    print("=" * 60)

    # 1. What the planner would send
    runner = ReportRunner(backend, "group", settings)
    values = runner.discover_dimension_values(query)
    print(f"\n1. Discovered {len(values)} landing pages")

    plan = runner.plan(query, values)
    print(f"\n2. Group plan: {len(plan)} follow-up queries")
    for planned in plan:
        print(f"   {len(planned.encoded_url()):4d} chars  {planned.filters}")

    # 3. Run it both ways - the tables must match
    grouped = runner.run(query)
    individual = ReportRunner(backend, "individual", settings).run(query)
    print(f"\n3. Group run: {len(grouped.rows)} rows x {grouped.num_cols} days")
    print(f"   Individual run: {len(individual.rows)} rows x {individual.num_cols} days")

    by_label = dict(zip(individual.row_labels, individual.rows))
    same = all(by_label[label] == row for label, row in zip(grouped.row_labels, grouped.rows))
    print(f"   Same series either way: {same}")

    # 4. Delimited output
    print("\n4. CSV output:")
    buf = io.StringIO()
    grouped.output_delimited(buf)
    for line in buf.getvalue().splitlines():
        print(f"   {line}")

    print("\n" + "=" * 60)
    print("Demo complete!")
    print("=" * 60)

    backend.close()


if __name__ == "__main__":
    main()

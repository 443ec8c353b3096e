"""Generate sparse sample traffic data for SeriesForge.

one row per (source, medium, landing page, day) with a visit count. quiet
days are simply missing, the same way the reporting api leaves them out,
so the sample exercises the zero-filling rather than hiding it.
"""

import random
from datetime import date, timedelta
from pathlib import Path

import duckdb

SOURCES = {
    "google": "organic",
    "bing": "organic",
    "newsletter": "email",
    "partner.example.com": "referral",
    "adwords": "cpc",
    "twitter.com": "social",
    "(direct)": "(none)",
}
# a few paths with reserved filter characters in them on purpose
LANDING_PAGES = [
    "/",
    "/product/toys",
    "/product/books",
    "/search?q=lego,duplo",
    "/blog/2010/01/a;b",
    "/about",
]


def generate_sample_data(
    output_dir: Path | None = None,
    start: date = date(2010, 1, 1),
    days: int = 31,
) -> duckdb.DuckDBPyConnection:
    """Generate the sessions table.

    Args:
        output_dir: Directory to save sessions.csv/.parquet, or None for in-memory only.
        start: First day of data.
        days: Number of days to generate.

    Returns:
        DuckDB connection with a loaded `sessions` table.
    """
    random.seed(42)  # reproducible data
    rows = generate_sessions(start, days)

    conn = duckdb.connect(":memory:")
    conn.execute("""
        CREATE TABLE sessions (
            source VARCHAR,
            medium VARCHAR,
            landingPagePath VARCHAR,
            date DATE,
            visits INTEGER
        )
    """)
    conn.executemany("INSERT INTO sessions VALUES (?, ?, ?, ?, ?)", rows)

    if output_dir:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        conn.execute(f"COPY sessions TO '{output_dir}/sessions.csv' (HEADER, DELIMITER ',')")
        conn.execute(f"COPY sessions TO '{output_dir}/sessions.parquet' (FORMAT PARQUET)")
        print(f"Data exported to {output_dir}")

    return conn


def generate_sessions(start: date, days: int) -> list[tuple]:
    """Visit counts per source/page/day, with gaps."""
    sessions = []
    for source, medium in SOURCES.items():
        # small sources are quiet most days, which is what makes the gaps
        activity = random.uniform(0.2, 0.95)
        for page in LANDING_PAGES:
            for offset in range(days):
                if random.random() > activity:
                    continue
                day = start + timedelta(days=offset)
                sessions.append((source, medium, page, day, random.randint(1, 40)))
    return sessions


if __name__ == "__main__":
    import sys

    output_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else Path(__file__).parent
    conn = generate_sample_data(output_dir)

    result = conn.execute("SELECT COUNT(*), SUM(visits) FROM sessions").fetchone()
    print(f"Generated {result[0]} rows ({result[1]} visits)")

    conn.close()

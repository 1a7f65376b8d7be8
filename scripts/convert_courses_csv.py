"""
Convert the Course Mapping Spreadsheet to the Catalog JSON

Reads the course-mapping sheet (exported as CSV, UTF-8) and writes the
category -> courses JSON loaded by the backend's course catalog.

Expected columns:
    שם יחידת הכוורת  (course name)
    תחום             (domain)
    תת תחום          (sub-domain)
    שפת הקורס        (course language)

Usage:
    python scripts/convert_courses_csv.py courses.csv
    python scripts/convert_courses_csv.py courses.csv --output data/courses.json
"""

import os
import sys
import csv
import json
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "teacher_course_advisor" / "src"))

from teacher_course_advisor.course_catalog import CourseCatalog, build_course_categories, NAME_COLUMN


def convert(csv_path: Path, output_path: Path) -> CourseCatalog:
    # utf-8-sig strips the BOM spreadsheet exports usually add
    with csv_path.open(encoding="utf-8-sig", newline="") as f:
        rows = list(csv.DictReader(f))

    print(f"📄 Total rows: {len(rows)}")
    if rows:
        print(f"   Columns: {', '.join(rows[0].keys())}")
        if NAME_COLUMN not in rows[0]:
            print(f"⚠️  Column '{NAME_COLUMN}' not found; no courses will be extracted")

    catalog = CourseCatalog(build_course_categories(rows))

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as f:
        json.dump(catalog.to_dict(), f, ensure_ascii=False, indent=2)

    print(f"\n✅ Wrote {catalog.total_courses} courses in {len(catalog.categories)} categories to {output_path}")
    for category, courses in catalog.categories.items():
        print(f"   • {category}: {len(courses)}")
    return catalog


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Convert the course mapping CSV to the catalog JSON")
    parser.add_argument("csv_path", help="Course mapping sheet exported as CSV")
    parser.add_argument(
        "--output",
        default=os.getenv("COURSES_DATA_PATH", str(project_root / "data" / "courses.json")),
        help="Output JSON path (default: data/courses.json)"
    )

    args = parser.parse_args()
    source = Path(args.csv_path)
    if not source.exists():
        print(f"❌ File not found: {source}")
        sys.exit(1)
    convert(source, Path(args.output))

"""
Course Catalog

Catalog of existing courses that teachers pick from ("which courses did you
already take?"). Built from the course-mapping spreadsheet and grouped by
"domain - sub-domain" category.
"""

import re
import json
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict, List, Optional, Iterable, Any

logger = logging.getLogger(__name__)

# Spreadsheet columns
NAME_COLUMN = "שם יחידת הכוורת"
DOMAIN_COLUMN = "תחום"
SUB_DOMAIN_COLUMN = "תת תחום"
LANGUAGE_COLUMN = "שפת הקורס"

GENERAL_DOMAIN = "כללי"
DEFAULT_COURSE_LANGUAGE = "עברית"
ALL = "הכל"
CATEGORY_SEPARATOR = " - "
MAX_ID_PREFIX = 50


@dataclass
class Course:
    id: str
    name: str
    category: str
    language: str = DEFAULT_COURSE_LANGUAGE


def make_course_id(name: str, index: int) -> str:
    """Slug from the course name (Hebrew, a-z, digits kept) plus the row index."""
    slug = re.sub(r"[^\u0590-\u05FFa-z0-9\s]", "", name.lower())
    slug = re.sub(r"\s+", "-", slug)
    return f"{slug[:MAX_ID_PREFIX]}-{index}"


def category_for(domain: Optional[str], sub_domain: Optional[str]) -> str:
    if sub_domain and domain and sub_domain != domain:
        return f"{domain}{CATEGORY_SEPARATOR}{sub_domain}"
    if sub_domain and not domain:
        return f"{GENERAL_DOMAIN}{CATEGORY_SEPARATOR}{sub_domain}"
    return domain or GENERAL_DOMAIN


def build_course_categories(rows: Iterable[Dict[str, Any]]) -> Dict[str, List[Course]]:
    """
    Group spreadsheet rows into categories.

    Rows without a course name are skipped but still consume an index, so
    ids stay tied to the source row.
    """
    categories: Dict[str, List[Course]] = {}
    for index, row in enumerate(rows):
        name = (row.get(NAME_COLUMN) or "").strip()
        if not name:
            continue
        category = category_for(
            (row.get(DOMAIN_COLUMN) or "").strip(),
            (row.get(SUB_DOMAIN_COLUMN) or "").strip()
        )
        categories.setdefault(category, []).append(Course(
            id=make_course_id(name, index),
            name=name,
            category=category,
            language=(row.get(LANGUAGE_COLUMN) or "").strip() or DEFAULT_COURSE_LANGUAGE,
        ))
    return categories


def split_category(category: str) -> tuple:
    parts = category.split(CATEGORY_SEPARATOR)
    domain = parts[0].strip()
    sub_domain = parts[1].strip() if len(parts) > 1 else ""
    return domain, sub_domain


class CourseCatalog:
    """Course categories with facet extraction and filtering."""

    def __init__(self, categories: Optional[Dict[str, List[Course]]] = None):
        self.categories: Dict[str, List[Course]] = categories or {}

    @classmethod
    def from_json_file(cls, path: str) -> "CourseCatalog":
        """
        Load a catalog written by ``scripts/convert_courses_csv.py``.

        A missing file yields an empty catalog.
        """
        file_path = Path(path)
        if not file_path.exists():
            logger.warning(f"⚠️ [CourseCatalog] Courses file not found: {path}")
            return cls()

        with file_path.open(encoding="utf-8") as f:
            raw = json.load(f)

        categories = {
            category: [Course(**course) for course in courses]
            for category, courses in raw.items()
        }
        logger.info(f"📚 [CourseCatalog] Loaded {sum(len(c) for c in categories.values())} courses "
                    f"in {len(categories)} categories")
        return cls(categories)

    def to_dict(self) -> Dict[str, List[Dict[str, str]]]:
        return {category: [asdict(c) for c in courses] for category, courses in self.categories.items()}

    @property
    def total_courses(self) -> int:
        return sum(len(courses) for courses in self.categories.values())

    def facets(self) -> Dict[str, List[str]]:
        """Sorted domains, sub-domains and languages, each led by the 'all' option."""
        domains, sub_domains, languages = set(), set(), set()
        for category, courses in self.categories.items():
            domain, sub_domain = split_category(category)
            domains.add(domain)
            if sub_domain:
                sub_domains.add(sub_domain)
            languages.update(c.language for c in courses if c.language)
        return {
            "domains": [ALL] + sorted(domains),
            "sub_domains": [ALL] + sorted(sub_domains),
            "languages": [ALL] + sorted(languages),
        }

    def filter(
        self,
        domain: str = ALL,
        sub_domain: str = ALL,
        language: str = ALL,
        search: str = ""
    ) -> Dict[str, List[Course]]:
        """Categories (catalog order) with the courses matching every filter; empty ones dropped."""
        term = search.strip()
        results: Dict[str, List[Course]] = {}
        for category, courses in self.categories.items():
            category_domain, category_sub = split_category(category)
            if domain != ALL and category_domain != domain:
                continue
            if sub_domain != ALL and category_sub != sub_domain:
                continue
            matching = [
                c for c in courses
                if (language == ALL or c.language == language) and (not term or term in c.name)
            ]
            if matching:
                results[category] = matching
        return results

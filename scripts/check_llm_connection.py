"""Minimal LLM connectivity check.

Checks that OPENAI_API_KEY is present, then sends the advisor's fixed check
prompt to each requested model and reports which ones answer.

Usage:
    python scripts/check_llm_connection.py
    python scripts/check_llm_connection.py --models gpt-4o-mini gpt-4o
"""

import os
import sys
import asyncio
from pathlib import Path

from dotenv import load_dotenv

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "teacher_course_advisor" / "src"))

from teacher_course_advisor.course_advisor import CourseAdvisor
from teacher_course_advisor.errors import ConfigurationError, CollaboratorError


async def check_model(model: str) -> bool:
    print(f"\nTesting model: {model}")
    try:
        answer = await CourseAdvisor(model=model).test_connection()
    except CollaboratorError as exc:
        print(f"❌ {model} failed ({exc.kind.value}): {exc}")
        print(f"   User would see: {exc.user_message}")
        return False
    print(f"✅ {model} works")
    print(f"   Response: {answer[:50]}...")
    return True


async def main(models) -> int:
    load_dotenv(project_root / ".env")
    key = os.getenv("OPENAI_API_KEY")
    print("OPENAI_API_KEY (prefix):", key[:10] + "..." if key else None)

    try:
        CourseAdvisor()
    except ConfigurationError as exc:
        print("Missing configuration:", exc)
        return 1

    results = {model: await check_model(model) for model in models}

    working = [model for model, ok in results.items() if ok]
    print("\n" + "=" * 50)
    print(f"Working models: {', '.join(working) if working else 'none'}")
    return 0 if working else 1


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Check that the configured LLM answers")
    parser.add_argument(
        "--models",
        nargs="+",
        default=[os.getenv("OPENAI_MODEL", "gpt-4o-mini")],
        help="Models to check (default: OPENAI_MODEL or gpt-4o-mini)"
    )

    args = parser.parse_args()
    raise SystemExit(asyncio.run(main(args.models)))

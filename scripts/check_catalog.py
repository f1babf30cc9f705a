"""
Проверка каталога тестов перед деплоем.

Использование:
    python scripts/check_catalog.py [path/to/tests_config.json]

Без аргумента проверяется встроенный каталог.
"""
import sys

from diagnosis_bot.core.exceptions import ConfigurationError
from diagnosis_bot.engine import load_catalog


def describe_catalog(path: str | None) -> bool:
    print(f"🔍 Checking catalog {path or '(bundled)'}...")
    try:
        catalog = load_catalog(path)
    except ConfigurationError as e:
        print(f"❌ {e}")
        return False

    for test in catalog:
        low, high = test.score_domain()
        print(f"\n✅ /{test.command} — {test.name}")
        print(f"   Questions: {test.total_questions}")
        for question in test.questions:
            print(f"   • {question.text} [{question.parameter_name}] {question.min_value}-{question.max_value}")
        print(f"   Achievable totals: {low}-{high}")
        for score_range in test.evaluation:
            print(f"   {score_range.min_score}-{score_range.max_score} → {score_range.diagnosis}")

    return True


if __name__ == "__main__":
    catalog_path = sys.argv[1] if len(sys.argv) > 1 else None

    if describe_catalog(catalog_path):
        print("\n✨ Catalog is valid.")
        sys.exit(0)
    else:
        print("\n💥 Catalog check FAILED.")
        sys.exit(1)

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from catalog import Catalog
from config import configure_logging
from db import db_session
from engine import build_document_checklist, build_eligibility_snapshot, build_timeline_plan, search_programs


def scenario_inputs() -> list[dict[str, Any]]:
    return [
        {
            "name": "Syrian high school graduate, CS in English, Istanbul",
            "profile": {
                "nationality": "Syrian",
                "current_education_level": "high_school",
                "desired_degree_level": "bachelor",
                "major_keywords": ["cs"],
                "preferred_language": "en",
                "city_preference": "Istanbul",
                "budget_max": 8000,
                "gpa": 82,
                "english_score": {"type": "ielts", "score": 6.5},
            },
        },
        {
            "name": "Egyptian bachelor graduate, computer engineering master, no scores yet",
            "profile": {
                "nationality": "Egyptian",
                "current_education_level": "bachelor",
                "desired_degree_level": "master",
                "major_keywords": ["ce"],
            },
        },
        {
            "name": "Jordanian high school student aiming at a master program",
            "profile": {
                "nationality": "Jordanian",
                "current_education_level": "high_school",
                "desired_degree_level": "master",
                "major_keywords": ["business"],
            },
        },
        {
            "name": "Saudi applicant, architecture in Turkish, low budget",
            "profile": {
                "nationality": "Saudi",
                "current_education_level": "high_school",
                "desired_degree_level": "bachelor",
                "major_keywords": ["architecture"],
                "preferred_language": "tr",
                "budget_max": 3000,
                "turkish_score": {"type": "tomer", "level": "B1"},
                "has_portfolio": False,
            },
        },
        {
            "name": "Moroccan applicant, nursing in Ankara, nothing matches",
            "profile": {
                "nationality": "Moroccan",
                "current_education_level": "high_school",
                "desired_degree_level": "bachelor",
                "major_keywords": ["nursing"],
                "city_preference": "Ankara",
                "budget_max": 2000,
            },
        },
    ]


def search_profile(profile: dict[str, Any]) -> dict[str, Any]:
    keys = (
        "nationality",
        "current_education_level",
        "desired_degree_level",
        "major_keywords",
        "preferred_language",
        "city_preference",
        "budget_min",
        "budget_max",
    )
    return {key: profile[key] for key in keys if key in profile}


def main() -> None:
    configure_logging()
    with db_session() as session:
        catalog = Catalog(session)
        for scenario in scenario_inputs():
            profile = scenario["profile"]
            print(f"\n=== {scenario['name']} ===")

            search = search_programs(catalog, {"profile": search_profile(profile)})
            if not search.success:
                print(f"Search failed: {search.error.code}")
                continue
            if not search.data.programs:
                print("Outcome: NO MATCH")
                for suggestion in search.data.suggestions:
                    print(f"- {suggestion.en}")
                continue

            program = search.data.programs[0]
            print(f"Top match: {program.program_name_en} @ {program.university_name_en} ({program.city})")
            if search.data.near_equivalents_used:
                print("Near equivalents used:", ", ".join(search.data.near_equivalents_used))

            payload = {"profile": profile, "program_id": program.id}
            eligibility = build_eligibility_snapshot(catalog, payload)
            if eligibility.success:
                print(f"Eligibility: {eligibility.data.status}")
                if eligibility.data.missing_fields:
                    print("Missing:", ", ".join(eligibility.data.missing_fields))

            checklist = build_document_checklist(catalog, payload)
            if checklist.success:
                print(f"Documents: {len(checklist.data.items)} item(s)")

            timeline = build_timeline_plan(catalog, payload)
            if timeline.success:
                print(f"Target intake: {timeline.data.target_intake}")
                print("Critical path:", ", ".join(timeline.data.critical_path_items) or "-")


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Seed script: creates lookup data, examiners and exams via the API (no direct DB).
Run: API must be running and the admin account must exist (seeded on startup).
  python scripts/seed_data.py
  python scripts/seed_data.py --examiners 40 --exams 25
"""

import argparse
import random
from datetime import date, datetime, timedelta, timezone

import httpx

API_BASE = "http://localhost:8000/api/v1"

EXAM_TYPES = [
    ("Written", "Written exam in a supervised room"),
    ("Oral", "Oral exam in front of the board"),
    ("Practical", "Practical exam at a workshop"),
    ("Central written", "Centrally issued written exam"),
]

PROFESSIONS = [
    ("4 0613 12 03", "Software developer and tester"),
    ("5 0732 06 03", "Building services technician"),
    ("4 0715 07 05", "Electrician"),
    ("5 0411 08 02", "Financial and accounting clerk"),
    ("4 1013 23 12", "Chef"),
]

INSTITUTIONS = [
    ("203041", "Budapest Technical College", 1146, "Budapest", "Thököly út", "48"),
    ("031542", "Debrecen Vocational School", 4025, "Debrecen", "Piac utca", "11"),
    ("038172", "Szeged Training Centre", 6720, "Szeged", "Kárász utca", "6"),
    ("027935", "Pécs Technical School", 7621, "Pécs", "Király utca", "21"),
]

FIRST_NAMES = ["Anna", "Bence", "Csilla", "Dávid", "Eszter", "Ferenc", "Gabriella", "Hunor", "Ildikó", "János"]
LAST_NAMES = ["Kovács", "Szabó", "Tóth", "Nagy", "Horváth", "Varga", "Kiss", "Molnár", "Németh", "Farkas"]
BOARD_ROLES = ["Chair", "Member", "Secretary", "Examiner"]


def post(client: httpx.Client, path: str, payload: dict, errors: list) -> dict | None:
    try:
        r = client.post(path, json=payload)
    except httpx.HTTPError as e:
        errors.append(f"{path}: {e}")
        return None
    if r.status_code in (200, 201):
        return r.json().get("data")
    if r.status_code != 409:
        errors.append(f"{path}: {r.status_code} {r.text[:80]}")
    return None


def existing(client: httpx.Client, path: str) -> list[dict]:
    r = client.get(path)
    r.raise_for_status()
    data = r.json()["data"]
    return data["items"] if isinstance(data, dict) else data


def main():
    ap = argparse.ArgumentParser(description="Seed exam manager data via API")
    ap.add_argument("--base-url", default=API_BASE, help="API base URL")
    ap.add_argument("--user", default="Admin", help="Operator user name")
    ap.add_argument("--password", default="AdminPassword123#", help="Operator password")
    ap.add_argument("--examiners", type=int, default=20, help="Number of examiners to create")
    ap.add_argument("--exams", type=int, default=10, help="Number of exams to create")
    args = ap.parse_args()

    errors: list[str] = []
    with httpx.Client(base_url=args.base_url, timeout=30.0) as client:
        r = client.post("/operators/login", json={"user_name": args.user, "password": args.password})
        if r.status_code != 200:
            print(f"Login failed: {r.status_code} {r.text[:120]}")
            return
        client.headers["Authorization"] = f"Bearer {r.json()['data']['token']}"

        print("Creating lookup data...")
        for name, description in EXAM_TYPES:
            post(client, "/exam-types", {"type_name": name, "description": description}, errors)
        for keor_id, name in PROFESSIONS:
            post(client, "/professions", {"keor_id": keor_id, "profession_name": name}, errors)
        for educational_id, name, zip_code, town, street, number in INSTITUTIONS:
            post(
                client,
                "/institutions",
                {
                    "educational_id": educational_id,
                    "name": name,
                    "zip_code": zip_code,
                    "town": town,
                    "street": street,
                    "number": number,
                },
                errors,
            )

        print(f"Creating {args.examiners} examiners...")
        for i in range(args.examiners):
            first, last = random.choice(FIRST_NAMES), random.choice(LAST_NAMES)
            post(
                client,
                "/examiners",
                {
                    "first_name": first,
                    "last_name": last,
                    "date_of_birth": (date(1960, 1, 1) + timedelta(days=random.randint(0, 12000))).isoformat(),
                    "email": f"examiner{i + 1}@example.com",
                    "phone": f"+3630{i + 1:07d}",
                    "identity_card_number": f"{i + 1:06d}AB",
                },
                errors,
            )

        exam_types = existing(client, "/exam-types/all")
        professions = existing(client, "/professions/all")
        institutions = existing(client, "/institutions/all")
        examiners = existing(client, "/examiners?page_size=100")
        if not (exam_types and professions and institutions and len(examiners) >= 3):
            print("Not enough lookup data or examiners to create exams.")
            return

        print(f"Creating {args.exams} exams...")
        created = 0
        for i in range(args.exams):
            board = random.sample(examiners, 3)
            exam_date = datetime.now(timezone.utc) + timedelta(days=random.randint(1, 60), hours=random.randint(8, 14))
            data = post(
                client,
                "/exams",
                {
                    "exam_name": f"{random.choice(professions)['profession_name']} exam {i + 1}",
                    "exam_code": f"EX-{datetime.now():%Y}-{i + 1:04d}",
                    "exam_date": exam_date.isoformat(),
                    "profession_id": random.choice(professions)["id"],
                    "institution_id": random.choice(institutions)["id"],
                    "exam_type_id": random.choice(exam_types)["id"],
                    "exam_boards": [
                        {"examiner_id": e["id"], "role": role} for e, role in zip(board, BOARD_ROLES)
                    ],
                },
                errors,
            )
            if data:
                created += 1

    print(f"\nDone. Exams created: {created}")
    if errors:
        print(f"Errors ({len(errors)}):")
        for e in errors[:15]:
            print("  ", e)
        if len(errors) > 15:
            print("  ... and", len(errors) - 15, "more")


if __name__ == "__main__":
    main()

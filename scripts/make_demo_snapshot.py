"""Generate a fake but consistent event snapshot for trying out the results view.

Every judge scores every eligible participant once in every category, with
random 1-10 criterion scores turned into category scores the same way the
voting page does. Names come from faker with a fixed seed, so the output is
reproducible.

Usage:
    python scripts/make_demo_snapshot.py
    python scripts/make_demo_snapshot.py -o demo.json --participants 12 --judges 5
    judging results --snapshot demo.json
"""

import argparse
import json
import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

from faker import Faker

sys.path.insert(0, str(Path(__file__).parent.parent))

from judging.models import Category, Criterion, Event, EventSnapshot, Judge, Participant, Vote
from judging.voting import is_eligible

DEFAULT_OUTPUT = Path("demo-snapshot.json")

SEED = 20250530

CATEGORIES = [
    # name, weight, gender, award type, [(criterion, percentage)]
    ("Best in Talent", 2.0, "everyone", "major",
     [("Beauty", 40), ("Elegance", 35), ("Stage Presence", 25)]),
    ("Best in Evening Gown", 1.5, "female", "major",
     [("Poise", 50), ("Gown Design", 30), ("Carriage", 20)]),
    ("Best in Formal Wear", 1.5, "male", "major",
     [("Poise", 50), ("Fit", 30), ("Carriage", 20)]),
    ("Best in Q&A", 1.0, "everyone", "minor",
     [("Content", 60), ("Delivery", 40)]),
]


def build_snapshot(fake: Faker, rng: random.Random,
                   num_participants: int, num_judges: int) -> EventSnapshot:
    event = Event(
        id="1",
        title=f"{fake.city()} Pageant {datetime.now().year}",
        date=(datetime.now(timezone.utc) + timedelta(days=7)).isoformat(),
        status="open",
        location=fake.city(),
        max_participants=num_participants,
    )

    participants = []
    for i in range(1, num_participants + 1):
        gender = "female" if i % 2 else "male"
        name = fake.name_female() if gender == "female" else fake.name_male()
        participants.append(Participant(
            id=str(i),
            name=name,
            contestant_number=i,
            gender=gender,
            origin=fake.city(),
            email=fake.email(),
            event_id=event.id,
        ))

    judges = [
        Judge(
            id=str(i),
            name=fake.name(),
            email=fake.email(),
            specialization=fake.job(),
            access_code=fake.bothify("??##??").upper(),
            event_id=event.id,
        )
        for i in range(1, num_judges + 1)
    ]

    categories = []
    criterion_id = 1
    for i, (name, weight, gender, award_type, criteria) in enumerate(CATEGORIES, start=1):
        rubric = []
        for criterion_name, percentage in criteria:
            rubric.append(Criterion(id=str(criterion_id), name=criterion_name,
                                    percentage=float(percentage)))
            criterion_id += 1
        categories.append(Category(
            id=str(i), name=name, weight=weight, gender=gender,
            award_type=award_type, criteria=rubric,
        ))

    votes = []
    submitted_at = datetime.now(timezone.utc).isoformat()
    for category in categories:
        for judge in judges:
            for participant in participants:
                if not is_eligible(category, participant):
                    continue
                raw = {c.name: rng.randint(5, 10) for c in category.criteria}
                score = sum(
                    (raw[c.name] / 10) * (c.percentage / 100) * category.max_score
                    for c in category.criteria
                )
                votes.append(Vote(
                    id=str(len(votes) + 1),
                    judge_id=judge.id,
                    participant_id=participant.id,
                    category_id=category.id,
                    event_id=event.id,
                    score=score,
                    submitted_at=submitted_at,
                    criteria_scores=raw,
                ))

    return EventSnapshot(
        event=event,
        participants=participants,
        judges=judges,
        categories=categories,
        votes=votes,
    )


def main():
    parser = argparse.ArgumentParser(
        description="Generate a demo event snapshot with fake names."
    )
    parser.add_argument("-o", "--output", type=Path, default=DEFAULT_OUTPUT,
                        help=f"Output file (default: {DEFAULT_OUTPUT})")
    parser.add_argument("--participants", type=int, default=10)
    parser.add_argument("--judges", type=int, default=3)
    parser.add_argument("--seed", type=int, default=SEED)
    args = parser.parse_args()

    fake = Faker()
    Faker.seed(args.seed)
    rng = random.Random(args.seed)

    snapshot = build_snapshot(fake, rng, args.participants, args.judges)
    args.output.write_text(json.dumps(snapshot.to_dict(), indent=2), encoding="utf-8")
    print(f"Wrote {args.output}: {len(snapshot.participants)} participants, "
          f"{len(snapshot.judges)} judges, {len(snapshot.votes)} votes")


if __name__ == "__main__":
    main()

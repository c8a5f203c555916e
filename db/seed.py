"""Demo data seeder.

Builds a three-week template plan for a demo owner with a few sessions in
the first week, then stores one of them as a public session template so the
copy, move and apply operations have something to work on.
"""
from __future__ import annotations

import logging
from datetime import date

from alembic import command
from alembic.config import Config
from sqlalchemy import select
from sqlalchemy.orm import Session

from core.db import session_scope
from core.models import Plan, Template
from core.services import structure
from core.services.plans import create_plan

logger = logging.getLogger(__name__)

DEMO_OWNER_ID = 1

# weekday -> sessions; each session is (name, main sport, [(sport, work_type, reps, base, pattern, amount)])
DEMO_WEEK = {
    1: [("Aerobic swim", "SWIM", [("SWIM", "primary", 6, 400, "pyramid", 100), ("SWIM", "none", 4, 50, "none", 0)])],
    3: [
        ("Tempo run", "RUN", [("RUN", "primary", 3, 2000, "none", 0)]),
        ("Core strength", "GYM", [("GYM", "secondary", 4, 12, "alternating", 3)]),
    ],
    6: [("Long ride", "BIKE", [("BIKE", "primary", 1, 60000, "none", 0)])],
}


def run_migrations() -> None:
    cfg = Config("alembic.ini")
    command.upgrade(cfg, "head")


def seed_demo_plan(db: Session, owner_id: int = DEMO_OWNER_ID, start: date | None = None) -> Plan:
    plan = create_plan(db, owner_id, "template_weeks", start or date.today())
    first_week = plan.weeks[0]
    days = {d.day_of_week: d for d in first_week.days}
    for weekday, sessions in DEMO_WEEK.items():
        for name, main_sport, units in sessions:
            session = structure.add_session(db, owner_id, days[weekday].id, name=name, main_sport=main_sport)
            for sport, work_type, count, base, pattern, amount in units:
                unit = structure.add_move_unit(db, owner_id, session.id, sport, work_type=work_type)
                structure.append_repetitions(db, owner_id, unit.id, count, base, pattern=pattern, amount=amount)
    logger.info("demo_plan_seeded", extra={"plan_id": plan.id, "owner_id": owner_id})
    return plan


def seed_demo_template(db: Session, plan: Plan, owner_id: int = DEMO_OWNER_ID) -> Template:
    existing = db.execute(
        select(Template).where(Template.owner_id == owner_id, Template.name == "Pyramid swim")
    ).scalar_one_or_none()
    if existing is not None:
        return existing
    monday = next(d for d in plan.weeks[0].days if d.day_of_week == 1)
    return structure.save_template(db, owner_id, "Pyramid swim", session_id=monday.sessions[0].id, is_public=True)


def main() -> None:
    run_migrations()
    with session_scope() as s:
        plan = seed_demo_plan(s)
        seed_demo_template(s, plan)
    print("Seeding complete")


if __name__ == "__main__":
    main()

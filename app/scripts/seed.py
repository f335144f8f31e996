"""Development sample data: assignment rules, contacts, tasks, leads and deals."""

import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.models import AssignmentRule, Contact, Deal, Lead, Task
from app.schemas.assignment import AssignmentHistoryEntry, RuleCriteria
from app.schemas.common import DealStage, EntityType, LeadStage
from app.schemas.lead import QualificationChecklist
from app.services.lead_scoring import LeadScorer
from app.services.score_history import ScoreHistoryTracker
from app.services.stage_history import StageHistoryTracker

MEMBER_IDS = [1, 2, 3, 4]
COMPANIES = ["Acme", "Globex", "Initech", "Umbrella", "Hooli", "Stark Industries"]
LEAD_STAGES = [s.value for s in LeadStage]
DEAL_PATH = [
    DealStage.new,
    DealStage.qualified,
    DealStage.proposal,
    DealStage.negotiation,
    DealStage.closed_won,
]

SAMPLE_RULES = [
    {
        "name": "Enterprise leads to Sarah",
        "entity": EntityType.leads.value,
        "priority": 1,
        "assign_to": 3,
        "criteria": RuleCriteria(
            conditions=[{"field": "value", "operator": "greater_than", "value": 50000}]
        ),
    },
    {
        "name": "Referrals to John",
        "entity": EntityType.leads.value,
        "priority": 2,
        "assign_to": 2,
        "criteria": RuleCriteria(
            conditions=[{"field": "source", "operator": "equals", "value": "referral"}]
        ),
    },
    {
        "name": "Large deals by size",
        "entity": EntityType.deals.value,
        "priority": 1,
        "criteria": RuleCriteria(
            conditions=[
                {"field": "amount", "operator": "between", "value": [0, 25000], "assign_to": 4},
                {"field": "amount", "operator": "greater_than", "value": 25000, "assign_to": 3},
            ]
        ),
    },
]


async def seed():
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    scorer = LeadScorer()
    score_history = ScoreHistoryTracker()
    now = datetime.now(timezone.utc)

    async with session_maker() as session:
        print("Seeding sample CRM data")

        await session.execute(
            text("TRUNCATE TABLE assignment_rules, tasks, contacts, deals, leads CASCADE")
        )
        await session.commit()
        print("Cleared existing data")

        # 1. Assignment rules
        for rule in SAMPLE_RULES:
            session.add(AssignmentRule(**rule))
        print(f"Created {len(SAMPLE_RULES)} assignment rules")

        # 2. Contacts and tasks, spread across the team
        for i in range(12):
            session.add(
                Contact(
                    name=f"Contact {i + 1}",
                    email=f"contact{i + 1}@example.com",
                    company=COMPANIES[i % len(COMPANIES)],
                    assigned_to=MEMBER_IDS[i % len(MEMBER_IDS)],
                )
            )
            session.add(
                Task(
                    title=f"Follow up #{i + 1}",
                    status="completed" if i % 3 == 0 else "pending",
                    assigned_to=MEMBER_IDS[(i + 1) % len(MEMBER_IDS)],
                    due_date=now + timedelta(days=i % 7),
                )
            )
        print("Created 12 contacts and 12 tasks")

        # 3. Leads, scored the same way the API scores them
        for i in range(30):
            updated_at = now - timedelta(days=i % 35)
            owner = MEMBER_IDS[i % len(MEMBER_IDS)]
            lead = {
                "title": f"Opportunity {i + 1}",
                "company": COMPANIES[i % len(COMPANIES)],
                "contact_name": f"Contact {i + 1}" if i % 2 else None,
                "email": f"lead{i + 1}@example.com" if i % 3 else None,
                "phone": "+1 555 0100" if i % 4 == 0 else None,
                "value": float(5_000 + i * 4_000),
                "budget": float(4_000 + i * 3_000) if i % 2 else None,
                "timeline": "Q3" if i % 5 == 0 else None,
                "source": "referral" if i % 6 == 0 else "website",
                "stage": LEAD_STAGES[i % len(LEAD_STAGES)],
                "notes": None,
                "assigned_to": owner,
            }
            qualification = QualificationChecklist(
                budget=i % 2 == 0, authority=i % 3 == 0, need=i % 4 == 0, fit=i % 5 == 0
            )
            score = scorer.score(
                {**lead, "qualification": qualification, "updated_at": updated_at},
                now=now,
            )
            session.add(
                Lead(
                    **lead,
                    qualification=qualification,
                    score=score,
                    score_history=score_history.append(
                        [], score, "Lead created", updated_at
                    ),
                    assignment_history=[
                        AssignmentHistoryEntry(
                            assigned_to=owner,
                            assigned_at=updated_at,
                            reason="Seed data",
                        )
                    ],
                    tags=["seed"],
                    created_at=updated_at,
                    updated_at=updated_at,
                )
            )
        print("Created 30 leads")

        # 4. Deals with a realistic stage history
        for i in range(15):
            entered = now - timedelta(days=30)
            history = StageHistoryTracker.open_history(DEAL_PATH[0], entered)
            steps = i % len(DEAL_PATH)
            for stage in DEAL_PATH[1 : steps + 1]:
                entered += timedelta(days=2 + i % 4)
                history = StageHistoryTracker.transition(history, stage, entered)
            session.add(
                Deal(
                    title=f"Deal {i + 1}",
                    amount=float(10_000 + i * 7_500),
                    stage=DEAL_PATH[steps].value,
                    probability=min(100, 10 + steps * 20),
                    deal_owner=MEMBER_IDS[i % len(MEMBER_IDS)],
                    stage_history=history,
                    tags=["seed"],
                )
            )
        print("Created 15 deals")

        await session.commit()
        print("Seeding complete")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())

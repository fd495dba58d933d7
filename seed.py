"""Create the schema and a few sample rows for local development.

    python seed.py

Needs DATABASE_URL, SECRET_KEY and the RPN scales in the environment or .env.
"""
import asyncio

from dotenv import load_dotenv

load_dotenv()

from safeops.container import build_container  # noqa: E402
from safeops.core.config import settings  # noqa: E402
from safeops.core.database import init_db  # noqa: E402
from safeops.models.enums import Likelihood, Role, Severity  # noqa: E402


async def seed():
    container = build_container(settings)
    await init_db(container.engine)

    officer = await container.auth.sign_up("officer@example.com", "changeme123", "Sam Officer", Role.SAFETY_OFFICER)
    approver = await container.auth.sign_up("approver@example.com", "changeme123", "Alex Approver", Role.APPROVER)
    print(f"users: officer={officer['id']} approver={approver['id']}")

    venue = await container.venues.create({"name": "Harbour Hall", "address": "1 Quay Street", "postal_code": "4000",
                                           "created_by": officer["id"]})
    await container.venues.add_hazard({"venue_id": venue["id"], "hazard_category": "Electrical",
                                       "description": "Exposed wiring behind stage",
                                       "severity": Severity.HIGH, "likelihood": Likelihood.MEDIUM})
    print(f"venue: id={venue['id']} name={venue['name']}")

    raw = await container.raws.create({"user_id": officer["id"], "venue_id": venue["id"],
                                       "event_title": "Winter Gala"})
    await container.raws.add_hazard({"raw_id": raw["id"], "hazard_description": "Crowd crush at exits",
                                     "severity": Severity.CRITICAL, "likelihood": Likelihood.LOW,
                                     "control_measures": "Marshals on every exit"})
    await container.raws.submit(raw["id"], officer["id"])
    print(f"raw: id={raw['id']} submitted")

    await container.close()
    await container.engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())

#!/usr/bin/env python
"""
Seed script for creating a demo property, email template and automations.
Run with: python scripts/seed_automations.py
Requires DATABASE_URL in .env.
"""

import os
import sys

# Add package to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import date, timedelta

from easybail.constants.automation import AutomationType, Frequency
from easybail.database import SessionLocal, init_db
from easybail.models.automation import Automation
from easybail.models.email_template import EmailTemplate
from easybail.models.property import Property
from easybail.utils.timeutil import utcnow

DEMO_PROPERTY_ID = "550e8400-e29b-41d4-a716-446655440001"

RECEIPT_TEMPLATE = """<p>Bonjour {{tenant_name}},</p>
<p>Veuillez trouver ci-joint votre quittance de loyer pour {{month}} concernant le logement
situé au {{property_address}}.</p>
<p>Loyer : {{rent_amount}} €<br>Charges : {{charges_amount}} €<br>Total : {{total_amount}} €</p>
<p>Cordialement,<br>{{landlord_name}}</p>"""


def seed_automations():
    init_db()
    db = SessionLocal()

    if db.query(Automation).count():
        print("Automations already exist. Skipping seed.")
        db.close()
        return

    try:
        prop = db.get(Property, DEMO_PROPERTY_ID)
        if prop is None:
            prop = Property(
                id=DEMO_PROPERTY_ID,
                name="Appartement Centre-Ville",
                address="12 rue de la République, 69002 Lyon",
                type="apartment",
                rent=850.0,
                charges=75.0,
                tenant_first_name="Camille",
                tenant_last_name="Martin",
                tenant_email="camille.martin@example.com",
                lease_start=date(2024, 9, 1)
            )
            db.add(prop)
            print(f"Created demo property: {prop.name}")

        template = EmailTemplate(
            name="Quittance de loyer mensuelle",
            subject="Quittance de loyer - {{month}}",
            content=RECEIPT_TEMPLATE,
            category="financial"
        )
        db.add(template)
        db.flush()
        print(f"Created demo email template: {template.name}")

        now = utcnow()
        db.add(Automation(
            name="Quittance mensuelle - Centre-Ville",
            description="Envoi automatique de la quittance de loyer",
            type=AutomationType.RECEIPT.value,
            frequency=Frequency.MONTHLY.value,
            next_execution=now + timedelta(minutes=5),
            execution_time="09:00",
            property_id=prop.id,
            email_template_id=template.id,
            active=True
        ))
        db.add(Automation(
            name="Révision annuelle du loyer",
            description="Rappel de révision du loyer selon l'IRL",
            type=AutomationType.RENT_REVIEW.value,
            frequency=Frequency.YEARLY.value,
            next_execution=now + timedelta(days=30),
            property_id=prop.id,
            active=True
        ))
        db.add(Automation(
            name="Contrôle chaudière",
            description="Entretien annuel obligatoire",
            type=AutomationType.MAINTENANCE.value,
            frequency=Frequency.YEARLY.value,
            next_execution=now + timedelta(days=90),
            active=False
        ))

        db.commit()
        print("\nDemo automations seeded successfully!")
        print("Next steps:")
        print("1. Start the API and check GET /api/v1/scheduler/")
        print("2. Run POST /api/v1/scheduler/force-check to execute due automations")
        print("3. Inspect GET /api/v1/outbox/ for queued emails when mail is disabled")

    except Exception as e:
        db.rollback()
        print(f"Error seeding automations: {e}")
    finally:
        db.close()


if __name__ == '__main__':
    seed_automations()

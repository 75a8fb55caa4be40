"""
Seeds SQLite with sample donations for local development of the admin view.

Distribution:
- ~45% pending, 25% approved, 20% issued, 10% rejected
- All seven causes, amounts between ₹100 and ₹25,000
- Edge cases: no email (issuance skips mail), no amount, amount hidden from poster,
  names at the 2 and 100 character limits
"""
import sys
import os
import random
from datetime import datetime, timedelta
from decimal import Decimal

# Allow running from project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from donation_desk.database import engine, SessionLocal
from donation_desk import models
from donation_desk.collaborators.messages import FALLBACK_MESSAGE

random.seed(7)

STATUSES = (
    ["pending"] * 45 +
    ["approved"] * 25 +
    ["issued"] * 20 +
    ["rejected"] * 10
)
FIRST_NAMES = ["Asha", "Ravi", "Meera", "Karthik", "Sneha", "Arjun", "Divya", "Vikram", "Lakshmi", "Rahul"]
LAST_NAMES = ["Rao", "Reddy", "Sharma", "Iyer", "Naidu", "Varma", "Kumar", "Patel"]

BASE_TIME = datetime(2026, 1, 10, 9, 0, 0)


def make_donation(donor_name, cause, status, created_at, amount=None, show_amount=False,
                  donor_email=None, donor_phone=None):
    donation = models.Donation(
        id=models.generate_id(),
        donor_name=donor_name,
        donor_email=donor_email,
        donor_phone=donor_phone,
        amount=amount,
        show_amount=show_amount,
        cause=cause,
        status=status,
        created_at=created_at,
    )
    if status == "issued":
        donation.ai_message = FALLBACK_MESSAGE
        donation.poster_issued_at = created_at + timedelta(days=random.randint(1, 5))
    return donation


def generate_donations():
    donations = []
    causes = [c.value for c in models.Cause]

    # --- 1. Regular submissions ---
    for i in range(60):
        first = random.choice(FIRST_NAMES)
        name = f"{first} {random.choice(LAST_NAMES)}"
        amount = Decimal(random.choice([100, 250, 500, 1000, 2500, 5000, 10000, 25000]))
        created_at = BASE_TIME + timedelta(hours=random.uniform(0, 24 * 30))
        donations.append(make_donation(
            name, random.choice(causes), random.choice(STATUSES), created_at,
            amount=amount,
            show_amount=random.random() < 0.6,
            donor_email=f"{first.lower()}.{i}@example.org",
            donor_phone=f"98{random.randint(10000000, 99999999)}",
        ))

    # --- 2. Edge cases ---
    # Approved without email: issuance proceeds without sending mail
    donations.append(make_donation(
        "Anonymous Well Wisher", "general", "approved", BASE_TIME - timedelta(days=2),
        amount=Decimal("751.50"), show_amount=True,
    ))
    # No amount given
    donations.append(make_donation(
        "Priya Menon", "environment", "pending", BASE_TIME - timedelta(days=1),
        donor_email="priya.menon@example.org",
    ))
    # Amount given but donor declined to show it
    donations.append(make_donation(
        "Suresh Babu", "health", "approved", BASE_TIME - timedelta(hours=5),
        amount=Decimal("20000"), donor_email="suresh.babu@example.org",
    ))
    # Name length boundaries
    donations.append(make_donation("Al", "orphanage", "pending", BASE_TIME - timedelta(hours=3)))
    donations.append(make_donation("N" * 100, "social_impact", "pending", BASE_TIME - timedelta(hours=2)))

    return donations


def main():
    print("Creating database tables...")
    models.Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        existing = db.query(models.Donation).count()
        if existing > 0:
            print(f"Database already has {existing} donations. Skipping seed.")
            return

        print("Generating donations...")
        db.add_all(generate_donations())
        db.commit()

        count = db.query(models.Donation).count()
        print(f"Successfully seeded {count} donations.")

        from sqlalchemy import func as sqlfunc
        statuses = db.query(
            models.Donation.status,
            sqlfunc.count(models.Donation.id)
        ).group_by(models.Donation.status).all()
        print("\nStatus distribution:")
        for status, cnt in statuses:
            print(f"  {status}: {cnt}")

    finally:
        db.close()


if __name__ == "__main__":
    main()

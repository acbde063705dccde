import argparse
import logging

from leavedesk.core.logging import setup_logging
from leavedesk.database import SessionLocal, init_db
from leavedesk.models.user import User, UserRole
from leavedesk.services.email import EmailService
from leavedesk.services.notification import USER_CREATED, NotificationDispatcher
from leavedesk.services.policy import PolicySettings
from leavedesk.services.storage import LeaveStorage

logger = logging.getLogger("seed_users")

DEMO_USERS = [
    ("staff", "staff@example.com", "Sam", "Staff", "Ministry", UserRole.STAFF),
    ("hr", "hr@example.com", "Helen", "Resources", "Human Resources", UserRole.HR),
    ("admin", "admin@example.com", "Ada", "Admin", "Administration", UserRole.ADMIN),
]


def create_user(storage, policy, dispatcher, username, email, first_name, last_name, department, role, password):
    # Check if user already exists to avoid unique constraint errors
    existing_user = storage.db.query(User).filter(User.username == username).first()
    if existing_user:
        logger.info(f"User {username} already exists. Skipping.")
        return None

    user = User(
        username=username,
        email=email,
        first_name=first_name,
        last_name=last_name,
        department=department,
        role=role,
        annual_leave=policy.get_int("default_annual_leave"),
        sick_leave=policy.get_int("default_sick_leave"),
        personal_leave=policy.get_int("default_personal_leave"),
        emergency_leave=policy.get_int("default_emergency_leave"),
    )
    storage.save_user(user)
    storage.commit()
    logger.info(f"Created {role.value} -> {username}")

    if policy.get_bool("send_welcome_email"):
        dispatcher.notify(USER_CREATED, None, user, extra_vars={"temporary_password": password})
    return user


def main():
    parser = argparse.ArgumentParser(description="Seed demo staff, HR and admin users.")
    parser.add_argument("--password", default="ChangeMe123!", help="Temporary password quoted in welcome emails")
    args = parser.parse_args()

    setup_logging()
    init_db()
    db = SessionLocal()
    try:
        storage = LeaveStorage(db)
        policy = PolicySettings(db)
        dispatcher = NotificationDispatcher(EmailService(), policy, storage)
        for username, email, first_name, last_name, department, role in DEMO_USERS:
            create_user(storage, policy, dispatcher, username, email, first_name, last_name, department, role, args.password)
    finally:
        db.close()


if __name__ == "__main__":
    main()

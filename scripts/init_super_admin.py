"""
Script to promote an existing user to super admin.

Usage:
    python scripts/init_super_admin.py someone@example.com

The user must have signed in at least once so the account exists.
"""
import sys
import os

# Add the parent directory to the path so we can import app modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app.db.session import SessionLocal
from app.auth.models import User
from app.admin.models import SuperAdmin
from app.admin.permissions import log_admin_action
from app.core.clock import utcnow


def init_super_admin(email: str) -> bool:
    """Mark the user with this email as an active super admin."""
    db = SessionLocal()

    try:
        user = db.query(User).filter(User.email == email.strip().lower(), User.deleted_at.is_(None)).first()
        if not user:
            print(f"ERROR: No user with email {email} found!")
            print("Please sign in with that email first, then run this script.")
            return False

        admin = db.query(SuperAdmin).filter(SuperAdmin.user_id == user.id).first()
        if admin:
            admin.is_active = True
        else:
            db.add(SuperAdmin(user_id=user.id, is_active=True, created_at=utcnow()))
        log_admin_action(db, user.id, "init_super_admin", "user", user.id, {"email": user.email})
        db.commit()

        print(f"SUCCESS: User {user.email} (ID: {user.id}) is now a super admin.")
        return True

    except Exception as e:
        db.rollback()
        print(f"ERROR: Failed to set super admin: {str(e)}")
        return False
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python scripts/init_super_admin.py EMAIL")
        sys.exit(2)

    print("Initializing super admin...")
    print("-" * 50)

    if init_super_admin(sys.argv[1]):
        print("-" * 50)
        print("Super admin initialization complete!")
    else:
        print("-" * 50)
        print("Super admin initialization failed!")
        sys.exit(1)

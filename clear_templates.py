from database import SessionLocal
from models import FacialTemplate, User


def main(session_factory=SessionLocal):
    """
    Delete every facial template, then every user.

    This is a maintenance script intended for local/dev use to reset the
    enrollment database. Returns (templates_deleted, users_deleted).
    """
    db = session_factory()
    try:
        templates_deleted = db.query(FacialTemplate).delete()
        users_deleted = db.query(User).delete()
        db.commit()
        print(f"Deleted {templates_deleted} facial templates and {users_deleted} users from the database.")
        return templates_deleted, users_deleted
    finally:
        db.close()


if __name__ == "__main__":
    main()

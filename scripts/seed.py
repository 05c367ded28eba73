"""Seed a local database with an admin, a demo player and a few KBO games."""
import sys
from datetime import timedelta
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlmodel import Session, select
from ballpark.auth import create_user
from ballpark.config import ADMIN_EMAIL, ADMIN_PASSWORD, ADMIN_USERNAME
from ballpark.database import engine, create_db_and_tables
from ballpark.models import Game, User
from ballpark.services.games import upsert_game
from ballpark.utils import utcnow

DEMO_USERNAME = "demo"
DEMO_PASSWORD = "password123"

# (game id, hours from now, home id, home name, away id, away name, stadium)
GAMES = [
    ("20260919LGOB0", 5, "OB", "Doosan Bears", "LG", "LG Twins", "Jamsil Baseball Stadium"),
    ("20260919SSHT0", 6, "HT", "KIA Tigers", "SS", "Samsung Lions", "Gwangju-Kia Champions Field"),
    ("20260920NCLT0", 29, "LT", "Lotte Giants", "NC", "NC Dinos", "Sajik Baseball Stadium"),
]


def seed_users(db: Session):
    for username, email, password, is_admin in [
        (ADMIN_USERNAME, ADMIN_EMAIL, ADMIN_PASSWORD, True),
        (DEMO_USERNAME, "demo@ballpark.local", DEMO_PASSWORD, False),
    ]:
        if db.exec(select(User).where(User.username == username)).first():
            print(f"  - {username} already exists")
            continue
        user = create_user(db, username, email, password, is_admin=is_admin)
        print(f"  + {username} ({user.points} points)")


def seed_games(db: Session):
    now = utcnow().replace(minute=0, second=0, microsecond=0)
    for game_id, hours, home_id, home_name, away_id, away_name, stadium in GAMES:
        if db.get(Game, game_id):
            print(f"  - {game_id} already exists")
            continue
        game, _ = upsert_game(
            db, game_id, now + timedelta(hours=hours),
            home_id, home_name, away_id, away_name, stadium
        )
        print(f"  + {game.label} at {game.scheduled_at:%Y-%m-%d %H:%M} UTC")


def main():
    create_db_and_tables()
    with Session(engine) as db:
        print("Seeding users...")
        seed_users(db)
        print("Seeding games...")
        seed_games(db)
    print("Done.")


if __name__ == "__main__":
    main()

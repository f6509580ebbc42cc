# reset_db.py
import app.models  # registers encryption_secrets and user_documents
from app.models import database
from app.models.database import engine

if __name__ == "__main__":
    print("⚠️ Dropping journal secrets and wellness documents...")
    database.Base.metadata.drop_all(bind=engine)

    print("✅ Recreating tables from models...")
    database.Base.metadata.create_all(bind=engine)

    print("✅ Database reset complete. Previously encrypted journals are now unreadable.")

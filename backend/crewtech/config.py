# backend/crewtech/config.py
import os

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "postgresql+psycopg://crewtech:devpass@db:5432/crewtech",
)

FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN", "http://localhost:5173")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Recipient key used for notifications addressed to the admin desk
ADMIN_RECIPIENT = os.getenv("ADMIN_RECIPIENT", "admin")

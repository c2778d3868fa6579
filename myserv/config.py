import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./myserv.db")

# Booking holds: minutes a provisional HOLD keeps its slot before it stops counting
BOOKING_HOLD_TTL_MINUTES = int(os.getenv("BOOKING_HOLD_TTL_MINUTES", "15"))

# Sweep cadence for the arq cron job that releases expired holds
HOLD_SWEEP_INTERVAL_MINUTES = int(os.getenv("HOLD_SWEEP_INTERVAL_MINUTES", "5"))

# Geocoding (OpenStreetMap Nominatim)
# Nominatim usage policy requires a User-Agent with contact info
NOMINATIM_BASE_URL = os.getenv("NOMINATIM_BASE_URL", "https://nominatim.openstreetmap.org").rstrip(
    "/"
)
NOMINATIM_USER_AGENT = os.getenv("NOMINATIM_USER_AGENT", "MyServ/1.0 (suporte@myserv.com.br)")
NOMINATIM_COUNTRY_CODES = os.getenv("NOMINATIM_COUNTRY_CODES", "br")

# Routing (OSRM-compatible). Empty value disables routing and forces the haversine estimate
ROUTING_BASE_URL = os.getenv("ROUTING_BASE_URL", "https://router.project-osrm.org").rstrip("/")

# Timeout for every geocoding/routing call
TRAVEL_HTTP_TIMEOUT_SECONDS = float(os.getenv("TRAVEL_HTTP_TIMEOUT_SECONDS", "8.0"))

# Twilio WhatsApp Configuration
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
# Sender in E.164, e.g. +14155238886 (Twilio sandbox); "whatsapp:" prefix is added when sending
TWILIO_WHATSAPP_FROM = os.getenv("TWILIO_WHATSAPP_FROM")
DEFAULT_PHONE_COUNTRY_CODE = os.getenv("DEFAULT_PHONE_COUNTRY_CODE", "55")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "MyServ <noreply@myserv.com.br>")

# Frontend base URL for dashboard links in notifications
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Redis for the arq worker
REDIS_URL = os.getenv("REDIS_URL")

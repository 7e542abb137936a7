import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    SUPABASE_URL = os.getenv('SUPABASE_URL')
    SUPABASE_KEY = os.getenv('SUPABASE_KEY')
    DASHBOARD_TIMEZONE = os.getenv('DASHBOARD_TIMEZONE', 'Asia/Kolkata')
    REQUEST_TIMEOUT = float(os.getenv('REQUEST_TIMEOUT', 30))
    REQUEST_RETRIES = int(os.getenv('REQUEST_RETRIES', 3))
    CACHE_TTL_SECONDS = int(os.getenv('CACHE_TTL_SECONDS', 300))
    MAX_WORKERS = int(os.getenv('MAX_WORKERS', 6))
    DEFAULT_ACCURACY = float(os.getenv('DEFAULT_ACCURACY', 95.0))

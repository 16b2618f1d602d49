"""Merkezi .env yukleyici. Tum scriptler ve sunucular bunu import etsin."""
from pathlib import Path
from dotenv import load_dotenv

# Proje kokundeki .env dosyasini bul ve yukle (SUPABASE_URL, SUPABASE_ANON_KEY ...)
_env_path = Path(__file__).resolve().parent / ".env"
load_dotenv(_env_path, override=False)

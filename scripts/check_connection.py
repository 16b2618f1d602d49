"""REST baglantisini dogrular - kok uc nokta, cases tablosundan tek satir ve kayit sayisi.

Kullanim:
    python -m scripts.check_connection
    python -m scripts.check_connection --table doctors
"""
import argparse
import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
import env_loader

from lab_dashboard.data.rest_client import ConfigError, FetchError, RestClient


def check_connection(client: RestClient, table: str = "cases") -> bool:
    """Uc adimli baglanti testi; hepsi basariliysa True doner."""
    ok = True

    print("Ham REST istegi deneniyor...")
    try:
        status = client.ping()
        print(f"  ✓  REST kok uc nokta: HTTP {status}")
    except FetchError as e:
        print(f"  ✗  REST kok uc nokta hatasi: {e}")
        ok = False

    print(f"'{table}' tablosundan tek satir okunuyor...")
    try:
        rows = client.table(table).select("*").limit(1).execute()
        preview = ", ".join(sorted(rows[0].keys())) if rows else "(bos)"
        print(f"  ✓  {len(rows)} satir, kolonlar: {preview}")
    except FetchError as e:
        print(f"  ✗  Tablo okuma hatasi: {e}")
        ok = False

    print(f"'{table}' kayit sayisi aliniyor...")
    try:
        count = client.table(table).select("*").count()
        print(f"  ✓  '{table}' tablosunda {count} kayit")
    except FetchError as e:
        print(f"  ✗  Sayim hatasi: {e}")
        ok = False

    return ok


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Lab dashboard REST baglanti testi")
    parser.add_argument("--table", default="cases")
    args = parser.parse_args(argv)

    try:
        client = RestClient.from_env()
    except ConfigError as e:
        print(f"❌ {e}")
        print("\n.env dosyasina SUPABASE_URL ve SUPABASE_ANON_KEY ekleyin (.env.example'a bakin).")
        return 1

    print(f"Hedef: {client.rest_url}\n")
    if check_connection(client, args.table):
        print("\n✅ Baglanti basarili")
        return 0
    print("\n❌ Baglanti testi basarisiz")
    return 1


if __name__ == "__main__":
    sys.exit(main())

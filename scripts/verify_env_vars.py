import os
import re
from pathlib import Path

REQUIRED = ("SUPABASE_URL", "SUPABASE_ANON_KEY")


def find_env_vars():
    """Find all environment variables the settings model reads."""
    content = Path("leadboard/config.py").read_text(encoding="utf-8", errors="ignore")
    return sorted(set(re.findall(r'alias="([A-Z0-9_]+)"', content)))


def verify_environment():
    code_vars = find_env_vars()
    missing_required = [v for v in REQUIRED if not os.getenv(v, "").strip()]
    unset_optional = [v for v in code_vars if v not in REQUIRED and v not in os.environ]

    print("=== ENV VAR VERIFICATION ===")
    print(f"Settings read: {len(code_vars)} unique vars")
    print("")
    if missing_required:
        print(f"MISSING REQUIRED ({len(missing_required)}):")
        for v in missing_required:
            print(f"  - {v}")
    else:
        print("All required vars are set.")
    print("")
    if unset_optional:
        print(f"USING DEFAULTS ({len(unset_optional)}):")
        for v in unset_optional:
            print(f"  - {v}")
    return 1 if missing_required else 0


if __name__ == "__main__":
    raise SystemExit(verify_environment())

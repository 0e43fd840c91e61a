# Supabase Streamlit Starter package
# Modules:
#   clients.py         — Supabase handle factories (browser / server) and secrets
#   cookies.py         — Session and PKCE verifier cookies
#   guard.py           — Session guard run at the top of every page
#   profiles.py        — Profile lookup with an explicit three-state result
#   providers.py       — Per-session memoized handle and auth provider
#   typegen.py         — `python -m starter.typegen`, regenerates database_types.py
#   database_types.py  — Generated row types

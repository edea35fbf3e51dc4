"""
Svastha - Onboarding for the Aham Svastha wellness app.

Packages:
- onboarding: Phase state machine, username routing, survey aggregate
- svastha: Settings, collaborator adapters (Supabase, local prefs), CLI
"""

__version__ = "1.0.0"
